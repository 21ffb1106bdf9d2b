from __future__ import annotations

import inspect
import logging
import weakref
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from ._contract import Contract, Dependency, normalize_dependencies


if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from ._contract import C, DependencyRef


logger = logging.getLogger(__name__)


class ProviderKind(Enum):
    PROVIDER = "provider"
    DECORATOR = "decorator"
    COMPOSITE = "composite"
    DEPENDENCY_ONLY = "dependency_only"


@dataclass(frozen=True)
class ProviderMetadata:
    kind: ProviderKind
    contract: Contract[Any] | None
    dependencies: tuple[Dependency, ...]


class MetadataStore:
    """Side table mapping a class to the contract it implements and what it depends on.

    Keys are held weakly: declaring a throwaway class (in a test, for instance)
    does not keep it alive.
    """

    def __init__(self) -> None:
        self._entries: weakref.WeakKeyDictionary[type, ProviderMetadata] = weakref.WeakKeyDictionary()

    def set(self, cls: type, metadata: ProviderMetadata) -> None:
        if cls in self._entries:
            logger.debug("Replacing metadata for %s", cls.__qualname__)
        self._entries[cls] = metadata

    def get(self, cls: type) -> ProviderMetadata | None:
        return self._entries.get(cls)

    def get_contract(self, cls: type) -> Contract[Any] | None:
        md = self._entries.get(cls)
        return md.contract if md else None

    def get_dependencies(self, cls: type) -> tuple[Dependency, ...] | None:
        md = self._entries.get(cls)
        return md.dependencies if md else None

    def get_kind(self, cls: type) -> ProviderKind | None:
        md = self._entries.get(cls)
        return md.kind if md else None

    def has_role(self, cls: type, kind: ProviderKind) -> bool:
        return self.get_kind(cls) is kind

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, cls: object) -> bool:
        return cls in self._entries

    def __len__(self) -> int:
        return len(self._entries)


DEFAULT_METADATA = MetadataStore()


def _declare(
    kind: ProviderKind,
    contract: Contract[Any] | None,
    implementation: C,
    dependencies: Iterable[DependencyRef],
    metadata: MetadataStore | None,
) -> C:
    if contract is not None and not isinstance(contract, Contract):
        msg = f"Expected a Contract, got {contract!r}"
        raise TypeError(msg)

    if not inspect.isclass(implementation):
        msg = f"Expected a class, got {implementation!r}"
        raise TypeError(msg)

    store = metadata if metadata is not None else DEFAULT_METADATA
    store.set(implementation, ProviderMetadata(kind, contract, normalize_dependencies(dependencies)))
    return implementation


def create_implementation(
    contract: Contract[Any],
    implementation: C,
    dependencies: Iterable[DependencyRef] = (),
    *,
    metadata: MetadataStore | None = None,
) -> C:
    """Bind `implementation` to `contract`, to be constructed with `dependencies` in order."""
    return _declare(ProviderKind.PROVIDER, contract, implementation, dependencies, metadata)


def create_decorator(
    contract: Contract[Any],
    decorator: C,
    dependencies: Iterable[DependencyRef] = (),
    *,
    metadata: MetadataStore | None = None,
) -> C:
    """Declare `decorator` as a wrapper for `contract`.

    The decorator is constructed as ``decorator(*dependencies, decoratee)``: the
    wrapped instance always arrives as the last positional argument and must not
    be listed in `dependencies`.
    """
    return _declare(ProviderKind.DECORATOR, contract, decorator, dependencies, metadata)


def create_composite(
    contract: Contract[Any],
    implementation: C,
    dependencies: Iterable[DependencyRef] = (),
    *,
    metadata: MetadataStore | None = None,
) -> C:
    """Declare `implementation` as the composite of `contract`.

    A composite usually depends on ``(contract, {"multiple": True})`` and is
    returned, undecorated, whenever a single instance of `contract` is requested.
    """
    return _declare(ProviderKind.COMPOSITE, contract, implementation, dependencies, metadata)


def create_dependency(
    implementation: C,
    dependencies: Iterable[DependencyRef] = (),
    *,
    metadata: MetadataStore | None = None,
) -> C:
    """Declare the dependencies of a class that is not bound to any contract."""
    return _declare(ProviderKind.DEPENDENCY_ONLY, None, implementation, dependencies, metadata)


def implements(
    contract: Contract[Any], *dependencies: DependencyRef, metadata: MetadataStore | None = None
) -> Callable[[C], C]:
    def dec(cls: C) -> C:
        return create_implementation(contract, cls, dependencies, metadata=metadata)

    return dec


def decorates(
    contract: Contract[Any], *dependencies: DependencyRef, metadata: MetadataStore | None = None
) -> Callable[[C], C]:
    def dec(cls: C) -> C:
        return create_decorator(contract, cls, dependencies, metadata=metadata)

    return dec


def composes(
    contract: Contract[Any], *dependencies: DependencyRef, metadata: MetadataStore | None = None
) -> Callable[[C], C]:
    def dec(cls: C) -> C:
        return create_composite(contract, cls, dependencies, metadata=metadata)

    return dec


def depends_on(*dependencies: DependencyRef, metadata: MetadataStore | None = None) -> Callable[[C], C]:
    def dec(cls: C) -> C:
        return create_dependency(cls, dependencies, metadata=metadata)

    return dec


def is_decorator(cls: type, metadata: MetadataStore | None = None) -> bool:
    store = metadata if metadata is not None else DEFAULT_METADATA
    return store.has_role(cls, ProviderKind.DECORATOR)


def is_composite(cls: type, metadata: MetadataStore | None = None) -> bool:
    store = metadata if metadata is not None else DEFAULT_METADATA
    return store.has_role(cls, ProviderKind.COMPOSITE)


def is_dependency_only(cls: type, metadata: MetadataStore | None = None) -> bool:
    store = metadata if metadata is not None else DEFAULT_METADATA
    return store.has_role(cls, ProviderKind.DEPENDENCY_ONLY)
