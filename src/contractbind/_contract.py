from __future__ import annotations

import inspect
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar, Union


if TYPE_CHECKING:
    from ._metadata import MetadataStore

    C = TypeVar("C", bound=type)

    DependencyRef = Union[
        "Contract[Any]",
        type,
        tuple["Contract[Any]"],
        tuple["Contract[Any]", "DependencyOptions | Mapping[str, bool]"],
        "Dependency",
    ]

T = TypeVar("T")


class Contract(Generic[T]):
    """Identity token standing for a capability, e.g. ``Logger: Contract[ILogger] = Contract("Logger")``.

    Two contracts are the same only if they are the same object. The label is used
    for diagnostics and never for comparison.
    """

    __slots__ = ("_label", "_token")

    def __init__(self, label: str) -> None:
        self._label = label
        self._token = object()

    @property
    def label(self) -> str:
        return self._label

    @property
    def token(self) -> object:
        return self._token

    def __str__(self) -> str:
        return self._label

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._label!r})"

    def create_implementation(
        self,
        implementation: C,
        dependencies: Iterable[DependencyRef] = (),
        *,
        metadata: MetadataStore | None = None,
    ) -> C:
        from ._metadata import create_implementation

        return create_implementation(self, implementation, dependencies, metadata=metadata)

    def create_decorator(
        self,
        decorator: C,
        dependencies: Iterable[DependencyRef] = (),
        *,
        metadata: MetadataStore | None = None,
    ) -> C:
        from ._metadata import create_decorator

        return create_decorator(self, decorator, dependencies, metadata=metadata)

    def create_composite(
        self,
        implementation: C,
        dependencies: Iterable[DependencyRef] = (),
        *,
        metadata: MetadataStore | None = None,
    ) -> C:
        from ._metadata import create_composite

        return create_composite(self, implementation, dependencies, metadata=metadata)


Abstraction = Contract


@dataclass(frozen=True)
class DependencyOptions:
    multiple: bool = False
    optional: bool = False


REQUIRED = DependencyOptions()


@dataclass(frozen=True)
class Dependency:
    """A normalized dependency: what to resolve and how."""

    target: Contract[Any] | type
    options: DependencyOptions = REQUIRED


def normalize_dependency(ref: Any) -> Dependency:
    """Turn any accepted dependency reference into a `Dependency`.

    Accepted forms:
    - ``Contract`` or a dependency-only class
    - ``(Contract,)``
    - ``(Contract, DependencyOptions(...))`` or ``(Contract, {"multiple": True})``
    """
    if isinstance(ref, Dependency):
        return ref

    if isinstance(ref, Contract) or inspect.isclass(ref):
        return Dependency(ref)

    if isinstance(ref, tuple) and len(ref) in (1, 2):
        target = ref[0]
        if not (isinstance(target, Contract) or inspect.isclass(target)):
            msg = f"Dependency target must be a Contract or a class, got {target!r}"
            raise TypeError(msg)
        options = _normalize_options(ref[1]) if len(ref) == 2 else REQUIRED
        return Dependency(target, options)

    msg = f"Invalid dependency reference: {ref!r}"
    raise TypeError(msg)


def normalize_dependencies(refs: Iterable[Any]) -> tuple[Dependency, ...]:
    return tuple(normalize_dependency(ref) for ref in refs)


def _normalize_options(value: Any) -> DependencyOptions:
    if value is None:
        return REQUIRED
    if isinstance(value, DependencyOptions):
        return value
    if isinstance(value, Mapping):
        unknown = set(value) - {"multiple", "optional"}
        if unknown:
            msg = f"Unknown dependency options: {', '.join(sorted(unknown))}"
            raise TypeError(msg)
        return DependencyOptions(
            multiple=bool(value.get("multiple", False)),
            optional=bool(value.get("optional", False)),
        )

    msg = f"Dependency options must be DependencyOptions or a mapping, got {value!r}"
    raise TypeError(msg)
