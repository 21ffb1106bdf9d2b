from __future__ import annotations

import inspect
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar, overload

from ._contract import REQUIRED, Contract, Dependency, DependencyOptions, normalize_dependencies
from ._errors import (
    CircularDependencyError,
    MissingContractError,
    MissingDependencyMetadataError,
    RegistrationNotFoundError,
    RoleMismatchError,
)
from ._metadata import DEFAULT_METADATA, MetadataStore, ProviderKind


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from ._contract import DependencyRef

    # Cycle-tracking path: contract tokens, provider registrations and
    # dependency-only classes currently being constructed.
    Path = frozenset[object]

T = TypeVar("T")

_MISSING = object()


class Lifetime(Enum):
    SINGLETON = "singleton"
    TRANSIENT = "transient"


@dataclass(eq=False)
class Registration:
    implementation: type
    contract: Contract[Any]
    dependencies: tuple[Dependency, ...]
    lifetime: Lifetime = Lifetime.TRANSIENT


@dataclass(frozen=True)
class DecoratorRegistration:
    decorator: type
    dependencies: tuple[Dependency, ...]


@dataclass(frozen=True)
class InstanceRegistration:
    instance: object


class RegistrationBuilder(Generic[T]):
    """Returned by `Container.register`; adjusts the lifetime of that one registration."""

    def __init__(self, registration: Registration) -> None:
        self._registration = registration

    @property
    def lifetime(self) -> Lifetime:
        return self._registration.lifetime

    def in_singleton_scope(self) -> RegistrationBuilder[T]:
        self._registration.lifetime = Lifetime.SINGLETON
        return self


class Container:
    """Resolves contracts into fully wired instances.

    - register implementations, instances, factories, decorators and composites
    - lifetimes: transient (default) / singleton
    - child containers that see their parent's registrations but not the reverse.
    """

    def __init__(self, *, metadata: MetadataStore | None = None, _parent: Container | None = None) -> None:
        self._metadata = metadata if metadata is not None else DEFAULT_METADATA
        self._parent = _parent

        # All tables are keyed by Contract.token
        self._registrations: dict[object, list[Registration]] = {}
        self._decorators: dict[object, list[DecoratorRegistration]] = {}
        self._composites: dict[object, Registration] = {}
        self._instances: dict[object, list[InstanceRegistration]] = {}
        self._factories: dict[object, list[Callable[[], object]]] = {}
        self._singletons: dict[tuple[object, str], object] = {}

        self._lock = threading.RLock()

    @property
    def parent(self) -> Container | None:
        return self._parent

    def register(self, implementation: type[T]) -> RegistrationBuilder[T]:
        """Register an implementation declared with `create_implementation`.

        Registrations are transient unless made singleton through the returned builder:

          container.register(ConsoleLogger).in_singleton_scope()
        """
        _require_class(implementation)
        md = self._metadata.get(implementation)
        kind = md.kind if md else None
        name = implementation.__name__

        if kind is ProviderKind.COMPOSITE:
            msg = f'{name} is a composite! Use the "register_composite" method.'
            raise RoleMismatchError(implementation, msg)

        if kind is ProviderKind.DECORATOR:
            msg = f'{name} is a decorator! Use the "register_decorator" method.'
            raise RoleMismatchError(implementation, msg)

        if md is None or md.contract is None:
            raise MissingContractError(implementation)

        registration = Registration(implementation, md.contract, md.dependencies)
        with self._lock:
            self._registrations.setdefault(md.contract.token, []).append(registration)

        logger.debug("Registered %s for %s", name, md.contract)
        return RegistrationBuilder(registration)

    def register_instance(self, contract: Contract[T], instance: T) -> None:
        """Register a pre-built instance; it is returned as is (after decoration) on every resolve."""
        _require_contract(contract)
        with self._lock:
            self._instances.setdefault(contract.token, []).append(InstanceRegistration(instance))
        logger.debug("Registered instance of %s for %s", type(instance).__name__, contract)

    def register_factory(self, contract: Contract[T], factory: Callable[[], T]) -> None:
        _require_contract(contract)
        if not callable(factory):
            msg = f"Factory for {contract} must be callable, got {factory!r}"
            raise TypeError(msg)
        with self._lock:
            self._factories.setdefault(contract.token, []).append(factory)
        logger.debug("Registered factory for %s", contract)

    def register_decorator(self, decorator: type) -> None:
        _require_class(decorator)
        md = self._metadata.get(decorator)
        name = decorator.__name__

        if md is None or md.kind is not ProviderKind.DECORATOR:
            msg = f'{name} is not a decorator! Use the "create_decorator" factory.'
            raise RoleMismatchError(decorator, msg)

        if md.contract is None:
            raise MissingContractError(decorator)

        with self._lock:
            self._decorators.setdefault(md.contract.token, []).append(
                DecoratorRegistration(decorator, md.dependencies)
            )
        logger.debug("Registered decorator %s for %s", name, md.contract)

    def register_composite(self, implementation: type) -> None:
        """Register the composite for a contract, replacing any earlier composite in this container."""
        _require_class(implementation)
        md = self._metadata.get(implementation)
        name = implementation.__name__

        if md is None or md.kind is not ProviderKind.COMPOSITE:
            msg = f'{name} is not a composite! Use the "create_composite" factory.'
            raise RoleMismatchError(implementation, msg)

        if md.contract is None:
            raise MissingContractError(implementation)

        with self._lock:
            previous = self._composites.get(md.contract.token)
            self._composites[md.contract.token] = Registration(implementation, md.contract, md.dependencies)

        if previous is not None:
            logger.debug(
                "Composite %s replaces %s for %s", name, previous.implementation.__name__, md.contract
            )
        else:
            logger.debug("Registered composite %s for %s", name, md.contract)

    def create_child_container(self) -> Container:
        """Create a container that prefers its own registrations and falls back to this one."""
        child = Container(metadata=self._metadata, _parent=self)
        logger.debug("Created child container %#x of %#x", id(child), id(self))
        return child

    @overload
    def resolve(self, contract: Contract[T]) -> T: ...

    @overload
    def resolve(self, contract: type[T]) -> T: ...

    def resolve(self, contract: Contract[T] | type[T]) -> T:
        """Resolve a single instance of `contract`.

        Resolution order in each container: composite, then the last registered
        instance, then the last registered implementation, then the last registered
        factory. If none exists here, the parent container is asked.

        Passing a class declared with `create_dependency` constructs it directly.
        """
        if not (isinstance(contract, Contract) or inspect.isclass(contract)):
            msg = f"Expected a Contract or a class, got {contract!r}"
            raise TypeError(msg)
        return self._resolve_internal(contract, frozenset(), REQUIRED)

    def resolve_all(self, contract: Contract[T]) -> list[T]:
        """Resolve every instance, implementation and factory for `contract`, ancestors first."""
        _require_contract(contract)
        return self._resolve_multiple(contract, frozenset())

    def resolve_with_dependencies(
        self,
        implementation: Callable[..., T],
        dependencies: Iterable[DependencyRef] = (),
    ) -> T:
        """Construct an unregistered class, resolving `dependencies` as its positional arguments."""
        deps = normalize_dependencies(dependencies)
        args = [self._resolve_internal(dep.target, frozenset(), dep.options) for dep in deps]
        return implementation(*args)

    def _resolve_internal(self, target: Contract[Any] | type, path: Path, options: DependencyOptions) -> Any:
        if not isinstance(target, Contract):
            return self._resolve_dependency_only(target, path)

        if target.token in path and not options.multiple:
            raise CircularDependencyError(target)

        with self._lock:
            instance = self._try_resolve_local(target, path, options)

        if instance is not _MISSING:
            return instance

        if self._parent is not None:
            return self._parent._resolve_internal(target, path, options)  # noqa: SLF001

        if options.optional:
            return None

        raise RegistrationNotFoundError(target)

    def _try_resolve_local(self, contract: Contract[Any], path: Path, options: DependencyOptions) -> Any:
        token = contract.token

        if options.multiple:
            return self._resolve_multiple(contract, path)

        composite = self._composites.get(token)
        if composite is not None:
            # Composites are returned as is: this container's decorators are not applied
            deps = self._resolve_dependencies(composite.dependencies, path | {token})
            return composite.implementation(*deps)

        instances = self._instances.get(token)
        if instances:
            return self._apply_decorators(contract, instances[-1].instance, path | {token})

        registrations = self._registrations.get(token)
        if registrations:
            return self._resolve_registration(contract, registrations[-1], path)

        factories = self._factories.get(token)
        if factories:
            return self._apply_decorators(contract, factories[-1](), path | {token})

        return _MISSING

    def _resolve_registration(self, contract: Contract[Any], registration: Registration, path: Path) -> Any:
        # Keyed by name: two singleton classes sharing a __qualname__ (a.Impl, b.Impl) share one entry
        key = (contract.token, registration.implementation.__qualname__)
        singleton = registration.lifetime is Lifetime.SINGLETON

        if singleton and key in self._singletons:
            logger.debug("Singleton cache hit for %s (%s)", contract, registration.implementation.__name__)
            return self._singletons[key]

        # Re-entering the same registration through a `multiple` edge would never terminate
        if registration in path:
            raise CircularDependencyError(contract)

        inner = path | {contract.token, registration}
        deps = self._resolve_dependencies(registration.dependencies, inner)
        instance = registration.implementation(*deps)
        decorated = self._apply_decorators(contract, instance, inner)

        if singleton:
            self._singletons[key] = decorated
            logger.debug("Cached singleton %s for %s", registration.implementation.__name__, contract)

        return decorated

    def _resolve_multiple(self, contract: Contract[Any], path: Path) -> list[Any]:
        results: list[Any] = []

        if self._parent is not None:
            results.extend(self._parent._resolve_multiple(contract, path))  # noqa: SLF001

        token = contract.token
        with self._lock:
            instances = list(self._instances.get(token, ()))
            registrations = list(self._registrations.get(token, ()))
            factories = list(self._factories.get(token, ()))

            for registered in instances:
                results.append(self._apply_decorators(contract, registered.instance, path | {token}))

            for registration in registrations:
                results.append(self._resolve_registration(contract, registration, path))

            for factory in factories:
                results.append(self._apply_decorators(contract, factory(), path | {token}))

        return results

    def _apply_decorators(self, contract: Contract[Any], instance: object, path: Path) -> Any:
        result = instance
        # The last registered decorator ends up outermost
        for registered in list(self._decorators.get(contract.token, ())):
            deps = self._resolve_dependencies(registered.dependencies, path)
            result = registered.decorator(*deps, result)
        return result

    def _resolve_dependency_only(self, implementation: type, path: Path) -> Any:
        if not inspect.isclass(implementation):
            msg = f"Expected a Contract or a class, got {implementation!r}"
            raise TypeError(msg)

        dependencies = self._metadata.get_dependencies(implementation)
        if dependencies is None:
            raise MissingDependencyMetadataError(implementation)

        if implementation in path:
            raise CircularDependencyError(implementation)

        deps = self._resolve_dependencies(dependencies, path | {implementation})
        return implementation(*deps)

    def _resolve_dependencies(self, dependencies: Iterable[Dependency], path: Path) -> list[Any]:
        return [self._resolve_internal(dep.target, path, dep.options) for dep in dependencies]


def _require_contract(contract: object) -> None:
    if not isinstance(contract, Contract):
        msg = f"Expected a Contract, got {contract!r}"
        raise TypeError(msg)


def _require_class(implementation: object) -> None:
    if not inspect.isclass(implementation):
        msg = f"Expected a class, got {implementation!r}"
        raise TypeError(msg)
