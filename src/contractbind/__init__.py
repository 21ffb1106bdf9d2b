"""Contract-based object composition.

This package resolves named contracts into fully wired instances. Implementations
declare the contract they fulfil and the contracts they depend on; a container
registers them and builds instances on demand, with lifetimes, child containers,
decorators and composites.

Exports:
- `Contract`: Identity token for a capability (alias `Abstraction`).
- `Container`: Registers implementations, instances, factories, decorators and
  composites, and resolves contracts. Child containers fall back to their parent.
- `Lifetime`: Transient (default) or singleton registrations.
- `create_implementation`, `create_decorator`, `create_composite`, `create_dependency`
  and their class-decorator forms `implements`, `decorates`, `composes`, `depends_on`:
  declare how a class is wired.
- `MetadataStore`: The table those declarations are recorded in.
- Errors, all deriving from `ContractBindError`.
"""

from ._container import Container, Lifetime, RegistrationBuilder
from ._contract import Abstraction, Contract, Dependency, DependencyOptions
from ._errors import (
    CircularDependencyError,
    ContractBindError,
    MissingContractError,
    MissingDependencyMetadataError,
    RegistrationError,
    RegistrationNotFoundError,
    ResolutionError,
    RoleMismatchError,
)
from ._metadata import (
    DEFAULT_METADATA,
    MetadataStore,
    ProviderKind,
    ProviderMetadata,
    composes,
    create_composite,
    create_decorator,
    create_dependency,
    create_implementation,
    decorates,
    depends_on,
    implements,
    is_composite,
    is_decorator,
    is_dependency_only,
)


__all__ = [
    "DEFAULT_METADATA",
    "Abstraction",
    "CircularDependencyError",
    "Container",
    "Contract",
    "ContractBindError",
    "Dependency",
    "DependencyOptions",
    "Lifetime",
    "MetadataStore",
    "MissingContractError",
    "MissingDependencyMetadataError",
    "ProviderKind",
    "ProviderMetadata",
    "RegistrationBuilder",
    "RegistrationError",
    "RegistrationNotFoundError",
    "ResolutionError",
    "RoleMismatchError",
    "composes",
    "create_composite",
    "create_decorator",
    "create_dependency",
    "create_implementation",
    "decorates",
    "depends_on",
    "implements",
    "is_composite",
    "is_decorator",
    "is_dependency_only",
]
