from __future__ import annotations

from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from ._contract import Contract


class ContractBindError(Exception):
    """Base class for every error raised by contractbind."""


class RegistrationError(ContractBindError, ValueError):
    """A class cannot be registered the way it was asked to be."""


class MissingContractError(RegistrationError):
    def __init__(self, implementation: type) -> None:
        msg = f"No contract metadata found for {implementation.__name__}"
        super().__init__(msg)
        self.implementation = implementation


class RoleMismatchError(RegistrationError, TypeError):
    """Raised when a class is passed to the registration method of another role.

    For example a composite handed to `Container.register`, or a plain
    implementation handed to `Container.register_decorator`.
    """

    def __init__(self, implementation: type, message: str) -> None:
        super().__init__(message)
        self.implementation = implementation


class ResolutionError(ContractBindError, RuntimeError):
    pass


class CircularDependencyError(ResolutionError):
    def __init__(self, contract: Contract | type) -> None:
        name = contract.__name__ if isinstance(contract, type) else str(contract)
        msg = f"Circular dependency detected for {name}"
        super().__init__(msg)
        self.contract = contract


class RegistrationNotFoundError(ResolutionError, LookupError):
    def __init__(self, contract: Contract) -> None:
        msg = f"No registration found for {contract}"
        super().__init__(msg)
        self.contract = contract


class MissingDependencyMetadataError(ResolutionError):
    def __init__(self, implementation: type) -> None:
        msg = (
            f"{implementation.__name__} does not have dependency metadata. "
            "Use create_dependency to declare its dependencies explicitly."
        )
        super().__init__(msg)
        self.implementation = implementation
