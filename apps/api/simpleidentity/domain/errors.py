"""Domain error taxonomy for provider authentication and account resolution."""


class IdentityError(Exception):
    """Base class for every error raised by the identity core."""


class ProviderNotFoundError(IdentityError):
    """Raised when no provider is registered for the requested type."""

    def __init__(self, provider_type: str) -> None:
        self.provider_type = provider_type
        super().__init__(f"provider not found: {provider_type}")


class MissingRequiredAuthDataError(IdentityError):
    """Raised when the opaque auth data lacks a field the provider needs."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"missing required field: {field}")


class ProviderExchangeError(IdentityError):
    """Raised when a provider's backend cannot be reached or rejects the exchange."""


class TokenVerificationError(IdentityError):
    """Raised when an identity token fails signature or claim validation."""


class SubjectMismatchError(TokenVerificationError):
    """Raised when the device-asserted user id differs from the token subject."""


class AccountNotFoundError(IdentityError):
    """Raised when no account is linked to a provider identity."""


class AccountAlreadyExistsError(IdentityError):
    """Raised when a conditional create finds the provider identity or account id taken."""


class RepositoryError(IdentityError):
    """Raised for unexpected persistence failures."""


class AccountResolutionError(IdentityError):
    """Raised by the orchestrator when account lookup fails for a reason other than absence."""


class AccountCreationError(IdentityError):
    """Raised by the orchestrator when account creation fails unexpectedly."""


__all__ = [
    "AccountAlreadyExistsError",
    "AccountCreationError",
    "AccountNotFoundError",
    "AccountResolutionError",
    "IdentityError",
    "MissingRequiredAuthDataError",
    "ProviderExchangeError",
    "ProviderNotFoundError",
    "RepositoryError",
    "SubjectMismatchError",
    "TokenVerificationError",
]
