"""Authentication orchestration: provider verification, then account lookup or creation."""

import logging

from simpleidentity.adapters.auth.registry import ProviderRegistry
from simpleidentity.core.logging_safety import account_handle, subject_handle
from simpleidentity.domain.errors import (
    AccountAlreadyExistsError,
    AccountCreationError,
    AccountNotFoundError,
    AccountResolutionError,
    IdentityError,
    ProviderNotFoundError,
)
from simpleidentity.repositories.accounts import AccountsRepository
from simpleidentity.schemas.auth import AuthenticateInput, AuthenticateOutput

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, registry: ProviderRegistry, repository: AccountsRepository) -> None:
        self._registry = registry
        self._repository = repository

    def authenticate(self, request: AuthenticateInput) -> AuthenticateOutput:
        """Verify the caller with its provider and map the subject to an account.

        The repository is only touched after the provider has accepted the
        auth data, so rejected credentials never create or reveal accounts.
        """
        provider_type = request.provider_type
        try:
            provider = self._registry.get(provider_type)
        except ProviderNotFoundError:
            logger.warning("auth.provider_not_found provider=%s", provider_type.value)
            raise

        try:
            result = provider.authenticate(request.auth_data)
        except IdentityError as exc:
            logger.warning(
                "auth.provider_failed provider=%s error=%s",
                provider_type.value,
                type(exc).__name__,
            )
            raise

        subject_id = result.get_id()
        safe_subject = subject_handle(subject_id)

        try:
            account_id = self._repository.resolve_id_by_provider(provider_type, subject_id)
        except AccountNotFoundError:
            pass
        except IdentityError as exc:
            raise AccountResolutionError(f"failed to resolve account: {exc}") from exc
        else:
            logger.info(
                "auth.account_resolved provider=%s subject=%s account_id=%s",
                provider_type.value,
                safe_subject,
                account_handle(account_id),
            )
            return AuthenticateOutput(account_id=account_id, is_new=False)

        try:
            account_id = self._repository.create(provider_type, subject_id)
        except AccountAlreadyExistsError:
            logger.info(
                "auth.account_create_conflict provider=%s subject=%s",
                provider_type.value,
                safe_subject,
            )
            raise
        except IdentityError as exc:
            raise AccountCreationError(f"failed to create account: {exc}") from exc

        logger.info(
            "auth.account_created provider=%s subject=%s account_id=%s",
            provider_type.value,
            safe_subject,
            account_handle(account_id),
        )
        return AuthenticateOutput(account_id=account_id, is_new=True)


__all__ = ["AuthService"]
