"""Account repository: links provider identities to internal account ids."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
import logging
from uuid import uuid4

from simpleidentity.core.logging_safety import account_handle, subject_handle
from simpleidentity.domain.errors import AccountAlreadyExistsError, AccountNotFoundError, RepositoryError
from simpleidentity.repositories.store import (
    PK,
    REASON_CONDITIONAL_CHECK_FAILED,
    REASON_NONE,
    SK,
    ConditionalPut,
    KeyValueStore,
    StoreError,
    TransactionCanceledError,
)
from simpleidentity.schemas.auth import AccountID, ProviderType

logger = logging.getLogger(__name__)

IDENTITY_SK = "IDENTITY"
ACCOUNT_PK_FMT = "ACNT#{account_id}"
PROVIDER_KEY_FMT = "PVDR#{provider_type}#{provider_id}"

_CREATE_OPERATIONS = ("PUT provider identity record", "PUT account record")


def provider_key(provider_type: ProviderType, provider_id: str) -> str:
    return PROVIDER_KEY_FMT.format(provider_type=ProviderType(provider_type).value, provider_id=provider_id)


def account_key(account_id: str) -> str:
    return ACCOUNT_PK_FMT.format(account_id=account_id)


def new_account_id() -> str:
    return str(uuid4())


def iso8601_utc(moment: datetime) -> str:
    return moment.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass(slots=True, frozen=True)
class AccountProviderRecord:
    """Payload shared by the identity record and its account-side copy."""

    account_id: str
    provider_type: str
    provider_id: str
    date_created: str

    def to_item(self, *, pk: str, sk: str) -> dict[str, str]:
        return {
            PK: pk,
            SK: sk,
            "AccountID": self.account_id,
            "ProviderType": self.provider_type,
            "ProviderID": self.provider_id,
            "DateCreated": self.date_created,
        }


class AccountsRepository(ABC):
    @abstractmethod
    def resolve_id_by_provider(self, provider_type: ProviderType, provider_id: str) -> AccountID:
        """Return the account linked to the provider identity."""

    @abstractmethod
    def create(self, provider_type: ProviderType, provider_id: str) -> AccountID:
        """Create an account for a provider identity that has none yet."""


class KeyValueAccountsRepository(AccountsRepository):
    """Single-table repository keyed by composite provider identity.

    ``create`` writes two records in one transaction, each guarded by a
    "key must not exist" condition:

    - identity record ``PVDR#<type>#<id>`` / ``IDENTITY``, the lookup key
    - account record ``ACNT#<account id>`` / ``PVDR#<type>#<id>``

    Whichever concurrent create commits first wins; the others see the
    identity condition fail and get ``AccountAlreadyExistsError``.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        id_generator: Callable[[], str] = new_account_id,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._store = store
        self._id_generator = id_generator
        self._clock = clock

    def resolve_id_by_provider(self, provider_type: ProviderType, provider_id: str) -> AccountID:
        try:
            items = self._store.query(provider_key(provider_type, provider_id), IDENTITY_SK)
        except StoreError as exc:
            raise RepositoryError(f"failed to query provider identity: {exc}") from exc

        if not items:
            raise AccountNotFoundError(
                f"account not found for provider type {ProviderType(provider_type).value}"
            )
        if len(items) > 1:
            # Result order is not guaranteed; picking one would hide a broken invariant.
            raise RepositoryError(
                f"unexpected multiple accounts found for provider type {ProviderType(provider_type).value}"
            )

        account_id = items[0].get("AccountID")
        if not isinstance(account_id, str) or not account_id:
            raise RepositoryError("provider identity record has no account id")
        return AccountID(account_id)

    def create(self, provider_type: ProviderType, provider_id: str) -> AccountID:
        account_id = self._id_generator()
        identity_key = provider_key(provider_type, provider_id)
        record = AccountProviderRecord(
            account_id=account_id,
            provider_type=ProviderType(provider_type).value,
            provider_id=provider_id,
            date_created=iso8601_utc(self._clock()),
        )
        puts = [
            ConditionalPut(item=record.to_item(pk=identity_key, sk=IDENTITY_SK)),
            ConditionalPut(item=record.to_item(pk=account_key(account_id), sk=identity_key)),
        ]

        try:
            self._store.transact_write(puts)
        except TransactionCanceledError as exc:
            operation = _failed_operation(exc.reasons)
            if REASON_CONDITIONAL_CHECK_FAILED in exc.reasons:
                logger.info(
                    "accounts.create_conflict provider=%s subject=%s operation=%s",
                    record.provider_type,
                    subject_handle(provider_id),
                    operation,
                )
                raise AccountAlreadyExistsError(
                    f"provider ID or account already exists ({operation})"
                ) from exc
            raise RepositoryError(f"failed to execute transaction when creating account ({operation})") from exc
        except StoreError as exc:
            raise RepositoryError(f"failed to execute transaction when creating account: {exc}") from exc

        logger.info(
            "accounts.created provider=%s subject=%s account_id=%s",
            record.provider_type,
            subject_handle(provider_id),
            account_handle(account_id),
        )
        return AccountID(account_id)


def _failed_operation(reasons: list[str]) -> str:
    for index, reason in enumerate(reasons):
        if reason != REASON_NONE:
            name = _CREATE_OPERATIONS[index] if index < len(_CREATE_OPERATIONS) else "unknown"
            return f"operation: {name}, index: {index}, reason: {reason}"
    return "operation: unknown"


__all__ = [
    "AccountProviderRecord",
    "AccountsRepository",
    "KeyValueAccountsRepository",
    "account_key",
    "iso8601_utc",
    "new_account_id",
    "provider_key",
]
