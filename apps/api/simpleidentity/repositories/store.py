"""Key-value store contract used by the account repository.

Items live in a single table addressed by a partition key (``PK``) and a
sort key (``SK``). Backends must offer strongly consistent point reads and
an all-or-nothing transactional write in which every put can be guarded by
a "key must not exist" condition.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

PK = "PK"
SK = "SK"

REASON_NONE = "None"
REASON_CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailed"

Item = dict[str, Any]


class StoreError(Exception):
    """Raised for backend failures unrelated to write conditions."""


class TransactionCanceledError(StoreError):
    """Raised when a transactional write is rejected as a unit.

    ``reasons`` holds one entry per put, in request order: ``"None"`` for puts
    that would have succeeded and a failure code for the ones that did not.
    """

    def __init__(self, reasons: Sequence[str]) -> None:
        self.reasons = list(reasons)
        super().__init__(f"transaction cancelled, reasons: [{', '.join(self.reasons)}]")


@dataclass(slots=True, frozen=True)
class ConditionalPut:
    item: Item
    must_not_exist: bool = True

    @property
    def key(self) -> tuple[str, str]:
        return (self.item[PK], self.item[SK])


class KeyValueStore(ABC):
    @abstractmethod
    def get_item(self, pk: str, sk: str) -> Item | None:
        """Return a copy of the item stored under the key, if any."""

    @abstractmethod
    def query(self, pk: str, sk: str | None = None) -> list[Item]:
        """Return copies of the items in a partition, optionally narrowed to one sort key."""

    @abstractmethod
    def transact_write(self, puts: Sequence[ConditionalPut]) -> None:
        """Apply every put or none of them."""


__all__ = [
    "ConditionalPut",
    "Item",
    "KeyValueStore",
    "PK",
    "REASON_CONDITIONAL_CHECK_FAILED",
    "REASON_NONE",
    "SK",
    "StoreError",
    "TransactionCanceledError",
]
