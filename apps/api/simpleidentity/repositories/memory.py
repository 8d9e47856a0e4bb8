"""In-memory key-value store used by the service scaffold and tests."""

from __future__ import annotations

from collections.abc import Sequence
import copy
import threading

from simpleidentity.repositories.store import (
    PK,
    REASON_CONDITIONAL_CHECK_FAILED,
    REASON_NONE,
    SK,
    ConditionalPut,
    Item,
    KeyValueStore,
    StoreError,
    TransactionCanceledError,
)


class InMemoryKeyValueStore(KeyValueStore):
    """Deterministic single-table store with atomic conditional transactions.

    A single lock serialises every operation, so reads are strongly
    consistent and a transaction's conditions are evaluated and applied
    without interleaving. ``failure_message`` injects a one-shot backend
    failure into the next operation.
    """

    def __init__(self) -> None:
        self._items: dict[tuple[str, str], Item] = {}
        self._lock = threading.Lock()
        self.read_count = 0
        self.write_count = 0
        self.failure_message: str | None = None

    def get_item(self, pk: str, sk: str) -> Item | None:
        with self._lock:
            self._maybe_raise_failure()
            self.read_count += 1
            item = self._items.get((pk, sk))
            return copy.deepcopy(item) if item is not None else None

    def query(self, pk: str, sk: str | None = None) -> list[Item]:
        with self._lock:
            self._maybe_raise_failure()
            self.read_count += 1
            matches = [
                copy.deepcopy(item)
                for (item_pk, item_sk), item in self._items.items()
                if item_pk == pk and (sk is None or item_sk == sk)
            ]
        matches.sort(key=lambda item: item[SK])
        return matches

    def transact_write(self, puts: Sequence[ConditionalPut]) -> None:
        if not puts:
            return

        keys = [put.key for put in puts]
        if len(set(keys)) != len(keys):
            raise StoreError("transaction cannot include multiple operations on one item")

        with self._lock:
            self._maybe_raise_failure()
            reasons = [
                REASON_CONDITIONAL_CHECK_FAILED if put.must_not_exist and put.key in self._items else REASON_NONE
                for put in puts
            ]
            if any(reason != REASON_NONE for reason in reasons):
                raise TransactionCanceledError(reasons)

            for put in puts:
                self._items[put.key] = copy.deepcopy(put.item)
            self.write_count += len(puts)

    def put_item(self, item: Item) -> None:
        """Unconditional write, used to seed fixtures."""
        with self._lock:
            self._items[(item[PK], item[SK])] = copy.deepcopy(item)
            self.write_count += 1

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def _maybe_raise_failure(self) -> None:
        if self.failure_message is None:
            return

        message = self.failure_message
        self.failure_message = None
        raise StoreError(message)


__all__ = ["InMemoryKeyValueStore"]
