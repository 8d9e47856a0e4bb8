"""In-memory key-value store transaction tests."""

from __future__ import annotations

import unittest

from simpleidentity.repositories.memory import InMemoryKeyValueStore
from simpleidentity.repositories.store import ConditionalPut, StoreError, TransactionCanceledError


def _item(pk: str, sk: str, **attributes: str) -> dict[str, str]:
    return {"PK": pk, "SK": sk, **attributes}


class InMemoryKeyValueStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = InMemoryKeyValueStore()

    def test_transaction_applies_every_put(self) -> None:
        self.store.transact_write([ConditionalPut(_item("a", "1")), ConditionalPut(_item("b", "1"))])

        self.assertEqual(len(self.store), 2)
        self.assertEqual(self.store.write_count, 2)
        self.assertEqual(self.store.get_item("a", "1"), {"PK": "a", "SK": "1"})

    def test_failed_condition_cancels_whole_transaction(self) -> None:
        self.store.put_item(_item("b", "1", value="first"))

        with self.assertRaises(TransactionCanceledError) as ctx:
            self.store.transact_write(
                [
                    ConditionalPut(_item("a", "1")),
                    ConditionalPut(_item("b", "1", value="replacement")),
                ]
            )

        self.assertEqual(ctx.exception.reasons, ["None", "ConditionalCheckFailed"])
        self.assertIsNone(self.store.get_item("a", "1"))
        self.assertEqual(self.store.get_item("b", "1")["value"], "first")

    def test_unconditional_put_overwrites(self) -> None:
        self.store.put_item(_item("a", "1", value="old"))

        self.store.transact_write([ConditionalPut(_item("a", "1", value="new"), must_not_exist=False)])

        self.assertEqual(self.store.get_item("a", "1")["value"], "new")

    def test_duplicate_keys_in_one_transaction_are_rejected(self) -> None:
        with self.assertRaises(StoreError):
            self.store.transact_write([ConditionalPut(_item("a", "1")), ConditionalPut(_item("a", "1"))])

        self.assertEqual(len(self.store), 0)

    def test_query_filters_partition_and_sorts_by_sort_key(self) -> None:
        self.store.put_item(_item("p", "b"))
        self.store.put_item(_item("p", "a"))
        self.store.put_item(_item("q", "a"))

        self.assertEqual([item["SK"] for item in self.store.query("p")], ["a", "b"])
        self.assertEqual(self.store.query("p", "b"), [{"PK": "p", "SK": "b"}])
        self.assertEqual(self.store.query("missing"), [])

    def test_returned_items_are_copies(self) -> None:
        self.store.put_item(_item("a", "1", value="stored"))

        self.store.get_item("a", "1")["value"] = "mutated"

        self.assertEqual(self.store.get_item("a", "1")["value"], "stored")

    def test_injected_failure_fires_once(self) -> None:
        self.store.failure_message = "throttled"

        with self.assertRaisesRegex(StoreError, "throttled"):
            self.store.query("p")
        self.assertEqual(self.store.query("p"), [])


if __name__ == "__main__":
    unittest.main()
