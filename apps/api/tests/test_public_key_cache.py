"""Public-key cache expiry and replacement tests."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime, timedelta
import threading
import unittest

from simpleidentity.adapters.auth.certs import PublicKeyCache


class _MutableClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class PublicKeyCacheTests(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = _MutableClock(datetime(2026, 1, 1, 9, 0, tzinfo=UTC))
        self.cache = PublicKeyCache(clock=self.clock)

    def test_unknown_key_id_returns_none(self) -> None:
        self.assertIsNone(self.cache.get("missing"))

    def test_returns_key_until_expiry(self) -> None:
        self.cache.add("kid-1", "key-material", self.clock.now + timedelta(minutes=5))

        self.assertEqual(self.cache.get("kid-1"), "key-material")

        self.clock.now += timedelta(minutes=5)
        self.assertIsNone(self.cache.get("kid-1"))

    def test_add_replaces_existing_entry(self) -> None:
        self.cache.add("kid-1", "old", self.clock.now + timedelta(minutes=1))
        self.cache.add("kid-1", "new", self.clock.now + timedelta(hours=1))

        self.clock.now += timedelta(minutes=30)
        self.assertEqual(self.cache.get("kid-1"), "new")
        self.assertEqual(len(self.cache), 1)

    def test_naive_expiry_is_treated_as_utc(self) -> None:
        self.cache.add("kid-1", "key", datetime(2026, 1, 1, 10, 0))

        self.assertEqual(self.cache.get("kid-1"), "key")
        self.clock.now = datetime(2026, 1, 1, 10, 0, tzinfo=UTC)
        self.assertIsNone(self.cache.get("kid-1"))

    def test_reset_clears_every_entry(self) -> None:
        self.cache.add("kid-1", "a", self.clock.now + timedelta(hours=1))
        self.cache.add("kid-2", "b", self.clock.now + timedelta(hours=1))

        self.cache.reset()

        self.assertEqual(len(self.cache), 0)
        self.assertIsNone(self.cache.get("kid-1"))

    def test_concurrent_add_get_and_reset_stay_consistent(self) -> None:
        workers = 8
        rounds = 200
        barrier = threading.Barrier(workers)
        expires_at = self.clock.now + timedelta(hours=1)
        kids = [f"kid-{index}" for index in range(workers)]

        def churn(worker: int) -> list[str]:
            kid = kids[worker]
            unexpected: list[str] = []
            barrier.wait()
            for round_index in range(rounds):
                self.cache.add(kid, f"{kid}-key", expires_at)
                key = self.cache.get(kid)
                # Another worker's reset may clear the entry, but never swap in a foreign key.
                if key is not None and key != f"{kid}-key":
                    unexpected.append(key)
                if worker == 0 and round_index % 20 == 0:
                    self.cache.reset()
            return unexpected

        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(churn, range(workers)))

        self.assertEqual(results, [[] for _ in range(workers)])
        self.assertLessEqual(len(self.cache), workers)
        for kid in kids:
            self.cache.add(kid, f"{kid}-key", expires_at)
        self.assertEqual(len(self.cache), workers)
        self.assertEqual([self.cache.get(kid) for kid in kids], [f"{kid}-key" for kid in kids])


if __name__ == "__main__":
    unittest.main()
