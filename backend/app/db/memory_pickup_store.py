"""
In-process pickup store.

Used for local runs without Redis and by the test-suite. A single asyncio lock
serializes mutations, which gives the same conditional-write guarantees as
the Redis store within one process.
"""

import asyncio
from typing import Any, Dict, Iterable, List, Mapping, Optional

from backend.app.db.pagination import PickupFilter, PickupPage, encode_cursor
from backend.app.db.pickup_store import (
    PickupChanges,
    PickupExistsError,
    PickupNotFoundError,
    PickupStore,
    apply_changes,
    check_expected,
    new_pickup,
    soft_delete_changes,
    utcnow,
)
from backend.app.models.pickup import Pickup, PickupStatus


class InMemoryPickupStore(PickupStore):
    def __init__(self):
        self._records: Dict[str, Pickup] = {}
        self._seq: Dict[str, int] = {}
        self._counter = 0
        self._lock = asyncio.Lock()

    async def create(self, owner_id: str, fields: Mapping[str, Any]) -> Pickup:
        pickup = new_pickup(owner_id, fields)
        async with self._lock:
            if pickup.id in self._records:
                raise PickupExistsError(pickup.id)
            self._counter += 1
            self._records[pickup.id] = pickup
            self._seq[pickup.id] = self._counter
        return pickup

    async def get(self, pickup_id: str) -> Optional[Pickup]:
        return self._records.get(pickup_id)

    def _current(self, pickup_id: str, expected_status) -> Pickup:
        current = self._records.get(pickup_id)
        if current is None:
            raise PickupNotFoundError(pickup_id)
        check_expected(current, expected_status)
        return current

    async def update(
        self,
        pickup_id: str,
        changes: PickupChanges,
        expected_status: Optional[Iterable[PickupStatus]] = None,
    ) -> Pickup:
        async with self._lock:
            current = self._current(pickup_id, expected_status)
            updated = apply_changes(current, changes)
            self._records[pickup_id] = updated
            return updated

    async def soft_delete(
        self,
        pickup_id: str,
        expected_status: Optional[Iterable[PickupStatus]] = None,
    ) -> Pickup:
        return await self.update(pickup_id, soft_delete_changes(utcnow()), expected_status)

    async def hard_delete(
        self,
        pickup_id: str,
        expected_status: Optional[Iterable[PickupStatus]] = None,
    ) -> Pickup:
        async with self._lock:
            current = self._current(pickup_id, expected_status)
            del self._records[pickup_id]
            del self._seq[pickup_id]
            return current

    async def list(self, pickup_filter: PickupFilter) -> PickupPage:
        after = pickup_filter.after_seq()
        ordered = sorted(self._seq.items(), key=lambda item: item[1], reverse=pickup_filter.reverse)
        matched = []
        for pickup_id, seq in ordered:
            if after is not None:
                if pickup_filter.reverse and seq >= after:
                    continue
                if not pickup_filter.reverse and seq <= after:
                    continue
            pickup = self._records[pickup_id]
            if pickup_filter.matches(pickup):
                matched.append((pickup, seq))
                if len(matched) > pickup_filter.limit:
                    break

        page = matched[:pickup_filter.limit]
        next_cursor = None
        if len(matched) > pickup_filter.limit and page:
            next_cursor = encode_cursor(page[-1][1])
        return PickupPage(pickups=[pickup for pickup, _ in page], next_cursor=next_cursor)

    async def scan_by_status(self, status: PickupStatus) -> List[Pickup]:
        ordered = sorted(self._seq.items(), key=lambda item: item[1])
        return [self._records[pid] for pid, _ in ordered if self._records[pid].status == status]
