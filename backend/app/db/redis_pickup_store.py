"""
Redis-backed pickup store.

Key layout (``prefix`` defaults to ``pickups``):
    {prefix}:pickup:{id}        JSON document of the record
    {prefix}:seq                insertion counter
    {prefix}:index              sorted set of ids scored by insertion sequence
    {prefix}:status:{status}    sorted set of ids per status, same scores

Conditional writes use optimistic locking (WATCH/MULTI/EXEC): the record key
is watched, the precondition is checked against the stored value, and the
transaction is retried if another writer touched the key in between.
"""

import functools
import json
import logging
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError
from redis.exceptions import WatchError

from backend.app.db.pagination import PickupFilter, PickupPage, encode_cursor
from backend.app.db.pickup_store import (
    PickupChanges,
    PickupExistsError,
    PickupNotFoundError,
    PickupStore,
    StoreUnavailableError,
    apply_changes,
    check_expected,
    new_pickup,
    soft_delete_changes,
    utcnow,
)
from backend.app.models.pickup import Pickup, PickupStatus

logger = logging.getLogger(__name__)

SCAN_BATCH = 100


def _unavailable_on_connection_error(func):
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except (RedisConnectionError, RedisTimeoutError) as exc:
            logger.error("Pickup store unreachable", extra={"operation": func.__name__, "error": str(exc)})
            raise StoreUnavailableError(str(exc)) from exc
    return wrapper


def _text(value: Any) -> str:
    return value.decode() if isinstance(value, bytes) else value


class RedisPickupStore(PickupStore):
    def __init__(self, client, prefix: str = "pickups"):
        self.redis = client
        self.prefix = prefix

    def _key(self, pickup_id: str) -> str:
        return f"{self.prefix}:pickup:{pickup_id}"

    def _status_key(self, status: PickupStatus) -> str:
        return f"{self.prefix}:status:{status.value}"

    @property
    def _index_key(self) -> str:
        return f"{self.prefix}:index"

    @property
    def _seq_key(self) -> str:
        return f"{self.prefix}:seq"

    @staticmethod
    def _load(raw) -> Pickup:
        return Pickup.model_validate(json.loads(raw))

    @staticmethod
    def _dump(pickup: Pickup) -> str:
        return json.dumps(pickup.to_document())

    @_unavailable_on_connection_error
    async def create(self, owner_id: str, fields: Mapping[str, Any]) -> Pickup:
        pickup = new_pickup(owner_id, fields)
        key = self._key(pickup.id)
        seq = await self.redis.incr(self._seq_key)
        async with self.redis.pipeline(transaction=True) as pipe:
            while True:
                try:
                    await pipe.watch(key)
                    if await pipe.exists(key):
                        raise PickupExistsError(pickup.id)
                    pipe.multi()
                    pipe.set(key, self._dump(pickup), nx=True)
                    pipe.zadd(self._index_key, {pickup.id: seq})
                    pipe.zadd(self._status_key(pickup.status), {pickup.id: seq})
                    await pipe.execute()
                    break
                except WatchError:
                    continue
        logger.info("Pickup created", extra={"pickup_id": pickup.id, "user_id": owner_id})
        return pickup

    @_unavailable_on_connection_error
    async def get(self, pickup_id: str) -> Optional[Pickup]:
        raw = await self.redis.get(self._key(pickup_id))
        return self._load(raw) if raw is not None else None

    async def _conditional_write(
        self,
        pickup_id: str,
        changes: Optional[PickupChanges],
        expected_status: Optional[Iterable[PickupStatus]],
    ) -> Pickup:
        """Apply ``changes`` (or delete when ``None``) under WATCH; returns the resulting or removed record."""
        key = self._key(pickup_id)
        expected = list(expected_status) if expected_status is not None else None
        async with self.redis.pipeline(transaction=True) as pipe:
            while True:
                try:
                    await pipe.watch(key)
                    raw = await pipe.get(key)
                    if raw is None:
                        raise PickupNotFoundError(pickup_id)
                    current = self._load(raw)
                    check_expected(current, expected)
                    seq = await pipe.zscore(self._index_key, pickup_id)

                    pipe.multi()
                    if changes is None:
                        result = current
                        pipe.delete(key)
                        pipe.zrem(self._index_key, pickup_id)
                        pipe.zrem(self._status_key(current.status), pickup_id)
                    else:
                        result = apply_changes(current, changes)
                        pipe.set(key, self._dump(result))
                        if result.status != current.status and seq is not None:
                            pipe.zrem(self._status_key(current.status), pickup_id)
                            pipe.zadd(self._status_key(result.status), {pickup_id: seq})
                    await pipe.execute()
                    return result
                except WatchError:
                    logger.debug("Pickup write raced, retrying", extra={"pickup_id": pickup_id})
                    continue

    @_unavailable_on_connection_error
    async def update(
        self,
        pickup_id: str,
        changes: PickupChanges,
        expected_status: Optional[Iterable[PickupStatus]] = None,
    ) -> Pickup:
        return await self._conditional_write(pickup_id, changes, expected_status)

    @_unavailable_on_connection_error
    async def soft_delete(
        self,
        pickup_id: str,
        expected_status: Optional[Iterable[PickupStatus]] = None,
    ) -> Pickup:
        return await self._conditional_write(pickup_id, soft_delete_changes(utcnow()), expected_status)

    @_unavailable_on_connection_error
    async def hard_delete(
        self,
        pickup_id: str,
        expected_status: Optional[Iterable[PickupStatus]] = None,
    ) -> Pickup:
        removed = await self._conditional_write(pickup_id, None, expected_status)
        logger.info("Pickup hard deleted", extra={"pickup_id": pickup_id})
        return removed

    async def _scan_ids(self, source_key: str, after: Optional[int], reverse: bool):
        """One batch of ``(id, seq)`` pairs strictly past ``after`` in scan order."""
        if reverse:
            upper = f"({after}" if after is not None else "+inf"
            rows = await self.redis.zrevrangebyscore(
                source_key, upper, "-inf", start=0, num=SCAN_BATCH, withscores=True
            )
        else:
            lower = f"({after}" if after is not None else "-inf"
            rows = await self.redis.zrangebyscore(
                source_key, lower, "+inf", start=0, num=SCAN_BATCH, withscores=True
            )
        return [(_text(member), int(score)) for member, score in rows]

    @_unavailable_on_connection_error
    async def list(self, pickup_filter: PickupFilter) -> PickupPage:
        after = pickup_filter.after_seq()
        if len(pickup_filter.statuses) == 1:
            (only,) = tuple(pickup_filter.statuses)
            source_key = self._status_key(only)
        else:
            source_key = self._index_key

        matched: List[Tuple[Pickup, int]] = []
        # One extra match tells us whether another page exists
        while len(matched) <= pickup_filter.limit:
            batch = await self._scan_ids(source_key, after, pickup_filter.reverse)
            if not batch:
                break
            after = batch[-1][1]
            raws = await self.redis.mget([self._key(pickup_id) for pickup_id, _ in batch])
            for (pickup_id, seq), raw in zip(batch, raws):
                if raw is None:
                    continue
                pickup = self._load(raw)
                if pickup_filter.matches(pickup):
                    matched.append((pickup, seq))
                    if len(matched) > pickup_filter.limit:
                        break

        page = matched[:pickup_filter.limit]
        next_cursor = None
        if len(matched) > pickup_filter.limit and page:
            next_cursor = encode_cursor(page[-1][1])
        return PickupPage(pickups=[pickup for pickup, _ in page], next_cursor=next_cursor)

    @_unavailable_on_connection_error
    async def scan_by_status(self, status: PickupStatus) -> List[Pickup]:
        ids = [_text(member) for member in await self.redis.zrange(self._status_key(status), 0, -1)]
        if not ids:
            return []
        raws = await self.redis.mget([self._key(pickup_id) for pickup_id in ids])
        return [self._load(raw) for raw in raws if raw is not None]

    async def ping(self) -> bool:
        try:
            return bool(await self.redis.ping())
        except (RedisConnectionError, RedisTimeoutError):
            return False

    async def close(self) -> None:
        await self.redis.aclose()
