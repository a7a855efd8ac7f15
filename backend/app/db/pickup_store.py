"""
Pickup Record Store contract.

The store exclusively owns the persisted representation of pickups. Callers
hand it typed partial updates (field -> ``Set(value)`` / ``REMOVE``) and an
optional status precondition; implementations translate that into their own
atomic conditional write.

Conventions:
    * ``get`` returns ``None`` for a missing record; it never raises for "not found".
    * Mutations raise ``PickupNotFoundError`` when the record is missing at write time.
    * Mutations given ``expected_status`` raise ``ConditionalCheckFailedError``
      carrying the stored record when its status is not one of the expected ones.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from backend.app.db.pagination import PickupFilter, PickupPage
from backend.app.models.pickup import Pickup, PickupStatus


class PickupStoreError(Exception):
    """Base class for pickup store failures."""


class PickupNotFoundError(PickupStoreError):
    def __init__(self, pickup_id: str):
        self.pickup_id = pickup_id
        super().__init__(f"Pickup {pickup_id} not found")


class PickupExistsError(PickupStoreError):
    def __init__(self, pickup_id: str):
        self.pickup_id = pickup_id
        super().__init__(f"Pickup {pickup_id} already exists")


class ConditionalCheckFailedError(PickupStoreError):
    """The stored status no longer satisfies the write precondition."""

    def __init__(self, current: Pickup):
        self.current = current
        super().__init__(
            f"Pickup {current.id} precondition failed, current status is: {current.status.value}"
        )


class StoreUnavailableError(PickupStoreError):
    """The backing store could not be reached."""


@dataclass(frozen=True)
class Set:
    """Update instruction: set the attribute to ``value``."""
    value: Any


class _Remove:
    """Update instruction: remove the attribute from the record."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "REMOVE"


REMOVE = _Remove()

UpdateInstruction = Union[Set, _Remove]
PickupChanges = Mapping[str, UpdateInstruction]

# Attributes no update may touch
IMMUTABLE_FIELDS = frozenset({"id", "user_id", "created_at"})


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_pickup(owner_id: str, fields: Mapping[str, Any], now: Optional[datetime] = None) -> Pickup:
    """Build the initial record for ``create``: fresh id, status ``pending``."""
    now = now or utcnow()
    return Pickup(
        id=str(uuid.uuid4()),
        user_id=owner_id,
        status=PickupStatus.PENDING,
        location=fields["location"],
        estimated_weight=fields["estimated_weight"],
        waste_type=fields["waste_type"],
        requested_time=fields["requested_time"],
        created_at=now,
        updated_at=now,
    )


def apply_changes(pickup: Pickup, changes: PickupChanges, now: Optional[datetime] = None) -> Pickup:
    """Merge update instructions into a record, returning the new value."""
    data: Dict[str, Any] = pickup.model_dump()
    for name, instruction in changes.items():
        if name in IMMUTABLE_FIELDS or name not in data:
            raise ValueError(f"Field '{name}' cannot be updated")
        if isinstance(instruction, Set):
            data[name] = instruction.value
        elif instruction is REMOVE:
            data[name] = None
        else:
            raise TypeError(f"Unsupported update instruction for '{name}': {instruction!r}")
    data["updated_at"] = now or utcnow()
    return Pickup.model_validate(data)


def soft_delete_changes(now: datetime) -> Dict[str, UpdateInstruction]:
    return {
        "status": Set(PickupStatus.DELETED),
        "deleted_at": Set(now),
        "driver_id": REMOVE,
    }


def check_expected(pickup: Pickup, expected_status: Optional[Iterable[PickupStatus]]) -> None:
    if expected_status is not None and pickup.status not in set(expected_status):
        raise ConditionalCheckFailedError(pickup)


class PickupStore:
    """Abstract pickup store; see module docstring for the contract."""

    async def create(self, owner_id: str, fields: Mapping[str, Any]) -> Pickup:
        raise NotImplementedError

    async def get(self, pickup_id: str) -> Optional[Pickup]:
        raise NotImplementedError

    async def update(
        self,
        pickup_id: str,
        changes: PickupChanges,
        expected_status: Optional[Iterable[PickupStatus]] = None,
    ) -> Pickup:
        raise NotImplementedError

    async def soft_delete(
        self,
        pickup_id: str,
        expected_status: Optional[Iterable[PickupStatus]] = None,
    ) -> Pickup:
        raise NotImplementedError

    async def hard_delete(
        self,
        pickup_id: str,
        expected_status: Optional[Iterable[PickupStatus]] = None,
    ) -> Pickup:
        raise NotImplementedError

    async def list(self, pickup_filter: PickupFilter) -> PickupPage:
        raise NotImplementedError

    async def scan_by_status(self, status: PickupStatus) -> List[Pickup]:
        raise NotImplementedError

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None
