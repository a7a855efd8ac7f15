"""
Pickup service.

Each operation follows the same shape: load the record, ask the gate and
the status machine, then write conditioned on the status the decision was
made against. When that condition fails because a concurrent request got
there first, the decision is re-evaluated against the record it lost to.
"""

import functools
import logging
from typing import Any, Callable, List, Mapping, Optional

from backend.app.core.exceptions import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    InternalServerError,
    NotFoundError,
)
from backend.app.db.pagination import PickupFilter, PickupPage
from backend.app.db.pickup_store import (
    ConditionalCheckFailedError,
    PickupNotFoundError,
    PickupStore,
    StoreUnavailableError,
)
from backend.app.domain.pickups.access import can_read, can_write
from backend.app.domain.pickups.decisions import Allow, Decision, DenyReason
from backend.app.domain.pickups.state_machine import (
    decide_accept,
    decide_cancel_acceptance,
    decide_delete,
    decide_update,
)
from backend.app.models.actor import Actor
from backend.app.models.pickup import Pickup, PickupStatus

logger = logging.getLogger("pickups")

# Attempts at a conditional write before giving up on a contended record
MAX_WRITE_ATTEMPTS = 3


def raise_for_denial(decision: Decision) -> Allow:
    """Turn a ``Deny`` into the matching API error; pass ``Allow`` through."""
    if isinstance(decision, Allow):
        return decision
    if decision.reason == DenyReason.NOT_FOUND:
        raise NotFoundError("Pickup")
    if decision.reason == DenyReason.FORBIDDEN:
        raise ForbiddenError(decision.message)
    if decision.reason == DenyReason.CONFLICT:
        raise ConflictError(decision.message)
    raise BadRequestError(decision.message)


def _translate_store_errors(func):
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except PickupNotFoundError:
            raise NotFoundError("Pickup")
        except StoreUnavailableError as exc:
            logger.error("Pickup store unavailable", extra={"operation": func.__name__, "error": str(exc)})
            raise InternalServerError()
    return wrapper


class PickupService:
    def __init__(self, store: PickupStore):
        self.store = store

    async def _load(self, actor: Actor, pickup_id: str) -> Pickup:
        pickup = await self.store.get(pickup_id)
        if pickup is None:
            raise NotFoundError("Pickup")
        raise_for_denial(can_write(actor, pickup))
        return pickup

    async def _transition(
        self,
        actor: Actor,
        pickup_id: str,
        decide: Callable[[Pickup], Decision],
        write: Callable[[Allow], Any],
        operation: str,
    ) -> Pickup:
        pickup = await self._load(actor, pickup_id)
        for attempt in range(1, MAX_WRITE_ATTEMPTS + 1):
            allow = raise_for_denial(decide(pickup))
            try:
                result = await write(allow)
            except ConditionalCheckFailedError as exc:
                logger.info(
                    "Pickup changed concurrently, re-evaluating",
                    extra={
                        "pickup_id": pickup_id,
                        "operation": operation,
                        "current_status": exc.current.status.value,
                        "attempt": attempt,
                    },
                )
                pickup = exc.current
                raise_for_denial(can_write(actor, pickup))
                continue
            logger.info(
                "Pickup %s", operation,
                extra={"pickup_id": pickup_id, "actor_id": actor.id, "status": result.status.value},
            )
            return result
        raise ConflictError("Pickup was modified concurrently, please retry")

    @_translate_store_errors
    async def create(self, actor: Actor, fields: Mapping[str, Any]) -> Pickup:
        return await self.store.create(actor.id, fields)

    @_translate_store_errors
    async def get(self, actor: Actor, pickup_id: str) -> Pickup:
        pickup = await self.store.get(pickup_id)
        if pickup is None:
            raise NotFoundError("Pickup")
        raise_for_denial(can_read(actor, pickup))
        return pickup

    @_translate_store_errors
    async def list(self, actor: Actor, pickup_filter: PickupFilter) -> PickupPage:
        return await self.store.list(pickup_filter)

    @_translate_store_errors
    async def list_available(self, actor: Actor) -> List[Pickup]:
        return await self.store.scan_by_status(PickupStatus.AVAILABLE)

    @_translate_store_errors
    async def update(
        self,
        actor: Actor,
        pickup_id: str,
        fields: Mapping[str, Any],
        requested_status: Optional[PickupStatus] = None,
    ) -> Pickup:
        """
        Update pickup attributes and optionally its status.

        Args:
            actor: Requesting identity
            pickup_id: Pickup to update
            fields: Non-status attributes keyed by model field name
            requested_status: Target status, if the update carries one
        """
        return await self._transition(
            actor,
            pickup_id,
            lambda pickup: decide_update(actor, pickup, fields, requested_status),
            lambda allow: self.store.update(pickup_id, allow.changes, allow.expected_status),
            "updated",
        )

    @_translate_store_errors
    async def accept(self, actor: Actor, pickup_id: str) -> Pickup:
        return await self._transition(
            actor,
            pickup_id,
            lambda pickup: decide_accept(actor, pickup),
            lambda allow: self.store.update(pickup_id, allow.changes, allow.expected_status),
            "accepted",
        )

    @_translate_store_errors
    async def cancel_acceptance(self, actor: Actor, pickup_id: str) -> Pickup:
        return await self._transition(
            actor,
            pickup_id,
            lambda pickup: decide_cancel_acceptance(actor, pickup),
            lambda allow: self.store.update(pickup_id, allow.changes, allow.expected_status),
            "acceptance cancelled",
        )

    @_translate_store_errors
    async def delete(self, actor: Actor, pickup_id: str, hard: bool = False) -> Pickup:
        if hard:
            write = lambda allow: self.store.hard_delete(pickup_id, allow.expected_status)  # noqa: E731
        else:
            write = lambda allow: self.store.soft_delete(pickup_id, allow.expected_status)  # noqa: E731
        return await self._transition(
            actor,
            pickup_id,
            lambda pickup: decide_delete(actor, pickup, hard),
            write,
            "hard deleted" if hard else "deleted",
        )
