"""
Decision results shared by the authorization gate and the status machine.
"""

import enum
from dataclasses import dataclass, field
from typing import FrozenSet, Mapping, Optional, Union

from backend.app.db.pickup_store import UpdateInstruction
from backend.app.models.pickup import PickupStatus


class DenyReason(str, enum.Enum):
    BAD_REQUEST = "bad_request"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class Allow:
    """
    The actor may proceed.

    ``changes`` are the attribute instructions to write; ``expected_status``
    is the precondition the write is conditioned on (``None`` = unconditional).
    """
    changes: Mapping[str, UpdateInstruction] = field(default_factory=dict)
    expected_status: Optional[FrozenSet[PickupStatus]] = None


@dataclass(frozen=True)
class Deny:
    reason: DenyReason
    message: str


Decision = Union[Allow, Deny]

NOT_FOUND = Deny(DenyReason.NOT_FOUND, "Pickup not found")
NOT_AUTHORIZED = Deny(DenyReason.FORBIDDEN, "Not authorized")
