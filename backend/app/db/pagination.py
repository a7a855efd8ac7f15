"""
Cursor pagination for pickup listings.

A cursor is the insertion sequence number of the last record handed out,
wrapped in URL-safe base64 so clients treat it as opaque. Resuming from a
sequence number rather than an offset keeps pages stable while new pickups
are being created.
"""

import base64
import binascii
import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import FrozenSet, List, Optional

from backend.app.models.pickup import Pickup, PickupStatus


class InvalidCursorError(ValueError):
    """Raised when a cursor token cannot be decoded."""


def encode_cursor(seq: int) -> str:
    raw = json.dumps({"seq": seq}, separators=(",", ":")).encode()
    return base64.urlsafe_b64encode(raw).decode().rstrip("=")


def decode_cursor(token: str) -> int:
    padded = token + "=" * (-len(token) % 4)
    try:
        payload = json.loads(base64.urlsafe_b64decode(padded.encode()))
        seq = payload["seq"]
    except (binascii.Error, ValueError, KeyError, TypeError) as exc:
        raise InvalidCursorError("Invalid cursor") from exc
    if not isinstance(seq, int) or isinstance(seq, bool) or seq < 0:
        raise InvalidCursorError("Invalid cursor")
    return seq


@dataclass(frozen=True)
class PickupFilter:
    """Listing criteria; every field is optional."""
    statuses: FrozenSet[PickupStatus] = frozenset()
    limit: int = 20
    cursor: Optional[str] = None
    start_requested_time: Optional[datetime] = None
    end_requested_time: Optional[datetime] = None
    reverse: bool = False

    def matches(self, pickup: Pickup) -> bool:
        if self.statuses and pickup.status not in self.statuses:
            return False
        if self.start_requested_time and pickup.requested_time < self.start_requested_time:
            return False
        if self.end_requested_time and pickup.requested_time > self.end_requested_time:
            return False
        return True

    def after_seq(self) -> Optional[int]:
        return decode_cursor(self.cursor) if self.cursor else None


@dataclass
class PickupPage:
    pickups: List[Pickup] = field(default_factory=list)
    next_cursor: Optional[str] = None
