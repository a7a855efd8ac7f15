"""
The authenticated identity performing a request.
"""

from dataclasses import dataclass

from backend.app.models.enums import UserRole


@dataclass(frozen=True)
class Actor:
    id: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
