"""
User roles enumeration.

Defines the role types carried in the identity token's ``role`` claim.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        USER: Requests waste pickups
        DRIVER: Accepts and performs pickups
        ADMIN: Superuser with access to every resource
    """
    USER = "user"
    DRIVER = "driver"
    ADMIN = "admin"


class PreferredContact(str, enum.Enum):
    CALL = "CALL"
    TEXT = "TEXT"
