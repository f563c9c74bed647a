"""Auth-related enums."""

from enum import Enum


class UserRole(str, Enum):
    """
    User roles. Fixed when the account is created.

    - CLIENT: submits complaints and follows them to closure
    - SUPPORT: works assigned complaints
    - ADMIN: manages users, teams, projects and assignment
    """

    CLIENT = "CLIENT"
    ADMIN = "ADMIN"
    SUPPORT = "SUPPORT"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_
