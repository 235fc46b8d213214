"""
User role enumerations.
"""

from enum import StrEnum


class UserRole(StrEnum):
    """Roles known to the permission checker."""

    CLIENT = "client"
    RESEARCHER = "researcher"
    PORTFOLIO_MANAGER = "portfolio_manager"
    ADMIN = "admin"

    @classmethod
    def from_string(cls, value: str) -> "UserRole":
        """
        Convert string to UserRole, case-insensitively.

        Raises:
            ValueError: If role is not supported
        """
        value_lower = str(value).strip().lower()
        for role in cls:
            if role.value == value_lower:
                return role
        raise ValueError(
            f"Unsupported role: {value}. Supported roles: {', '.join([r.value for r in cls])}"
        )
