"""
Authorization collaborators.
"""

from .role_permissions import BACKTEST_ROLES, RolePermissionChecker

__all__ = ["RolePermissionChecker", "BACKTEST_ROLES"]
