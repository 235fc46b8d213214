"""
Role-based backtest permissions.
"""

from collections.abc import Iterable

from strategy_backtester.core.enums import UserRole
from strategy_backtester.core.interfaces.collaborators import IPermissionChecker

BACKTEST_ROLES = frozenset(
    {UserRole.RESEARCHER, UserRole.PORTFOLIO_MANAGER, UserRole.ADMIN}
)


class RolePermissionChecker(IPermissionChecker):
    """Allows backtests for a fixed set of roles."""

    def __init__(self, allowed_roles: Iterable[UserRole] = BACKTEST_ROLES) -> None:
        self.allowed_roles = frozenset(allowed_roles)

    def can_run_backtest(self, role: UserRole) -> bool:
        try:
            role = UserRole.from_string(role)
        except ValueError:
            return False
        return role in self.allowed_roles
