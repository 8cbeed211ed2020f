"""Tests for role based capability checks."""

import pytest

from app.auth.models.user import Role, User
from app.auth.permissions import AVAILABLE_PERMISSIONS, Permissions


def user_with(*role_names: str) -> User:
    return User(
        name="Test User",
        email="user@example.com",
        roles=[Role(name=name) for name in role_names],
    )


@pytest.fixture
def permissions():
    return Permissions.from_roles([])


class TestSystemRoles:
    def test_admin_has_every_permission(self, permissions):
        admin = user_with("ADMIN")
        for module, actions in AVAILABLE_PERMISSIONS.items():
            for action in actions:
                assert permissions.has(admin, module, action)

    @pytest.mark.parametrize(
        ("module", "action", "expected"),
        [
            ("dashboard", "view", True),
            ("dashboard", "view_feeds", True),
            ("reports", "view", True),
            ("orders", "view", True),
            ("logs", "view", True),
            ("support", "view", True),
            ("users", "delete", False),
            ("settings", "edit", False),
        ],
    )
    def test_manager(self, permissions, module, action, expected):
        assert permissions.has(user_with("MANAGER"), module, action) is expected

    def test_support_sees_feeds_but_not_reports(self, permissions):
        support = user_with("SUPPORT")
        assert permissions.has(support, "dashboard", "view_feeds")
        assert not permissions.has(support, "dashboard", "view")
        assert not permissions.has(support, "reports", "view")

    @pytest.mark.parametrize("role", ["RESTAURANT_OWNER", "DRIVER", "CUSTOMER"])
    def test_tenant_roles_have_no_dashboard_access(self, permissions, role):
        user = user_with(role)
        assert not permissions.has(user, "dashboard", "view")
        assert not permissions.has(user, "dashboard", "view_feeds")

    def test_customer_has_nothing(self, permissions):
        assert not permissions.has(user_with("CUSTOMER"), "orders", "view")

    def test_role_names_are_case_insensitive(self, permissions):
        assert permissions.has(user_with("admin"), "reports", "view")

    def test_user_without_roles(self, permissions):
        assert not permissions.has(user_with(), "reports", "view")


class TestCustomRoles:
    def test_grants_come_from_role_row(self):
        analyst = Role(name="ANALYST", permissions={"reports": ["view", "export"]})
        permissions = Permissions.from_roles([analyst])

        assert permissions.has(user_with("ANALYST"), "reports", "export")
        assert not permissions.has(user_with("ANALYST"), "orders", "view")

    def test_unknown_modules_and_actions_are_ignored(self):
        role = Role(name="ODD", permissions={"reports": ["view", "launch"], "rockets": ["view"]})
        permissions = Permissions.from_roles([role])
        odd = user_with("ODD")

        assert permissions.has(odd, "reports", "view")
        assert not permissions.has(odd, "reports", "launch")
        assert not permissions.has(odd, "rockets", "view")

    def test_system_role_rows_cannot_widen_grants(self):
        support_row = Role(name="SUPPORT", permissions={"reports": ["view"]})
        permissions = Permissions.from_roles([support_row])

        assert not permissions.has(user_with("SUPPORT"), "reports", "view")

    def test_grants_union_across_roles(self):
        permissions = Permissions.from_roles([Role(name="AUDITOR", permissions={"logs": "view"})])
        user = user_with("SUPPORT", "AUDITOR")

        assert permissions.has(user, "support", "close")
        assert permissions.has(user, "logs", "view")
