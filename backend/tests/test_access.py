"""
MEDS Backend — Access Rule Unit Tests
=======================================

What we test:
    ✅ Rule vocabulary (locked, public, authenticated, roles, self)
    ✅ `|` composition
    ✅ Superusers pass every rule
    ✅ enforce() → 401 for anonymous callers, 403 for signed-in ones
    ✅ Per-collection overrides fall back to the default rules
"""

import pytest

from meds.access import (
    AUTHENTICATED,
    LOCKED,
    PUBLIC,
    enforce,
    has_role,
    is_self,
    rules_for,
)
from meds.exceptions import AuthenticationError, PermissionDeniedError
from meds.models.user import User


def _user(role: str = "provider", user_id: str = "u" * 15, is_superuser: bool = False) -> User:
    return User(id=user_id, username=user_id, role=role, is_superuser=is_superuser)


class TestRules:
    def test_locked_rejects_everyone_but_superusers(self):
        assert not LOCKED.allows(None)
        assert not LOCKED.allows(_user("admin"))
        assert LOCKED.allows(_user(is_superuser=True))

    def test_public_allows_anonymous(self):
        assert PUBLIC.allows(None)

    def test_authenticated(self):
        assert not AUTHENTICATED.allows(None)
        assert AUTHENTICATED.allows(_user("pharmacy"))

    def test_has_role(self):
        rule = has_role("admin", "provider")
        assert rule.allows(_user("provider"))
        assert not rule.allows(_user("pharmacy"))
        assert not rule.allows(None)

    def test_is_self_compares_record_id(self):
        me = _user(user_id="a" * 15)
        assert is_self().allows(me, _user(user_id="a" * 15))
        assert not is_self().allows(me, _user(user_id="b" * 15))
        assert not is_self().allows(me, None)

    def test_or_composition(self):
        rule = has_role("admin") | is_self()
        me = _user("provider", user_id="a" * 15)
        assert rule.allows(me, me)
        assert not rule.allows(me, _user(user_id="b" * 15))
        assert rule.allows(_user("admin"), _user(user_id="b" * 15))
        assert "self" in rule.label


class TestEnforce:
    def test_anonymous_gets_authentication_error(self):
        with pytest.raises(AuthenticationError) as exc_info:
            enforce(AUTHENTICATED, None, action="list patients")
        assert exc_info.value.status_code == 401
        assert exc_info.value.context["action"] == "list patients"

    def test_wrong_role_gets_permission_denied(self):
        with pytest.raises(PermissionDeniedError) as exc_info:
            enforce(has_role("admin"), _user("pharmacy"))
        assert exc_info.value.status_code == 403

    def test_allowed_returns_none(self):
        assert enforce(has_role("admin"), _user("admin")) is None


class TestCollectionRules:
    def test_default_delete_excludes_pharmacy(self):
        rules = rules_for("patients")
        assert rules.delete.allows(_user("provider"))
        assert not rules.delete.allows(_user("pharmacy"))

    def test_pharmacy_may_delete_disbursements(self):
        assert rules_for("disbursements").delete.allows(_user("pharmacy"))

    def test_settings_writes_are_admin_only(self):
        rules = rules_for("settings")
        assert rules.update.allows(_user("admin"))
        assert not rules.update.allows(_user("provider"))
        assert not rules.delete.allows(_user("admin"))

    def test_users_update_self_or_admin(self):
        me = _user("provider", user_id="a" * 15)
        rules = rules_for("users")
        assert rules.update.allows(me, me)
        assert not rules.update.allows(me, _user(user_id="b" * 15))

    def test_unknown_operation(self):
        with pytest.raises(ValueError):
            rules_for("patients").for_operation("truncate")
