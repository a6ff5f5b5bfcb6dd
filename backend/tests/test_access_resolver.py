"""
Tests for access resolution: role grants combined with per-user overrides
"""
import pytest

from scopegrid.core.exceptions import NotFound
from scopegrid.models.rbac import PermissionOverride, ResourceOverride
from scopegrid.services.access_resolver import AccessResolver, GrantState


class TestRoleGrants:
    def test_sales_role(self, db, make_user):
        grant_set = AccessResolver(db).resolve(make_user("sales").id)
        assert grant_set.permission_keys == ["VIEW_SITES_ROUTE", "VIEW_MASTERDATA_ROUTE"]
        assert grant_set.resource_keys == ["Site_Sales", "MasterData_Sales"]
        assert "bank_details" not in grant_set.resources[0].columns

    def test_claims_shape(self, db, make_user):
        claims = AccessResolver(db).resolve(make_user("content").id).to_claims()
        assert claims["permissions"] == [
            {"key": "VIEW_MASTERDATA_ROUTE", "description": "Read content master data"},
        ]
        assert claims["resources"][0]["key"] == "MasterData_Content"
        assert claims["resources"][0]["columns"] == ["id", "order_number", "content_category", "content_link"]

    def test_unknown_user(self, db):
        with pytest.raises(NotFound):
            AccessResolver(db).resolve(424242)


class TestOverrides:
    def test_granted_override_adds_permission_after_role_grants(self, db, make_user, permission):
        user = make_user("content")
        db.add(PermissionOverride(user_id=user.id, permission_id=permission("VIEW_SITES_ROUTE").id, granted=True))
        db.commit()

        keys = AccessResolver(db).resolve(user.id).permission_keys
        assert keys == ["VIEW_MASTERDATA_ROUTE", "VIEW_SITES_ROUTE"]

    def test_revoked_override_beats_role_grant(self, db, make_user, permission):
        user = make_user("sales")
        db.add(PermissionOverride(user_id=user.id, permission_id=permission("VIEW_SITES_ROUTE").id, granted=False))
        db.commit()

        assert AccessResolver(db).resolve(user.id).permission_keys == ["VIEW_MASTERDATA_ROUTE"]

    def test_resource_override_grant_and_revoke(self, db, make_user, resource):
        user = make_user("sales")
        db.add_all([
            ResourceOverride(user_id=user.id, resource_id=resource("Site_Sales").id, granted=False),
            ResourceOverride(user_id=user.id, resource_id=resource("Site_Admin").id, granted=True),
        ])
        db.commit()

        grant_set = AccessResolver(db).resolve(user.id)
        assert grant_set.resource_keys == ["MasterData_Sales", "Site_Admin"]
        assert "bank_details" in grant_set.resources[1].columns

    def test_overwritten_grant_keeps_its_position(self, db, make_user, resource):
        user = make_user("sales")
        db.add(ResourceOverride(user_id=user.id, resource_id=resource("Site_Sales").id, granted=True))
        db.commit()

        assert AccessResolver(db).resolve(user.id).resource_keys == ["Site_Sales", "MasterData_Sales"]

    def test_overrides_of_other_users_are_ignored(self, db, make_user, permission):
        user, other = make_user("sales"), make_user("sales")
        db.add(PermissionOverride(user_id=other.id, permission_id=permission("VIEW_SITES_ROUTE").id, granted=False))
        db.commit()

        assert "VIEW_SITES_ROUTE" in AccessResolver(db).resolve(user.id).permission_keys


def test_grant_state_collapses_flags():
    assert GrantState.from_flag(True) is GrantState.GRANTED
    assert GrantState.from_flag(False) is GrantState.REVOKED
    assert GrantState.from_flag(None) is GrantState.REVOKED
