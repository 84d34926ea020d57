"""
Tests for trackr.permissions module.
"""
import pytest

from trackr.exceptions import PermissionDeniedError
from trackr.models import Brand, Profile
from trackr.permissions import (
    Action,
    Feature,
    Role,
    can,
    can_access_brand,
    require_brand_permission,
)

BRAND = Brand(id="brand-1", name="Acme", owner_id="owner-1")


class TestCan:
    """Tests for the role permission matrix."""

    @pytest.mark.parametrize("role", ["master", "brand_admin"])
    def test_admins_view_dashboard(self, role):
        assert can(role, Feature.DASHBOARD, Action.VIEW)
        assert can(role, Feature.CLASSIFICATIONS, Action.DELETE)

    @pytest.mark.parametrize("role", ["influencer", "user", "hacker", ""])
    def test_others_have_nothing(self, role):
        assert not can(role, Feature.DASHBOARD, Action.VIEW)

    def test_plain_strings(self):
        assert can("brand_admin", "coupons", "edit")
        assert not can("brand_admin", "coupons", "delete")


class TestBrandAccess:
    """Tests for can_access_brand and require_brand_permission."""

    def test_master_sees_all(self):
        assert can_access_brand(Profile(id="anyone", role=Role.MASTER.value), BRAND)

    def test_owner_admin(self):
        assert can_access_brand(Profile(id="owner-1", role="brand_admin"), BRAND)

    def test_other_admin(self):
        assert not can_access_brand(Profile(id="owner-2", role="brand_admin"), BRAND)

    def test_owner_without_admin_role(self):
        assert not can_access_brand(Profile(id="owner-1", role="influencer"), BRAND)

    def test_require_raises_with_role(self):
        with pytest.raises(PermissionDeniedError) as exc_info:
            require_brand_permission(Profile(id="owner-1", role="user"), BRAND)
        assert exc_info.value.role == "user"
        assert exc_info.value.message == "Access denied"

    def test_require_passes(self):
        require_brand_permission(
            Profile(id="owner-1", role="brand_admin"), BRAND, Feature.CLASSIFICATIONS, Action.EDIT
        )
