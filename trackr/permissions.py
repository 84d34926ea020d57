"""
Role-based access checks for the brand dashboard.

The dashboard is reserved for brand administrators (their own brands) and
the master role (every brand). Influencers and plain users are refused.
"""
import logging
from enum import Enum
from typing import Dict, Set

from trackr.exceptions import PermissionDeniedError
from trackr.models import Brand, Profile

logger = logging.getLogger(__name__)


class Role(str, Enum):
    """User roles stored on the profile."""
    MASTER = "master"
    BRAND_ADMIN = "brand_admin"
    INFLUENCER = "influencer"
    USER = "user"


class Feature(str, Enum):
    """Protected features."""
    DASHBOARD = "dashboard"
    CLASSIFICATIONS = "classifications"
    COUPONS = "coupons"


class Action(str, Enum):
    """Permission actions."""
    VIEW = "view"
    EDIT = "edit"
    DELETE = "delete"


# ═══════════════════════════════════════════════════════════════════════════════
# ROLE PERMISSIONS MATRIX
# ═══════════════════════════════════════════════════════════════════════════════

ROLE_PERMISSIONS: Dict[str, Dict[str, Set[str]]] = {
    Role.MASTER: {
        Feature.DASHBOARD: {Action.VIEW},
        Feature.CLASSIFICATIONS: {Action.VIEW, Action.EDIT, Action.DELETE},
        Feature.COUPONS: {Action.VIEW, Action.EDIT},
    },
    Role.BRAND_ADMIN: {
        Feature.DASHBOARD: {Action.VIEW},
        Feature.CLASSIFICATIONS: {Action.VIEW, Action.EDIT, Action.DELETE},
        Feature.COUPONS: {Action.VIEW, Action.EDIT},
    },
}


def can(role: str, feature: str, action: str = "view") -> bool:
    """
    Check if a role has permission to perform an action on a feature.

    Unknown roles have no permissions.
    """
    try:
        role_key = Role(role)
    except ValueError:
        return False
    return action in ROLE_PERMISSIONS.get(role_key, {}).get(feature, set())


def can_access_brand(profile: Profile, brand: Brand) -> bool:
    """Master sees every brand; brand admins only the brands they own."""
    if profile.role == Role.MASTER.value:
        return True
    return profile.role == Role.BRAND_ADMIN.value and brand.owner_id == profile.id


def require_brand_permission(
    profile: Profile,
    brand: Brand,
    feature: str = Feature.DASHBOARD,
    action: str = Action.VIEW,
) -> None:
    """
    Raise PermissionDeniedError unless profile may act on the brand.
    """
    if not can(profile.role, feature, action) or not can_access_brand(profile, brand):
        logger.warning(
            "Permission denied",
            extra={"user_id": profile.id, "role": profile.role, "brand_id": brand.id,
                   "feature": str(getattr(feature, "value", feature)),
                   "action": str(getattr(action, "value", action))},
        )
        raise PermissionDeniedError(role=profile.role)
