"""Role capability matrix.

Identity comes from the user directory; this module only answers "may this
role do X". Status-transition gates live in ``ordertrack.security``.
"""
from __future__ import annotations

from .models import User


# Role permissions matrix
ROLE_PERMISSIONS: dict[str, dict[str, bool]] = {
    "site_foreman": {
        "canCreateOrders": True,
        "canEditOrders": True,
        "canViewAllOrders": False,
        "canAssignDrivers": False,
        "canUpdateMaterialAvailability": False,
        "canScheduleFutureDelivery": False,
        "canBillToJob": False,
        "canViewCosts": False,
        "canReportDelivery": True,
    },
    "job_lead": {
        "canCreateOrders": True,
        "canEditOrders": True,
        "canViewAllOrders": False,
        "canAssignDrivers": False,
        "canUpdateMaterialAvailability": False,
        "canScheduleFutureDelivery": False,
        "canBillToJob": False,
        "canViewCosts": False,
        "canReportDelivery": True,
    },
    "project_manager": {
        "canCreateOrders": True,
        "canEditOrders": True,
        "canViewAllOrders": True,
        "canAssignDrivers": False,
        "canUpdateMaterialAvailability": False,
        "canScheduleFutureDelivery": False,
        "canBillToJob": False,
        "canViewCosts": True,
        "canReportDelivery": False,
    },
    "shop_manager": {
        "canCreateOrders": False,
        "canEditOrders": False,
        "canViewAllOrders": True,
        "canAssignDrivers": True,
        "canUpdateMaterialAvailability": True,
        "canScheduleFutureDelivery": False,
        "canBillToJob": False,
        "canViewCosts": True,
        "canReportDelivery": False,
    },
    "assistant_shop_manager": {
        "canCreateOrders": False,
        "canEditOrders": False,
        "canViewAllOrders": True,
        "canAssignDrivers": False,
        "canUpdateMaterialAvailability": True,
        "canScheduleFutureDelivery": True,
        "canBillToJob": False,
        "canViewCosts": False,
        "canReportDelivery": False,
    },
    "shop_employee": {
        "canCreateOrders": False,
        "canEditOrders": False,
        "canViewAllOrders": False,
        "canAssignDrivers": False,
        "canUpdateMaterialAvailability": True,
        "canScheduleFutureDelivery": False,
        "canBillToJob": False,
        "canViewCosts": False,
        "canReportDelivery": False,
    },
    "truck_driver": {
        "canCreateOrders": False,
        "canEditOrders": False,
        "canViewAllOrders": False,
        "canAssignDrivers": False,
        "canUpdateMaterialAvailability": False,
        "canScheduleFutureDelivery": False,
        "canBillToJob": False,
        "canViewCosts": False,
        "canReportDelivery": True,
    },
    "accountant_manager": {
        "canCreateOrders": False,
        "canEditOrders": False,
        "canViewAllOrders": True,
        "canAssignDrivers": False,
        "canUpdateMaterialAvailability": False,
        "canScheduleFutureDelivery": False,
        "canBillToJob": True,
        "canViewCosts": True,
        "canReportDelivery": False,
    },
}

UI_PERMISSION_KEYS: tuple[str, ...] = (
    "canCreateOrders",
    "canEditOrders",
    "canViewAllOrders",
    "canAssignDrivers",
    "canUpdateMaterialAvailability",
    "canScheduleFutureDelivery",
    "canBillToJob",
    "canViewCosts",
    "canReportDelivery",
)


def check_permission(user: User, permission: str) -> bool:
    """Check if user has specific permission."""
    permissions = ROLE_PERMISSIONS.get(user.role, {})
    return permissions.get(permission, False)


def get_role_ui_permissions(role: str) -> dict[str, bool]:
    """Return the full capability map for a role (unknown roles get all False)."""
    permissions = ROLE_PERMISSIONS.get(role, {})
    return {key: bool(permissions.get(key, False)) for key in UI_PERMISSION_KEYS}
