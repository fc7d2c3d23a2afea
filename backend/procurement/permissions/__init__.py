# Overview: Permission system package.
# Re-exports all public APIs for convenient imports.

from .categories import PermissionCategory
from .definitions import (
    PERMISSION_DEFINITIONS,
    REQUISITION_PERMISSIONS,
    APPROVAL_PERMISSIONS,
    PURCHASING_PERMISSIONS,
    SYSTEM_PERMISSIONS,
)
from .roles import (
    DEFAULT_ROLE_PERMISSIONS,
    VALID_ROLES,
    SUPERVISOR_ROLES,
    ROLE_STAFF,
    ROLE_PROPERTY_MANAGER,
    ROLE_PROCUREMENT_MANAGER,
    ROLE_PURCHASE_EXECUTIVE,
    ROLE_OPS_SUPERVISOR,
    ROLE_ADMIN,
)
from .helpers import (
    get_all_permission_codes,
    get_permissions_by_category,
    get_permission_definition,
    validate_permission_code,
    get_role_permissions,
)

__all__ = [
    "PermissionCategory",
    "PERMISSION_DEFINITIONS",
    "REQUISITION_PERMISSIONS",
    "APPROVAL_PERMISSIONS",
    "PURCHASING_PERMISSIONS",
    "SYSTEM_PERMISSIONS",
    "DEFAULT_ROLE_PERMISSIONS",
    "VALID_ROLES",
    "SUPERVISOR_ROLES",
    "ROLE_STAFF",
    "ROLE_PROPERTY_MANAGER",
    "ROLE_PROCUREMENT_MANAGER",
    "ROLE_PURCHASE_EXECUTIVE",
    "ROLE_OPS_SUPERVISOR",
    "ROLE_ADMIN",
    "get_all_permission_codes",
    "get_permissions_by_category",
    "get_permission_definition",
    "validate_permission_code",
    "get_role_permissions",
]
