# Overview: All permission definitions organized by category.
# Each permission is defined as: (code, name, description, category)

from .categories import PermissionCategory


# -- REQUISITIONS --

REQUISITION_PERMISSIONS = [
    (
        "CREATE_REQUISITION",
        "Create Requisition",
        "Compose drafts and submit requisitions for approval",
        PermissionCategory.REQUISITIONS,
    ),
    (
        "VIEW_REQUISITIONS",
        "View Requisitions",
        "View requisitions beyond the user's own",
        PermissionCategory.REQUISITIONS,
    ),
]


# -- APPROVALS --

APPROVAL_PERMISSIONS = [
    (
        "APPROVE_REQUISITION",
        "Approve Requisition",
        "Approve, reject or request clarification on pending requisitions",
        PermissionCategory.APPROVALS,
    ),
    (
        "REROUTE_REQUISITION",
        "Reroute Requisition",
        "Reassign an approved requisition and/or force its status",
        PermissionCategory.APPROVALS,
    ),
]


# -- PURCHASING --

PURCHASING_PERMISSIONS = [
    (
        "PROCESS_REQUISITION",
        "Process Requisition",
        "Accept approved requisitions and mark them completed",
        PermissionCategory.PURCHASING,
    ),
]


# -- SYSTEM --

SYSTEM_PERMISSIONS = [
    (
        "SYSTEM_ADMIN",
        "System Administration",
        "Full administrative access",
        PermissionCategory.SYSTEM,
    ),
]


PERMISSION_DEFINITIONS = (
    REQUISITION_PERMISSIONS
    + APPROVAL_PERMISSIONS
    + PURCHASING_PERMISSIONS
    + SYSTEM_PERMISSIONS
)
