# Overview: Default role names and their permission grants.

ROLE_STAFF = "staff"
ROLE_PROPERTY_MANAGER = "property_manager"
ROLE_PROCUREMENT_MANAGER = "procurement_manager"
ROLE_PURCHASE_EXECUTIVE = "purchase_executive"
ROLE_OPS_SUPERVISOR = "ops_supervisor"
ROLE_ADMIN = "admin"

VALID_ROLES = {
    ROLE_STAFF,
    ROLE_PROPERTY_MANAGER,
    ROLE_PROCUREMENT_MANAGER,
    ROLE_PURCHASE_EXECUTIVE,
    ROLE_OPS_SUPERVISOR,
    ROLE_ADMIN,
}

# Roles allowed to force a requisition's status or assignee.
SUPERVISOR_ROLES = {ROLE_OPS_SUPERVISOR, ROLE_ADMIN}


DEFAULT_ROLE_PERMISSIONS = {
    ROLE_STAFF: [
        "CREATE_REQUISITION",
    ],
    ROLE_PROPERTY_MANAGER: [
        "CREATE_REQUISITION",
        "VIEW_REQUISITIONS",
        "APPROVE_REQUISITION",
    ],
    ROLE_PROCUREMENT_MANAGER: [
        "CREATE_REQUISITION",
        "VIEW_REQUISITIONS",
        "APPROVE_REQUISITION",
        "PROCESS_REQUISITION",
    ],
    ROLE_PURCHASE_EXECUTIVE: [
        "VIEW_REQUISITIONS",
        "PROCESS_REQUISITION",
    ],
    ROLE_OPS_SUPERVISOR: [
        "CREATE_REQUISITION",
        "VIEW_REQUISITIONS",
        "APPROVE_REQUISITION",
        "REROUTE_REQUISITION",
        "PROCESS_REQUISITION",
    ],
    ROLE_ADMIN: [
        "CREATE_REQUISITION",
        "VIEW_REQUISITIONS",
        "APPROVE_REQUISITION",
        "REROUTE_REQUISITION",
        "PROCESS_REQUISITION",
        "SYSTEM_ADMIN",
    ],
}
