"""Role sets used for authorization checks."""

from complaint_desk.db.enums.auth import UserRole

# Roles that can work complaints (be assigned, move them forward)
STAFF_ROLES = frozenset({UserRole.ADMIN, UserRole.SUPPORT})

# Roles that can assign complaints to staff
ROLES_CAN_ASSIGN = STAFF_ROLES

# Roles that can manage teams, projects and users
ROLES_CAN_MANAGE = frozenset({UserRole.ADMIN})
