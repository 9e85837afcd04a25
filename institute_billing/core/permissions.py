"""User roles and permissions."""

from enum import Enum


class Role(str, Enum):
    """Roles carried in access tokens."""

    ADMIN = "admin"  # Full billing administration
    ACCOUNTANT = "accountant"  # Invoices, payments, plans
    STAFF = "staff"  # Read-only billing access
    STUDENT = "student"  # Own billing data only


# Permissions by role
ROLE_PERMISSIONS = {
    Role.ADMIN: [
        "billing:read",
        "billing:write",
        "billing:generate",
        "students:write",
        "plans:write",
        "payments:write",
        "audit:read",
    ],
    Role.ACCOUNTANT: [
        "billing:read",
        "billing:write",
        "billing:generate",
        "plans:write",
        "payments:write",
        "audit:read",
    ],
    Role.STAFF: [
        "billing:read",
    ],
    Role.STUDENT: [
        "billing:read_own",
        "payments:write_own",
    ],
}


def has_permission(role: Role, permission: str) -> bool:
    """Check if a role has a specific permission."""
    return permission in ROLE_PERMISSIONS.get(role, [])
