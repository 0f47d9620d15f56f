"""System roles, permissions and the role grant table."""

from enum import Enum


class Role(str, Enum):
    """Available system roles."""

    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    ATTORNEY = "attorney"
    PARALEGAL = "paralegal"
    STAFF = "staff"
    CLIENT = "client"


class Permission(str, Enum):
    """Available system permissions, as ``resource:action`` strings."""

    # Matter permissions
    MATTER_CREATE = "matter:create"
    MATTER_READ = "matter:read"
    MATTER_UPDATE = "matter:update"
    MATTER_DELETE = "matter:delete"
    MATTER_ASSIGN = "matter:assign"

    # Document permissions
    DOCUMENT_CREATE = "document:create"
    DOCUMENT_READ = "document:read"
    DOCUMENT_UPDATE = "document:update"
    DOCUMENT_DELETE = "document:delete"
    DOCUMENT_DOWNLOAD = "document:download"
    DOCUMENT_SHARE = "document:share"

    # Template permissions
    TEMPLATE_CREATE = "template:create"
    TEMPLATE_READ = "template:read"
    TEMPLATE_UPDATE = "template:update"
    TEMPLATE_DELETE = "template:delete"

    # AI permissions
    AI_ANALYZE = "ai:analyze"
    AI_GENERATE = "ai:generate"
    AI_REVIEW = "ai:review"

    # Workflow permissions
    WORKFLOW_CREATE = "workflow:create"
    WORKFLOW_READ = "workflow:read"
    WORKFLOW_UPDATE = "workflow:update"
    WORKFLOW_DELETE = "workflow:delete"
    WORKFLOW_EXECUTE = "workflow:execute"

    # User management
    USER_CREATE = "user:create"
    USER_READ = "user:read"
    USER_UPDATE = "user:update"
    USER_DELETE = "user:delete"

    # Organization management
    ORG_SETTINGS = "org:settings"
    ORG_BILLING = "org:billing"
    ORG_INTEGRATIONS = "org:integrations"

    # Audit
    AUDIT_READ = "audit:read"


def _category(prefix: str) -> frozenset[Permission]:
    return frozenset(p for p in Permission if p.value.startswith(f"{prefix}:"))


ALL_PERMISSIONS: frozenset[Permission] = frozenset(Permission)

# Permissions implied by holding a role, on top of any explicit grants.
ROLE_PERMISSIONS: dict[Role, frozenset[Permission]] = {
    Role.SUPER_ADMIN: ALL_PERMISSIONS,
    Role.ADMIN: ALL_PERMISSIONS,
    Role.ATTORNEY: (
        _category("matter")
        | _category("document")
        | _category("ai")
        | _category("workflow")
        | {
            Permission.TEMPLATE_CREATE,
            Permission.TEMPLATE_READ,
            Permission.TEMPLATE_UPDATE,
            Permission.USER_READ,
        }
    ),
    Role.PARALEGAL: frozenset(
        {
            Permission.MATTER_CREATE,
            Permission.MATTER_READ,
            Permission.MATTER_UPDATE,
            Permission.DOCUMENT_CREATE,
            Permission.DOCUMENT_READ,
            Permission.DOCUMENT_UPDATE,
            Permission.DOCUMENT_DOWNLOAD,
            Permission.TEMPLATE_READ,
            Permission.AI_ANALYZE,
            Permission.AI_GENERATE,
            Permission.WORKFLOW_CREATE,
            Permission.WORKFLOW_READ,
            Permission.WORKFLOW_UPDATE,
            Permission.WORKFLOW_EXECUTE,
        }
    ),
    Role.STAFF: frozenset(
        {
            Permission.MATTER_READ,
            Permission.DOCUMENT_CREATE,
            Permission.DOCUMENT_READ,
            Permission.TEMPLATE_READ,
            Permission.WORKFLOW_READ,
        }
    ),
    Role.CLIENT: frozenset(
        {
            Permission.MATTER_READ,
            Permission.DOCUMENT_READ,
            Permission.DOCUMENT_DOWNLOAD,
        }
    ),
}


def permissions_for_roles(roles: frozenset[str]) -> frozenset[str]:
    """Union of permission strings granted by the given role names.

    Unknown role names grant nothing.
    """
    granted: set[str] = set()
    for name in roles:
        try:
            role = Role(name.lower())
        except ValueError:
            continue
        granted.update(p.value for p in ROLE_PERMISSIONS.get(role, frozenset()))
    return frozenset(granted)
