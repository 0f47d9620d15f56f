"""Core ABAC policies.

Policies are evaluated in priority order (lower number = higher priority).
DENY policies always take precedence over ALLOW policies.
"""

from matterguard.models.abac import Policy, PolicyContext, PolicyEffect

_FINANCIAL_RESOURCES = frozenset({"transaction", "trust_account", "trust_transaction"})
_DOCUMENT_RESOURCES = frozenset({"document", "document_template"})


def _same_org(ctx: PolicyContext) -> bool:
    return ctx.subject.organization_id == ctx.resource.organization_id


def _has_role(ctx: PolicyContext, role: str) -> bool:
    wanted = role.lower()
    return any(r.lower() == wanted for r in ctx.subject.roles)


def _is_owner_or_assignee(ctx: PolicyContext) -> bool:
    return ctx.resource.owner_id == ctx.subject.id or ctx.subject.id in ctx.resource.assigned_to


def _is_assignee(ctx: PolicyContext) -> bool:
    return ctx.subject.id in ctx.resource.assigned_to


CORE_POLICIES: list[Policy] = [
    # =========================================================================
    # DENY policies (priority 1-99)
    # =========================================================================
    Policy(
        name="deny-cross-tenant-access",
        description="Prevent access to resources outside the user's organization",
        effect=PolicyEffect.DENY,
        priority=1,
        condition=lambda ctx: not _same_org(ctx),
    ),
    Policy(
        name="deny-audit-log-modification",
        description="Audit logs are immutable",
        effect=PolicyEffect.DENY,
        priority=2,
        condition=lambda ctx: ctx.resource.type == "audit_log" and ctx.action in ("update", "delete"),
    ),
    Policy(
        name="deny-privileged-without-mfa",
        description="Privileged documents require MFA verification",
        effect=PolicyEffect.DENY,
        priority=3,
        condition=lambda ctx: (
            ctx.resource.confidentiality_level == "privileged" and not ctx.environment.mfa_verified
        ),
    ),
    # =========================================================================
    # Admin policies (priority 100-199)
    # =========================================================================
    Policy(
        name="allow-super-admin-all",
        description="Super admins have full access within their organization",
        effect=PolicyEffect.ALLOW,
        priority=100,
        condition=lambda ctx: _has_role(ctx, "super_admin") and _same_org(ctx),
    ),
    Policy(
        name="allow-admin-manage-users",
        description="Admins can manage users in their organization",
        effect=PolicyEffect.ALLOW,
        priority=101,
        condition=lambda ctx: _has_role(ctx, "admin") and ctx.resource.type == "user" and _same_org(ctx),
    ),
    Policy(
        name="allow-admin-manage-organization",
        description="Admins can manage organization settings",
        effect=PolicyEffect.ALLOW,
        priority=102,
        condition=lambda ctx: (
            _has_role(ctx, "admin") and ctx.resource.type == "organization" and _same_org(ctx)
        ),
    ),
    # =========================================================================
    # Attorney policies (priority 200-299)
    # =========================================================================
    Policy(
        name="allow-attorney-matter-access",
        description="Attorneys can access matters assigned to them",
        effect=PolicyEffect.ALLOW,
        priority=200,
        condition=lambda ctx: (
            _has_role(ctx, "attorney")
            and ctx.resource.type == "matter"
            and ctx.action in ("read", "update", "list")
            and _is_owner_or_assignee(ctx)
        ),
    ),
    Policy(
        name="allow-attorney-create-matter",
        description="Attorneys can create new matters",
        effect=PolicyEffect.ALLOW,
        priority=201,
        condition=lambda ctx: (
            _has_role(ctx, "attorney") and ctx.resource.type == "matter" and ctx.action == "create"
        ),
    ),
    Policy(
        name="allow-attorney-document-access",
        description="Attorneys can manage documents on their matters",
        effect=PolicyEffect.ALLOW,
        priority=202,
        condition=lambda ctx: (
            _has_role(ctx, "attorney")
            and ctx.resource.type in _DOCUMENT_RESOURCES
            and _is_owner_or_assignee(ctx)
        ),
    ),
    Policy(
        name="allow-attorney-financial-read",
        description="Attorneys can view financial data on their matters",
        effect=PolicyEffect.ALLOW,
        priority=203,
        condition=lambda ctx: (
            _has_role(ctx, "attorney")
            and ctx.resource.type in _FINANCIAL_RESOURCES
            and ctx.action == "read"
            and _is_assignee(ctx)
        ),
    ),
    # =========================================================================
    # Paralegal / staff policies (priority 300-399)
    # =========================================================================
    Policy(
        name="allow-paralegal-matter-read",
        description="Paralegals can read matters assigned to them",
        effect=PolicyEffect.ALLOW,
        priority=300,
        condition=lambda ctx: (
            _has_role(ctx, "paralegal")
            and ctx.resource.type == "matter"
            and ctx.action in ("read", "list")
            and _is_assignee(ctx)
        ),
    ),
    Policy(
        name="allow-paralegal-document-management",
        description="Paralegals can create and manage documents on assigned matters",
        effect=PolicyEffect.ALLOW,
        priority=301,
        condition=lambda ctx: (
            _has_role(ctx, "paralegal")
            and ctx.resource.type in _DOCUMENT_RESOURCES
            and ctx.action in ("create", "read", "update", "list")
            and _is_assignee(ctx)
        ),
    ),
    Policy(
        name="allow-paralegal-task-management",
        description="Paralegals can manage tasks assigned to them",
        effect=PolicyEffect.ALLOW,
        priority=302,
        condition=lambda ctx: _has_role(ctx, "paralegal") and ctx.resource.type == "task" and _is_assignee(ctx),
    ),
    Policy(
        name="allow-staff-time-entries",
        description="All staff can manage their own time entries",
        effect=PolicyEffect.ALLOW,
        priority=303,
        condition=lambda ctx: (
            (_has_role(ctx, "paralegal") or _has_role(ctx, "staff"))
            and ctx.resource.type == "time_entry"
            and ctx.resource.owner_id == ctx.subject.id
        ),
    ),
    # =========================================================================
    # Read-only policies (priority 400-499)
    # =========================================================================
    Policy(
        name="allow-all-read-templates",
        description="All authenticated users can read document templates",
        effect=PolicyEffect.ALLOW,
        priority=400,
        condition=lambda ctx: (
            ctx.resource.type == "document_template" and ctx.action == "read" and _same_org(ctx)
        ),
    ),
    Policy(
        name="allow-all-read-audit-logs",
        description="All authenticated users can read audit logs (read-only)",
        effect=PolicyEffect.ALLOW,
        priority=401,
        condition=lambda ctx: ctx.resource.type == "audit_log" and ctx.action == "read" and _same_org(ctx),
    ),
    Policy(
        name="allow-own-profile-read",
        description="Users can read their own profile",
        effect=PolicyEffect.ALLOW,
        priority=402,
        condition=lambda ctx: (
            ctx.resource.type == "user" and ctx.action == "read" and ctx.resource.id == ctx.subject.id
        ),
    ),
]
