"""Permission and role evaluation.

Coarse-grained capability checks that run before any privilege or conflict
screening. Both checks honor the super-admin bypass.
"""

from collections.abc import Iterable

import structlog

from matterguard.core.config import get_settings
from matterguard.models.decision import AccessDecision, DecisionCheck, DecisionKind
from matterguard.models.permission import permissions_for_roles
from matterguard.models.principal import Principal

logger = structlog.get_logger(__name__)


def _normalize(items: Iterable[object] | None) -> frozenset[str]:
    if not items:
        return frozenset()
    return frozenset(getattr(item, "value", item) for item in items)  # type: ignore[misc]


def is_super_admin(principal: Principal) -> bool:
    """Check whether the principal holds the configured super-admin role."""
    return principal.has_role(get_settings().super_admin_role)


def effective_permissions(principal: Principal) -> frozenset[str]:
    """Explicit grants plus everything implied by the principal's roles."""
    return principal.permissions | permissions_for_roles(principal.roles)


def _missing(principal: Principal, needed: frozenset[str]) -> list[str]:
    if is_super_admin(principal):
        return []
    return sorted(needed - effective_permissions(principal))


def missing_permissions(
    principal: Principal | None,
    required: Iterable[object] | None,
) -> list[str]:
    """Required permissions the principal does not hold, sorted.

    Empty when nothing is required or the principal is a super admin.
    """
    needed = _normalize(required)
    if not needed:
        return []
    if principal is None:
        return sorted(needed)
    return _missing(principal, needed)


def has_permissions(
    principal: Principal | None,
    required: Iterable[object] | None,
) -> bool:
    """True iff every required permission is granted or the principal is a super admin.

    No required permissions always passes. A missing principal is denied.
    """
    needed = _normalize(required)
    if not needed:
        return True
    if principal is None:
        return False
    return not _missing(principal, needed)


def has_any_role(
    principal: Principal | None,
    roles: Iterable[object] | None,
) -> bool:
    """True iff the principal holds at least one of ``roles``.

    No required roles always passes; super admins always pass.
    """
    wanted = _normalize(roles)
    if not wanted:
        return True
    if principal is None:
        return False
    if is_super_admin(principal):
        return True
    return any(principal.has_role(role) for role in wanted)


def evaluate_permissions(
    principal: Principal | None,
    required: Iterable[object] | None,
) -> AccessDecision:
    """Run the permission check and wrap the outcome in an ``AccessDecision``.

    Denials are audit-required; clean passes are not.
    """
    missing = missing_permissions(principal, required)

    if missing:
        logger.warning(
            "permission_denied",
            user_id=principal.id if principal else None,
            missing_permissions=missing,
        )
        return AccessDecision(
            check=DecisionCheck.PERMISSION,
            kind=DecisionKind.DENIED,
            reason=f"Missing required permissions: {', '.join(missing)}",
            requires_audit=True,
        )

    return AccessDecision(check=DecisionCheck.PERMISSION, kind=DecisionKind.ALLOWED)


def evaluate_roles(
    principal: Principal | None,
    roles: Iterable[object] | None,
) -> AccessDecision:
    """Run the any-of role check and wrap the outcome in an ``AccessDecision``."""
    wanted = _normalize(roles)
    if has_any_role(principal, wanted):
        return AccessDecision(check=DecisionCheck.ROLE, kind=DecisionKind.ALLOWED)

    required = sorted(wanted)
    logger.warning(
        "role_denied",
        user_id=principal.id if principal else None,
        required_roles=required,
        user_roles=sorted(principal.roles) if principal else [],
    )
    return AccessDecision(
        check=DecisionCheck.ROLE,
        kind=DecisionKind.DENIED,
        reason=f"One of roles {required} required",
        requires_audit=True,
    )
