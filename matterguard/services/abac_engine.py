"""ABAC policy engine.

Evaluates access control policies based on subject, resource, action and
environment attributes using a deny-override combining algorithm:

1. All DENY policies are checked first; any match results in denial.
   A DENY condition that raises fails closed.
2. ALLOW policies are checked next; the first match allows.
   An ALLOW condition that raises is skipped.
3. Default is DENY.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable

import structlog

from matterguard.models.abac import (
    Action,
    EnvironmentAttributes,
    Policy,
    PolicyContext,
    PolicyDecision,
    PolicyEffect,
    ResourceAttributes,
    SubjectAttributes,
)
from matterguard.models.decision import AccessDecision, DecisionCheck, DecisionKind
from matterguard.models.principal import Principal
from matterguard.services.abac_policies import CORE_POLICIES

logger = structlog.get_logger(__name__)


class AbacEngine:
    """Deny-override ABAC policy evaluator."""

    def __init__(self, policies: Iterable[Policy] | None = None) -> None:
        # Stable sort keeps declaration order among equal priorities
        self._policies = sorted(policies if policies is not None else CORE_POLICIES, key=lambda p: p.priority)
        self._deny_policies = [p for p in self._policies if p.effect == PolicyEffect.DENY]
        self._allow_policies = [p for p in self._policies if p.effect == PolicyEffect.ALLOW]

        logger.debug("abac_engine_initialized", policy_count=len(self._policies))

    def evaluate(self, context: PolicyContext) -> PolicyDecision:
        """Evaluate whether an action is allowed."""
        for policy in self._deny_policies:
            try:
                matched = policy.condition(context)
            except Exception as e:
                logger.error(
                    "abac_policy_error",
                    policy=policy.name,
                    effect=policy.effect.value,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                return PolicyDecision(
                    allowed=False,
                    matched_policy=policy.name,
                    reason="Policy evaluation error - access denied",
                )

            if matched:
                logger.debug(
                    "abac_deny",
                    policy=policy.name,
                    action=context.action,
                    resource_type=context.resource.type,
                )
                return PolicyDecision(
                    allowed=False,
                    matched_policy=policy.name,
                    reason=policy.description,
                )

        for policy in self._allow_policies:
            try:
                matched = policy.condition(context)
            except Exception as e:
                logger.error(
                    "abac_policy_error",
                    policy=policy.name,
                    effect=policy.effect.value,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                continue

            if matched:
                logger.debug(
                    "abac_allow",
                    policy=policy.name,
                    action=context.action,
                    resource_type=context.resource.type,
                )
                return PolicyDecision(allowed=True, matched_policy=policy.name)

        logger.debug(
            "abac_default_deny",
            action=context.action,
            resource_type=context.resource.type,
        )
        return PolicyDecision(
            allowed=False,
            reason="No matching policy - access denied by default",
        )

    def can(
        self,
        subject: SubjectAttributes,
        action: Action,
        resource: ResourceAttributes,
        mfa_verified: bool = False,
    ) -> bool:
        """Quick permission check with simplified inputs."""
        context = PolicyContext(
            subject=subject,
            resource=resource,
            action=action,
            environment=EnvironmentAttributes(mfa_verified=mfa_verified),
        )
        return self.evaluate(context).allowed

    def can_multiple(
        self,
        subject: SubjectAttributes,
        actions: Iterable[Action],
        resource: ResourceAttributes,
        mfa_verified: bool = False,
    ) -> dict[str, bool]:
        """Check several actions at once; returns action -> allowed."""
        return {action: self.can(subject, action, resource, mfa_verified) for action in actions}

    def list_policies(self) -> list[dict[str, str | int]]:
        """Registered policies in evaluation order (for admin tooling)."""
        return [
            {
                "name": p.name,
                "description": p.description,
                "effect": p.effect.value,
                "priority": p.priority,
            }
            for p in self._policies
        ]

    def evaluate_principal(
        self,
        principal: Principal,
        action: Action,
        resource: ResourceAttributes,
        environment: EnvironmentAttributes | None = None,
    ) -> AccessDecision:
        """Evaluate for a request principal and wrap the outcome in an ``AccessDecision``."""
        context = PolicyContext(
            subject=subject_from_principal(principal),
            resource=resource,
            action=action,
            environment=environment or EnvironmentAttributes(mfa_verified=principal.mfa_verified),
        )
        decision = self.evaluate(context)

        if decision.allowed:
            return AccessDecision(
                check=DecisionCheck.ABAC,
                kind=DecisionKind.ALLOWED,
                matched_policy=decision.matched_policy,
            )

        logger.warning(
            "abac_access_denied",
            user_id=principal.id,
            action=action,
            resource_type=resource.type,
            policy=decision.matched_policy or "default_deny",
        )
        return AccessDecision(
            check=DecisionCheck.ABAC,
            kind=DecisionKind.DENIED,
            reason=decision.reason,
            requires_audit=True,
            matched_policy=decision.matched_policy,
        )


def subject_from_principal(principal: Principal) -> SubjectAttributes:
    """Project a principal onto ABAC subject attributes."""
    return SubjectAttributes(
        id=principal.id,
        organization_id=principal.organization_id,
        roles=principal.roles,
        permissions=principal.permissions,
    )


# =============================================================================
# Factory Functions
# =============================================================================

_abac_engine: AbacEngine | None = None
_engine_lock = threading.Lock()


def get_abac_engine() -> AbacEngine:
    """Get singleton ABAC engine loaded with the core policies."""
    global _abac_engine  # noqa: PLW0603

    if _abac_engine is None:
        with _engine_lock:
            if _abac_engine is None:
                _abac_engine = AbacEngine()

    return _abac_engine


def reset_abac_engine() -> None:
    """Reset singleton for testing."""
    global _abac_engine  # noqa: PLW0603

    with _engine_lock:
        _abac_engine = None
