"""Policy orchestration for a single request.

Runs the evaluators a route declares, in a fixed order:

1. Permissions (all-of)
2. Roles (any-of)
3. ABAC policies (when the route names an action and resource type)
4. Privilege classification (when the route is privilege-sensitive)
5. Conflict screening (when the route is conflict-sensitive)

The first denial stops evaluation and raises the matching ``AccessDeniedError``.
Decisions that require auditing are written to the audit sink before the
outcome is returned or raised. Collaborator failures propagate unchanged.
"""

from __future__ import annotations

import threading

import structlog

from matterguard.core.config import Settings, get_settings
from matterguard.core.exceptions import (
    AuthenticationRequiredError,
    ConflictOfInterestError,
    MissingContextError,
    PermissionDeniedError,
    PolicyDeniedError,
    PrivilegeDeniedError,
    RoleRequiredError,
)
from matterguard.models.abac import ResourceAttributes
from matterguard.models.audit import AuditRecord, AuditSeverity
from matterguard.models.conflict import ConflictCheckRecord, MatterConflictMetadata
from matterguard.models.decision import AccessDecision, DecisionCheck, DecisionKind
from matterguard.models.policy import PolicyDecisionContext, RoutePolicy
from matterguard.models.principal import Principal
from matterguard.models.privilege import (
    PrivilegeCheckResult,
    PrivilegeClassification,
    PrivilegeMetadata,
)
from matterguard.services.abac_engine import AbacEngine, get_abac_engine
from matterguard.services.audit_sink import AuditSink, StructlogAuditSink
from matterguard.services.collaborators import (
    MatterConflictSource,
    NullMatterConflictSource,
    NullPrivilegeMetadataSource,
    PrivilegeMetadataSource,
)
from matterguard.services.conflict_screener import ConflictScreener
from matterguard.services.permission_evaluator import (
    evaluate_permissions,
    evaluate_roles,
    missing_permissions,
)
from matterguard.services.privilege_classifier import PrivilegeClassifier, get_privilege_classifier

logger = structlog.get_logger(__name__)

NO_MATTER_CONTEXT_REASON = "Conflict check skipped - no matter context"
MATTER_METADATA_UNAVAILABLE_REASON = "Conflict check skipped - matter metadata unavailable"


class PolicyOrchestrator:
    """Evaluates a ``RoutePolicy`` for a principal and enforces the outcome.

    Example:
        >>> orchestrator = get_policy_orchestrator()
        >>> context = await orchestrator.authorize(
        ...     principal, policy, resource_id=document_id, matter_id=matter_id
        ... )
        >>> context.waiver_notice
        'Access granted under waiver W-1 (DIRECT_ADVERSE)'
    """

    def __init__(
        self,
        classifier: PrivilegeClassifier | None = None,
        screener: ConflictScreener | None = None,
        audit_sink: AuditSink | None = None,
        matter_source: MatterConflictSource | None = None,
        privilege_source: PrivilegeMetadataSource | None = None,
        abac_engine: AbacEngine | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._classifier = classifier or get_privilege_classifier()
        self._screener = screener or ConflictScreener()
        self._audit = audit_sink or StructlogAuditSink()
        self._matters = matter_source or NullMatterConflictSource()
        self._privilege_source = privilege_source or NullPrivilegeMetadataSource()
        self._abac = abac_engine or get_abac_engine()

    async def authorize(
        self,
        principal: Principal | None,
        policy: RoutePolicy,
        *,
        resource_id: str | None = None,
        matter_id: str | None = None,
        privilege_metadata: PrivilegeMetadata | None = None,
        matter_context: MatterConflictMetadata | None = None,
        resource: ResourceAttributes | None = None,
    ) -> PolicyDecisionContext:
        """Authorize ``principal`` against ``policy``.

        Args:
            principal: Request principal, or None when unauthenticated.
            policy: Route requirements.
            resource_id: ID of the document/record, used to resolve privilege metadata.
            matter_id: ID of the matter, used to resolve conflict metadata.
            privilege_metadata: Pre-resolved privilege metadata (skips the lookup).
            matter_context: Pre-resolved conflict metadata (skips the lookup).
            resource: ABAC resource attributes; built from the route when omitted.

        Returns:
            PolicyDecisionContext holding every decision that allowed the request.

        Raises:
            AuthenticationRequiredError: No principal.
            AccessDeniedError: Any evaluator denied access.
        """
        if principal is None:
            logger.warning("policy_authentication_required")
            raise AuthenticationRequiredError()

        with structlog.contextvars.bound_contextvars(
            user_id=principal.id,
            organization_id=principal.organization_id,
        ):
            return await self._authorize(
                principal,
                policy,
                resource_id=resource_id,
                matter_id=matter_id,
                privilege_metadata=privilege_metadata,
                matter_context=matter_context,
                resource=resource,
            )

    async def _authorize(
        self,
        principal: Principal,
        policy: RoutePolicy,
        *,
        resource_id: str | None,
        matter_id: str | None,
        privilege_metadata: PrivilegeMetadata | None,
        matter_context: MatterConflictMetadata | None,
        resource: ResourceAttributes | None,
    ) -> PolicyDecisionContext:
        decisions: list[AccessDecision] = []

        # Permissions
        decision = self._record(principal, evaluate_permissions(principal, policy.permissions))
        if decision.kind.is_denial:
            raise PermissionDeniedError(missing_permissions(principal, policy.permissions))
        decisions.append(decision)

        # Roles
        decision = self._record(principal, evaluate_roles(principal, policy.roles))
        if decision.kind.is_denial:
            raise RoleRequiredError(sorted(policy.roles))
        decisions.append(decision)

        # ABAC
        if policy.abac_enabled:
            if resource is None:
                resource = ResourceAttributes(
                    type=policy.resource_type,
                    id=resource_id,
                    organization_id=principal.organization_id,
                )
            decision = self._record(
                principal,
                self._abac.evaluate_principal(principal, policy.action, resource),
            )
            if decision.kind.is_denial:
                raise PolicyDeniedError(
                    decision.reason or "Access denied by policy",
                    matched_policy=decision.matched_policy,
                )
            decisions.append(decision)

        # Privilege
        privilege_result: PrivilegeCheckResult | None = None
        if policy.privilege_sensitive:
            if privilege_metadata is None and resource_id is not None:
                privilege_metadata = await self._privilege_source.fetch_resource_privilege_metadata(resource_id)

            privilege_result = self._classifier.check_privilege_access(
                principal,
                privilege_metadata,
                policy.required_classification or PrivilegeClassification.PUBLIC,
                require_attorney=policy.require_attorney,
            )
            decision = self._record(
                principal,
                AccessDecision.from_privilege_result(
                    privilege_result,
                    matter_id=(privilege_metadata.matter_id if privilege_metadata else None) or matter_id,
                ),
            )
            if decision.kind.is_denial:
                raise PrivilegeDeniedError(
                    privilege_result.reason or "Privileged access denied",
                    classification=privilege_result.classification,
                )
            decisions.append(decision)

        # Conflict
        conflict_record: ConflictCheckRecord | None = None
        conflict_skipped = False
        if policy.conflict_check:
            matter_context = await self._resolve_matter_context(matter_id, matter_context)

            if matter_context is None:
                reason = NO_MATTER_CONTEXT_REASON if matter_id is None else MATTER_METADATA_UNAVAILABLE_REASON
                self._handle_missing_context(principal, matter_id, reason)
                conflict_skipped = True
            else:
                conflict_record = await self._screener.perform_conflict_check(principal, matter_context)
                decision = self._record(principal, AccessDecision.from_conflict_record(conflict_record))
                if decision.kind.is_denial:
                    raise ConflictOfInterestError(
                        conflict_record.denial_reason,
                        conflict_type=conflict_record.conflict_type,
                        check_id=conflict_record.id,
                    )
                decisions.append(decision)

        logger.debug(
            "policy_authorized",
            checks=[d.check.value for d in decisions],
            conflict_check_skipped=conflict_skipped,
        )

        return PolicyDecisionContext(
            principal_id=principal.id,
            decisions=decisions,
            privilege=privilege_result,
            conflict=conflict_record,
            conflict_check_skipped=conflict_skipped,
        )

    async def _resolve_matter_context(
        self,
        matter_id: str | None,
        matter_context: MatterConflictMetadata | None,
    ) -> MatterConflictMetadata | None:
        if matter_context is not None:
            return matter_context
        if matter_id is None:
            return None
        return await self._matters.fetch_matter_conflict_metadata(matter_id)

    def _handle_missing_context(self, principal: Principal, matter_id: str | None, reason: str) -> None:
        """Audit a skipped conflict check, then fail open or closed per settings."""
        fail_open = self._settings.conflict_fail_open_on_missing_context
        decision = AccessDecision(
            check=DecisionCheck.CONFLICT,
            kind=DecisionKind.ALLOWED if fail_open else DecisionKind.DENIED,
            reason=reason,
            requires_audit=True,
            matter_id=matter_id,
        )
        self._record(principal, decision, severity=AuditSeverity.WARNING)

        logger.warning(
            "conflict_check_skipped",
            matter_id=matter_id,
            reason=reason,
            fail_open=fail_open,
        )

        if not fail_open:
            raise MissingContextError()

    def _record(
        self,
        principal: Principal,
        decision: AccessDecision,
        severity: AuditSeverity | None = None,
    ) -> AccessDecision:
        """Write audit-required decisions to the sink and pass the decision through."""
        if decision.requires_audit:
            self._audit.write(AuditRecord.from_decision(principal, decision, severity=severity))
        return decision


# =============================================================================
# Factory Functions
# =============================================================================

_policy_orchestrator: PolicyOrchestrator | None = None
_orchestrator_lock = threading.Lock()


def get_policy_orchestrator() -> PolicyOrchestrator:
    """Get singleton policy orchestrator with default collaborators.

    Hosts with real metadata sources build their own ``PolicyOrchestrator``
    and override this dependency.
    """
    global _policy_orchestrator  # noqa: PLW0603

    if _policy_orchestrator is None:
        with _orchestrator_lock:
            if _policy_orchestrator is None:
                _policy_orchestrator = PolicyOrchestrator()

    return _policy_orchestrator


def reset_policy_orchestrator() -> None:
    """Reset singleton for testing."""
    global _policy_orchestrator  # noqa: PLW0603

    with _orchestrator_lock:
        _policy_orchestrator = None
