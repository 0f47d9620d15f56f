"""Attorney-client privilege classifier.

Implements:
- Attorney-client privilege verification
- Work product doctrine protection (authoring attorney or designated reviewers)
- Joint-defense group membership
- Privilege waiver detection

The classifier is a pure decision over request-scoped snapshots. Audit
writing is the orchestrator's job, driven by ``requires_logging``.
"""

from __future__ import annotations

import threading

import structlog

from matterguard.core.config import get_settings
from matterguard.models.principal import Principal
from matterguard.models.privilege import (
    PrivilegeCheckResult,
    PrivilegeClassification,
    PrivilegeMetadata,
)

logger = structlog.get_logger(__name__)


class PrivilegeClassifier:
    """Decides whether a principal may access a classified resource.

    Example:
        >>> classifier = get_privilege_classifier()
        >>> result = classifier.check_privilege_access(
        ...     principal, metadata, PrivilegeClassification.PRIVILEGED, require_attorney=True
        ... )
        >>> result.allowed
        False
    """

    def __init__(
        self,
        privilege_roles: frozenset[str] | None = None,
        enforce_joint_defense_membership: bool | None = None,
    ) -> None:
        settings = get_settings()
        self._privilege_roles = (
            frozenset(r.lower() for r in privilege_roles)
            if privilege_roles is not None
            else settings.privilege_role_set
        )
        self._enforce_joint_defense = (
            enforce_joint_defense_membership
            if enforce_joint_defense_membership is not None
            else settings.enforce_joint_defense_membership
        )

    def check_privilege_access(
        self,
        principal: Principal,
        metadata: PrivilegeMetadata | None,
        required_classification: PrivilegeClassification,
        require_attorney: bool = False,
    ) -> PrivilegeCheckResult:
        """Check whether ``principal`` may access a resource.

        Args:
            principal: Request principal.
            metadata: Resource privilege metadata, or None when unavailable.
            required_classification: Classification the route protects.
            require_attorney: Whether the route demands attorney status.

        Returns:
            PrivilegeCheckResult describing the decision.
        """
        if metadata is None:
            return self._check_role_based_access(principal, required_classification, require_attorney)

        if metadata.waived:
            return PrivilegeCheckResult(
                allowed=True,
                classification=metadata.classification,
                requires_logging=True,
                waiver_warning=(
                    f"Privilege waived on "
                    f"{metadata.waived_at.isoformat() if metadata.waived_at else 'unknown date'}: "
                    f"{metadata.waiver_reason or 'no reason recorded'}"
                ),
            )

        classification = metadata.classification

        # Resource is less sensitive than required
        if classification < required_classification:
            return PrivilegeCheckResult(
                allowed=True,
                classification=classification,
                requires_logging=classification >= PrivilegeClassification.PRIVILEGED,
            )

        if require_attorney and not principal.is_attorney:
            return self._deny(classification, "Attorney status required for privileged access")

        if metadata.matter_id and metadata.matter_id not in principal.matter_access:
            return self._deny(classification, "User does not have access to this matter")

        if classification == PrivilegeClassification.JOINT_DEFENSE:
            denial = self._check_joint_defense(principal, metadata)
            if denial is not None:
                return denial

        if classification == PrivilegeClassification.WORK_PRODUCT:
            is_author = metadata.attorney_id is not None and metadata.attorney_id == principal.id
            if not is_author and principal.id not in metadata.reviewer_ids:
                return self._deny(classification, "Work product access restricted to authoring attorney")

        return PrivilegeCheckResult(
            allowed=True,
            classification=classification,
            requires_logging=True,
        )

    def _check_role_based_access(
        self,
        principal: Principal,
        required_classification: PrivilegeClassification,
        require_attorney: bool,
    ) -> PrivilegeCheckResult:
        """Fallback when no resource metadata is available."""
        if require_attorney and not principal.is_attorney:
            return self._deny(required_classification, "Attorney status required")

        has_privilege_role = any(role.lower() in self._privilege_roles for role in principal.roles)

        if required_classification >= PrivilegeClassification.PRIVILEGED and not has_privilege_role:
            return self._deny(required_classification, "Insufficient role for privileged access")

        return PrivilegeCheckResult(
            allowed=True,
            classification=required_classification,
            requires_logging=required_classification != PrivilegeClassification.PUBLIC,
        )

    def _check_joint_defense(
        self,
        principal: Principal,
        metadata: PrivilegeMetadata,
    ) -> PrivilegeCheckResult | None:
        group_id = metadata.joint_defense_group_id

        if group_id is None or group_id in principal.joint_defense_groups:
            return None

        if not self._enforce_joint_defense:
            logger.warning(
                "joint_defense_membership_unverified",
                user_id=principal.id,
                joint_defense_group_id=group_id,
            )
            return None

        return self._deny(
            PrivilegeClassification.JOINT_DEFENSE,
            "Joint defense group membership required",
        )

    @staticmethod
    def _deny(classification: PrivilegeClassification, reason: str) -> PrivilegeCheckResult:
        return PrivilegeCheckResult(
            allowed=False,
            classification=classification,
            reason=reason,
            requires_logging=True,
        )


# =============================================================================
# Factory Functions
# =============================================================================

_privilege_classifier: PrivilegeClassifier | None = None
_classifier_lock = threading.Lock()


def get_privilege_classifier() -> PrivilegeClassifier:
    """Get singleton privilege classifier instance.

    Returns:
        PrivilegeClassifier singleton instance.
    """
    global _privilege_classifier  # noqa: PLW0603

    if _privilege_classifier is None:
        with _classifier_lock:
            if _privilege_classifier is None:
                _privilege_classifier = PrivilegeClassifier()

    return _privilege_classifier


def reset_privilege_classifier() -> None:
    """Reset singleton for testing."""
    global _privilege_classifier  # noqa: PLW0603

    with _classifier_lock:
        _privilege_classifier = None
