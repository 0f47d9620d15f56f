"""Access decision records produced by every evaluator."""

from enum import Enum

from pydantic import Field

from matterguard.models.common import FrozenModel, UTCDateTime, utcnow
from matterguard.models.conflict import ConflictCheckRecord, ConflictStatus, ConflictType
from matterguard.models.privilege import PrivilegeCheckResult, PrivilegeClassification


class DecisionKind(str, Enum):
    """Outcome of an evaluation.

    SCREENED is a denial caused by an ethical wall; DENIED covers every
    other negative outcome.
    """

    ALLOWED = "ALLOWED"
    ALLOWED_WITH_WAIVER = "ALLOWED_WITH_WAIVER"
    DENIED = "DENIED"
    SCREENED = "SCREENED"

    @property
    def is_denial(self) -> bool:
        return self in (DecisionKind.DENIED, DecisionKind.SCREENED)


class DecisionCheck(str, Enum):
    """Which evaluator produced a decision."""

    PERMISSION = "permission"
    ROLE = "role"
    ABAC = "abac"
    PRIVILEGE = "privilege"
    CONFLICT = "conflict"


class AccessDecision(FrozenModel):
    """Immutable record of one evaluator's decision."""

    check: DecisionCheck
    kind: DecisionKind
    reason: str | None = None
    requires_audit: bool = False
    classification: PrivilegeClassification | None = None
    conflict_type: ConflictType | None = None
    conflict_status: ConflictStatus | None = None
    waiver_id: str | None = None
    screen_id: str | None = None
    waiver_warning: str | None = None
    check_id: str | None = None
    matter_id: str | None = None
    client_id: str | None = None
    opposing_parties: list[str] = Field(default_factory=list)
    matched_policy: str | None = None
    decided_at: UTCDateTime = Field(default_factory=utcnow)

    @property
    def allowed(self) -> bool:
        return not self.kind.is_denial

    @classmethod
    def from_privilege_result(
        cls,
        result: PrivilegeCheckResult,
        matter_id: str | None = None,
    ) -> "AccessDecision":
        """Build the decision for a privilege clearance check."""
        if not result.allowed:
            kind = DecisionKind.DENIED
        elif result.waiver_warning:
            kind = DecisionKind.ALLOWED_WITH_WAIVER
        else:
            kind = DecisionKind.ALLOWED

        return cls(
            check=DecisionCheck.PRIVILEGE,
            kind=kind,
            reason=result.reason,
            requires_audit=result.requires_logging,
            classification=result.classification,
            waiver_warning=result.waiver_warning,
            matter_id=matter_id,
        )

    @classmethod
    def from_conflict_record(cls, record: ConflictCheckRecord) -> "AccessDecision":
        """Build the decision for a conflict screening. Always audit-required."""
        if record.status == ConflictStatus.SCREENED and not record.access_granted:
            kind = DecisionKind.SCREENED
        elif not record.access_granted:
            kind = DecisionKind.DENIED
        elif record.status == ConflictStatus.WAIVED:
            kind = DecisionKind.ALLOWED_WITH_WAIVER
        else:
            kind = DecisionKind.ALLOWED

        return cls(
            check=DecisionCheck.CONFLICT,
            kind=kind,
            reason=record.denial_reason,
            requires_audit=True,
            conflict_type=record.conflict_type,
            conflict_status=record.status,
            waiver_id=record.waiver_id,
            screen_id=record.screen_id,
            check_id=record.id,
            matter_id=record.matter_id,
            client_id=record.client_id,
            opposing_parties=list(record.opposing_parties),
            decided_at=record.checked_at,
        )
