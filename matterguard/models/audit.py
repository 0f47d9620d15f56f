"""Audit record model for access decisions."""

import hashlib
import json
from enum import Enum
from typing import Any

from pydantic import Field

from matterguard.models.common import FrozenModel, UTCDateTime, utcnow
from matterguard.models.conflict import ConflictType
from matterguard.models.decision import AccessDecision, DecisionCheck, DecisionKind
from matterguard.models.principal import Principal
from matterguard.models.privilege import PrivilegeClassification


class AuditSeverity(str, Enum):
    """Audit log severity.

    Denials, detected conflicts, waivers and skipped checks are WARNING;
    clean outcomes are INFO.
    """

    INFO = "info"
    WARNING = "warning"


class AuditRecord(FrozenModel):
    """Structured, append-only record of one access decision."""

    timestamp: UTCDateTime = Field(default_factory=utcnow)
    principal_id: str | None
    organization_id: str | None
    session_id: str | None = None
    check: DecisionCheck
    decision: DecisionKind
    severity: AuditSeverity
    classification: PrivilegeClassification | None = None
    conflict_type: ConflictType | None = None
    reason: str | None = None
    matter_id: str | None = None
    client_id: str | None = None
    opposing_parties: list[str] = Field(default_factory=list)
    waiver_id: str | None = None
    waiver_warning: str | None = None
    check_id: str | None = None
    matched_policy: str | None = None
    previous_hash: str | None = None
    hash: str | None = None

    @classmethod
    def from_decision(
        cls,
        principal: Principal | None,
        decision: AccessDecision,
        severity: AuditSeverity | None = None,
    ) -> "AuditRecord":
        """Build an audit record, deriving severity from the decision."""
        if severity is None:
            flagged = (
                decision.kind != DecisionKind.ALLOWED
                or decision.conflict_type is not None
            )
            severity = AuditSeverity.WARNING if flagged else AuditSeverity.INFO

        return cls(
            timestamp=decision.decided_at,
            principal_id=principal.id if principal else None,
            organization_id=principal.organization_id if principal else None,
            session_id=principal.session_id if principal else None,
            check=decision.check,
            decision=decision.kind,
            severity=severity,
            classification=decision.classification,
            conflict_type=decision.conflict_type,
            reason=decision.reason,
            matter_id=decision.matter_id,
            client_id=decision.client_id,
            opposing_parties=list(decision.opposing_parties),
            waiver_id=decision.waiver_id,
            waiver_warning=decision.waiver_warning,
            check_id=decision.check_id,
            matched_policy=decision.matched_policy,
        )

    def log_fields(self) -> dict[str, Any]:
        """Flat JSON-safe fields for structured logging."""
        return self.model_dump(mode="json", exclude_none=True)

    def compute_hash(self, previous_hash: str | None) -> str:
        """SHA-256 over the canonical record content and the previous link."""
        payload = self.model_dump(mode="json", exclude={"previous_hash", "hash"})
        payload["previous_hash"] = previous_hash or ""
        canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()

    def chained(self, previous_hash: str | None) -> "AuditRecord":
        """Copy of this record linked to the previous record's hash."""
        return self.model_copy(
            update={
                "previous_hash": previous_hash,
                "hash": self.compute_hash(previous_hash),
            }
        )
