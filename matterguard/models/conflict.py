"""Conflict-of-interest models: ethical walls, matter metadata, check records.

Ethical-wall configuration and matter conflict metadata are owned by external
collaborators (ethics administration and matter management); the core only
reads them.
"""

from datetime import datetime
from enum import Enum

from pydantic import Field

from matterguard.models.common import FrozenModel, IdList, IdSet, UTCDateTime, utcnow


class ConflictType(str, Enum):
    """Conflict type classifications."""

    DIRECT_ADVERSE = "DIRECT_ADVERSE"  # Represents a party adverse in this matter
    MATERIAL_LIMITATION = "MATERIAL_LIMITATION"
    FORMER_CLIENT = "FORMER_CLIENT"  # Duty of loyalty to a former client
    IMPUTED = "IMPUTED"  # Attributed through firm association / ethical wall
    PROSPECTIVE = "PROSPECTIVE"
    BUSINESS_TRANSACTION = "BUSINESS_TRANSACTION"
    THIRD_PARTY_PAYER = "THIRD_PARTY_PAYER"


class ConflictStatus(str, Enum):
    """Conflict status.

    - ACTIVE: conflict blocks access
    - WAIVED: informed-consent waiver on file
    - SCREENED: ethical wall in place
    - CLEARED: no conflict exists
    - PENDING_REVIEW: awaiting ethics review
    """

    ACTIVE = "ACTIVE"
    WAIVED = "WAIVED"
    SCREENED = "SCREENED"
    CLEARED = "CLEARED"
    PENDING_REVIEW = "PENDING_REVIEW"


class ChineseWallConfig(FrozenModel):
    """Ethical wall configuration for a single principal."""

    user_id: str = Field(..., alias="userId", description="Walled principal")
    walled_matters: IdSet = Field(default_factory=frozenset, alias="walledMatters")
    walled_clients: IdSet = Field(default_factory=frozenset, alias="walledClients")
    walled_parties: IdSet = Field(
        default_factory=frozenset,
        alias="walledParties",
        description="Opposing parties the principal is walled off from",
    )
    created_at: UTCDateTime = Field(default_factory=utcnow, alias="createdAt")
    expires_at: UTCDateTime | None = Field(None, alias="expiresAt")
    reason: str = ""
    approved_by: str = Field("", alias="approvedBy", description="Partner or ethics officer")
    certifications: list[UTCDateTime] = Field(
        default_factory=list,
        description="Wall effectiveness certification dates",
    )

    def is_active(self, now: datetime) -> bool:
        """A wall stops blocking once its expiry is in the past."""
        return self.expires_at is None or self.expires_at >= now


class MatterConflictMetadata(FrozenModel):
    """Adverse-party graph for one matter."""

    matter_id: str = Field(..., alias="matterId")
    client_id: str = Field(..., alias="clientId")
    opposing_parties: IdList = Field(default_factory=list, alias="opposingParties")
    related_matters: IdList = Field(default_factory=list, alias="relatedMatters")
    conflict_checked: bool = Field(False, alias="conflictChecked")
    last_conflict_check: UTCDateTime | None = Field(None, alias="lastConflictCheck")


class ConflictCheckRecord(FrozenModel):
    """Outcome of one conflict screening. Always written to the audit sink."""

    id: str = Field(..., description="Unique check ID")
    user_id: str
    matter_id: str
    client_id: str
    opposing_parties: list[str] = Field(default_factory=list)
    checked_at: UTCDateTime
    conflict_detected: bool
    conflict_type: ConflictType | None = None
    status: ConflictStatus
    access_granted: bool
    denial_reason: str | None = None
    waiver_id: str | None = None
    screen_id: str | None = None


class ConflictWaiver(FrozenModel):
    """Informed-consent waiver recorded for a specific matter and conflict type."""

    id: str
    matter_id: str = Field(..., alias="matterId")
    conflict_type: ConflictType = Field(..., alias="conflictType")
    granted_by: str | None = Field(None, alias="grantedBy", description="Consenting client contact")
    granted_at: UTCDateTime = Field(default_factory=utcnow, alias="grantedAt")
    expires_at: UTCDateTime | None = Field(None, alias="expiresAt")
    revoked: bool = False

    def covers(self, matter_id: str, conflict_type: ConflictType, now: datetime) -> bool:
        """Whether this waiver justifies access for the given matter and conflict."""
        if self.revoked:
            return False
        if self.expires_at is not None and self.expires_at < now:
            return False
        return self.matter_id == matter_id and self.conflict_type == conflict_type
