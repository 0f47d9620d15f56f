"""Attorney-client privilege models.

Classification ordering is an explicit rank table. Comparisons between
classifications always go through the rank, never declaration order.
"""

from enum import Enum

from pydantic import Field

from matterguard.models.common import FrozenModel, IdSet, UTCDateTime


class PrivilegeClassification(str, Enum):
    """Privilege classification levels, least to most restrictive."""

    PUBLIC = "PUBLIC"  # No privilege protection
    INTERNAL = "INTERNAL"  # Organizational confidential
    CONFIDENTIAL = "CONFIDENTIAL"  # Client confidential
    PRIVILEGED = "PRIVILEGED"  # Attorney-client privileged
    WORK_PRODUCT = "WORK_PRODUCT"  # Attorney mental impressions
    JOINT_DEFENSE = "JOINT_DEFENSE"  # Shared privilege

    @property
    def rank(self) -> int:
        return CLASSIFICATION_RANKS[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, PrivilegeClassification):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, PrivilegeClassification):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, PrivilegeClassification):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, PrivilegeClassification):
            return NotImplemented
        return self.rank >= other.rank


CLASSIFICATION_RANKS: dict[PrivilegeClassification, int] = {
    PrivilegeClassification.PUBLIC: 0,
    PrivilegeClassification.INTERNAL: 1,
    PrivilegeClassification.CONFIDENTIAL: 2,
    PrivilegeClassification.PRIVILEGED: 3,
    PrivilegeClassification.WORK_PRODUCT: 4,
    PrivilegeClassification.JOINT_DEFENSE: 5,
}


class PrivilegeMetadata(FrozenModel):
    """Privilege metadata for a document or record."""

    classification: PrivilegeClassification
    attorney_id: str | None = Field(None, alias="attorneyId", description="Authoring attorney of record")
    client_id: str | None = Field(None, alias="clientId")
    matter_id: str | None = Field(None, alias="matterId")
    joint_defense_group_id: str | None = Field(None, alias="jointDefenseGroupId")
    reviewer_ids: IdSet = Field(
        default_factory=frozenset,
        alias="reviewerIds",
        description="Designated work-product reviewers supplied by the host",
    )
    asserted_at: UTCDateTime | None = Field(None, alias="assertedAt")
    reviewed_at: UTCDateTime | None = Field(None, alias="reviewedAt")
    reviewed_by: str | None = Field(None, alias="reviewedBy")
    notes: str | None = None
    waived: bool = False
    waived_at: UTCDateTime | None = Field(None, alias="waivedAt")
    waiver_reason: str | None = Field(None, alias="waiverReason")


class PrivilegeCheckResult(FrozenModel):
    """Result of a privilege clearance check."""

    allowed: bool
    classification: PrivilegeClassification
    reason: str | None = None
    requires_logging: bool
    waiver_warning: str | None = None
