"""Principal (request user context) model.

Constructed per authenticated request by the host's identity/session layer.
Read-only inside the core and never persisted by it.
"""

from pydantic import Field

from matterguard.models.common import FrozenModel, IdSet
from matterguard.models.conflict import ChineseWallConfig


class Principal(FrozenModel):
    """Authenticated principal as seen by the policy evaluators."""

    id: str = Field(..., description="User ID")
    organization_id: str = Field(..., alias="organizationId", description="Tenant ID")
    roles: IdSet = Field(default_factory=frozenset)
    permissions: IdSet = Field(default_factory=frozenset, description="Explicitly granted permissions")
    is_attorney: bool = Field(False, alias="isAttorney")
    bar_admissions: IdSet = Field(default_factory=frozenset, alias="barAdmissions")
    matter_access: IdSet = Field(default_factory=frozenset, alias="matterAccess")
    clients: IdSet = Field(default_factory=frozenset, description="Clients currently represented")
    former_clients: IdSet = Field(default_factory=frozenset, alias="formerClients")
    waivers: IdSet = Field(default_factory=frozenset, description="Conflict waiver IDs on file")
    chinese_wall: ChineseWallConfig | None = Field(None, alias="chineseWall")
    joint_defense_groups: IdSet = Field(default_factory=frozenset, alias="jointDefenseGroups")
    session_id: str | None = Field(None, alias="sessionId", description="Session UUID for audit")
    mfa_verified: bool = Field(False, alias="mfaVerified")

    def has_role(self, role: str) -> bool:
        """Case-insensitive role membership."""
        wanted = role.lower()
        return any(r.lower() == wanted for r in self.roles)
