"""Route policy declaration and the decision context attached to a request."""

from pydantic import Field

from matterguard.models.abac import Action, ResourceType
from matterguard.models.common import FrozenModel, IdSet
from matterguard.models.conflict import ConflictCheckRecord
from matterguard.models.decision import AccessDecision, DecisionCheck, DecisionKind
from matterguard.models.privilege import PrivilegeCheckResult, PrivilegeClassification


class RoutePolicy(FrozenModel):
    """Declared access requirements for one route.

    Example:
        DOWNLOAD_PRIVILEGED = RoutePolicy(
            permissions={"document:read", "document:download"},
            required_classification=PrivilegeClassification.PRIVILEGED,
            require_attorney=True,
            conflict_check=True,
        )
    """

    permissions: IdSet = Field(default_factory=frozenset, description="All must be granted")
    roles: IdSet = Field(default_factory=frozenset, description="Any one must be held")
    required_classification: PrivilegeClassification | None = None
    require_attorney: bool = False
    conflict_check: bool = False
    action: Action | None = None
    resource_type: ResourceType | None = None

    @property
    def privilege_sensitive(self) -> bool:
        return self.required_classification is not None or self.require_attorney

    @property
    def abac_enabled(self) -> bool:
        return self.action is not None and self.resource_type is not None


class PolicyDecisionContext(FrozenModel):
    """Decisions that allowed a request, for downstream use (e.g. waiver banners)."""

    principal_id: str
    decisions: list[AccessDecision] = Field(default_factory=list)
    privilege: PrivilegeCheckResult | None = None
    conflict: ConflictCheckRecord | None = None
    conflict_check_skipped: bool = False

    def decision_for(self, check: DecisionCheck) -> AccessDecision | None:
        for decision in self.decisions:
            if decision.check == check:
                return decision
        return None

    @property
    def has_waiver(self) -> bool:
        return any(d.kind == DecisionKind.ALLOWED_WITH_WAIVER for d in self.decisions)

    @property
    def waiver_notice(self) -> str | None:
        """Banner text when access relies on a privilege or conflict waiver."""
        if self.privilege is not None and self.privilege.waiver_warning:
            return self.privilege.waiver_warning
        if self.conflict is not None and self.conflict.waiver_id:
            conflict_type = self.conflict.conflict_type.value if self.conflict.conflict_type else "conflict"
            return f"Access granted under waiver {self.conflict.waiver_id} ({conflict_type})"
        return None
