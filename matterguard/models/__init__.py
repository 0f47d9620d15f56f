"""Pydantic models module."""

from matterguard.models.abac import (
    EnvironmentAttributes,
    Policy,
    PolicyContext,
    PolicyDecision,
    PolicyEffect,
    ResourceAttributes,
    SubjectAttributes,
)
from matterguard.models.audit import AuditRecord, AuditSeverity
from matterguard.models.conflict import (
    ChineseWallConfig,
    ConflictCheckRecord,
    ConflictStatus,
    ConflictType,
    ConflictWaiver,
    MatterConflictMetadata,
)
from matterguard.models.decision import AccessDecision, DecisionCheck, DecisionKind
from matterguard.models.permission import ROLE_PERMISSIONS, Permission, Role
from matterguard.models.policy import PolicyDecisionContext, RoutePolicy
from matterguard.models.principal import Principal
from matterguard.models.privilege import (
    PrivilegeCheckResult,
    PrivilegeClassification,
    PrivilegeMetadata,
)

__all__ = [
    # Principal and grants
    "Principal",
    "Permission",
    "Role",
    "ROLE_PERMISSIONS",
    # Privilege
    "PrivilegeClassification",
    "PrivilegeMetadata",
    "PrivilegeCheckResult",
    # Conflict
    "ChineseWallConfig",
    "ConflictCheckRecord",
    "ConflictStatus",
    "ConflictType",
    "ConflictWaiver",
    "MatterConflictMetadata",
    # Decisions and audit
    "AccessDecision",
    "DecisionCheck",
    "DecisionKind",
    "AuditRecord",
    "AuditSeverity",
    # Route policy
    "RoutePolicy",
    "PolicyDecisionContext",
    # ABAC
    "EnvironmentAttributes",
    "Policy",
    "PolicyContext",
    "PolicyDecision",
    "PolicyEffect",
    "ResourceAttributes",
    "SubjectAttributes",
]
