"""ABAC (Attribute-Based Access Control) type definitions.

Access decisions are based on attributes of the subject, resource, action,
and environment.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Literal

from pydantic import Field

from matterguard.models.common import FrozenModel, IdList, IdSet, UTCDateTime, utcnow

ResourceType = Literal[
    "matter",
    "document",
    "document_template",
    "party",
    "transaction",
    "trust_account",
    "trust_transaction",
    "task",
    "workflow",
    "user",
    "organization",
    "communication",
    "time_entry",
    "audit_log",
]

Action = Literal["create", "read", "update", "delete", "list", "assign", "approve", "export"]

ConfidentialityLevel = Literal["standard", "confidential", "privileged"]


class SubjectAttributes(FrozenModel):
    """The principal making the request."""

    id: str
    organization_id: str = Field(..., alias="organizationId")
    roles: IdSet = Field(default_factory=frozenset)
    permissions: IdSet = Field(default_factory=frozenset)
    department_id: str | None = Field(None, alias="departmentId")
    team_ids: IdSet = Field(default_factory=frozenset, alias="teamIds")


class ResourceAttributes(FrozenModel):
    """The entity being accessed."""

    type: ResourceType
    id: str | None = None
    organization_id: str = Field(..., alias="organizationId")
    owner_id: str | None = Field(None, alias="ownerId")
    assigned_to: IdList = Field(default_factory=list, alias="assignedTo")
    department: str | None = None
    status: str | None = None
    confidentiality_level: ConfidentialityLevel | None = Field(None, alias="confidentialityLevel")


class EnvironmentAttributes(FrozenModel):
    """Contextual information about the request."""

    timestamp: UTCDateTime = Field(default_factory=utcnow)
    ip_address: str | None = Field(None, alias="ipAddress")
    mfa_verified: bool = Field(False, alias="mfaVerified")
    session_age: int | None = Field(None, alias="sessionAge", description="Seconds since login")


class PolicyContext(FrozenModel):
    """Everything a policy condition may inspect."""

    subject: SubjectAttributes
    resource: ResourceAttributes
    action: Action
    environment: EnvironmentAttributes


class PolicyEffect(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


@dataclass(frozen=True)
class Policy:
    """Single policy definition.

    Lower ``priority`` is evaluated first.
    """

    name: str
    description: str
    effect: PolicyEffect
    priority: int
    condition: Callable[[PolicyContext], bool]


class PolicyDecision(FrozenModel):
    """ABAC evaluation result."""

    allowed: bool
    matched_policy: str | None = None
    reason: str | None = None
