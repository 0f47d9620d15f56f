"""Pytest configuration and shared fixtures."""

from collections.abc import Generator
from datetime import UTC, datetime

import pytest

from matterguard.core.config import get_settings
from matterguard.models.conflict import MatterConflictMetadata
from matterguard.models.principal import Principal
from matterguard.services.abac_engine import reset_abac_engine
from matterguard.services.audit_sink import InMemoryAuditSink
from matterguard.services.policy_orchestrator import reset_policy_orchestrator
from matterguard.services.privilege_classifier import reset_privilege_classifier

FIXED_NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def reset_singletons() -> Generator[None, None, None]:
    """Clear cached settings and service singletons between tests."""
    get_settings.cache_clear()
    reset_privilege_classifier()
    reset_abac_engine()
    reset_policy_orchestrator()
    yield
    get_settings.cache_clear()
    reset_privilege_classifier()
    reset_abac_engine()
    reset_policy_orchestrator()


@pytest.fixture
def fixed_clock() -> datetime:
    """Fixed 'now' for wall and waiver expiry checks."""
    return FIXED_NOW


@pytest.fixture
def attorney() -> Principal:
    """Create an attorney principal with access to matter-1.

    Returns:
        Attorney principal representing client-1.
    """
    return Principal(
        id="attorney-1",
        organization_id="org-1",
        roles={"attorney"},
        is_attorney=True,
        matter_access={"matter-1"},
        clients={"client-1"},
        session_id="session-1",
        mfa_verified=True,
    )


@pytest.fixture
def paralegal() -> Principal:
    """Create a paralegal principal (not an attorney)."""
    return Principal(
        id="paralegal-1",
        organization_id="org-1",
        roles={"paralegal"},
        matter_access={"matter-1"},
    )


@pytest.fixture
def super_admin() -> Principal:
    """Create a super admin with no explicit permissions."""
    return Principal(id="root-1", organization_id="org-1", roles={"super_admin"})


@pytest.fixture
def matter() -> MatterConflictMetadata:
    """Create a conflict-checked matter with no overlap with the fixtures above."""
    return MatterConflictMetadata(
        matter_id="matter-1",
        client_id="client-9",
        opposing_parties=["party-x", "party-y"],
        conflict_checked=True,
        last_conflict_check=FIXED_NOW,
    )


@pytest.fixture
def audit_sink() -> InMemoryAuditSink:
    """Create an in-memory, hash-chained audit sink."""
    return InMemoryAuditSink(hash_chain=True)
