"""Tests for the FastAPI policy dependencies and error handlers."""

from typing import Any

import pytest
from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient

from matterguard.api.deps import get_principal, require_policy
from matterguard.api.errors import register_exception_handlers
from matterguard.core.config import Settings
from matterguard.models.abac import ResourceAttributes
from matterguard.models.conflict import MatterConflictMetadata
from matterguard.models.policy import PolicyDecisionContext, RoutePolicy
from matterguard.models.privilege import PrivilegeClassification, PrivilegeMetadata
from matterguard.services.audit_sink import InMemoryAuditSink
from matterguard.services.collaborators import (
    InMemoryMatterConflictSource,
    InMemoryPrivilegeMetadataSource,
)
from matterguard.services.policy_orchestrator import PolicyOrchestrator, get_policy_orchestrator

DOCUMENT_READ = RoutePolicy(
    permissions={"document:read"},
    required_classification=PrivilegeClassification.PRIVILEGED,
    require_attorney=True,
    conflict_check=True,
)

MATTER_READ = RoutePolicy(permissions={"matter:read"}, action="read", resource_type="matter")

DOCUMENT_CREATE = RoutePolicy(permissions={"document:create"}, conflict_check=True)

MATTER_ASSIGNMENTS: dict[str, list[str]] = {
    "matter-1": ["attorney-1"],
    "matter-3": ["attorney-2"],
}

ATTORNEY_PAYLOAD: dict[str, Any] = {
    "id": "attorney-1",
    "organizationId": "org-1",
    "roles": ["attorney"],
    "isAttorney": True,
    "matterAccess": ["matter-1"],
    "clients": ["client-1"],
}


def _matter_attributes(request: Request) -> ResourceAttributes:
    matter_id = request.path_params["matter_id"]
    return ResourceAttributes(
        type="matter",
        id=matter_id,
        organization_id="org-1",
        assigned_to=MATTER_ASSIGNMENTS.get(matter_id, []),
    )


def _build_app(principal: dict[str, Any] | None, orchestrator: PolicyOrchestrator) -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.middleware("http")
    async def attach_principal(request: Request, call_next):  # type: ignore[no-untyped-def]
        request.state.principal = principal
        request.state.correlation_id = "corr-1"
        return await call_next(request)

    @app.get("/matters/{matter_id}/documents/{document_id}")
    async def get_document(
        matter_id: str,
        document_id: str,
        context: PolicyDecisionContext = Depends(require_policy(DOCUMENT_READ)),
    ) -> dict[str, Any]:
        return {
            "document_id": document_id,
            "checks": [d.check.value for d in context.decisions],
            "waiver_notice": context.waiver_notice,
        }

    @app.get("/matters/{matter_id}")
    async def get_matter(
        matter_id: str,
        context: PolicyDecisionContext = Depends(require_policy(MATTER_READ, get_resource=_matter_attributes)),
    ) -> dict[str, Any]:
        return {"matter_id": matter_id, "checks": [d.check.value for d in context.decisions]}

    @app.post("/documents")
    async def create_document(
        payload: dict[str, Any],
        context: PolicyDecisionContext = Depends(require_policy(DOCUMENT_CREATE)),
    ) -> dict[str, Any]:
        return {"title": payload.get("title"), "conflict_check_skipped": context.conflict_check_skipped}

    @app.post("/intake")
    async def intake(
        context: PolicyDecisionContext = Depends(
            require_policy(DOCUMENT_CREATE, get_matter_id=lambda request: request.headers.get("x-matter-id"))
        ),
    ) -> dict[str, Any]:
        return {"conflict_check_skipped": context.conflict_check_skipped}

    @app.get("/me")
    async def me(principal=Depends(get_principal)) -> dict[str, str]:  # type: ignore[no-untyped-def]
        return {"id": principal.id}

    app.dependency_overrides[get_policy_orchestrator] = lambda: orchestrator
    return app


@pytest.fixture
def audit_sink() -> InMemoryAuditSink:
    return InMemoryAuditSink()


@pytest.fixture
def orchestrator(audit_sink: InMemoryAuditSink) -> PolicyOrchestrator:
    """Create an orchestrator with one privileged document and two matters."""
    return PolicyOrchestrator(
        audit_sink=audit_sink,
        matter_source=InMemoryMatterConflictSource(
            {
                "matter-1": MatterConflictMetadata(
                    matter_id="matter-1", client_id="client-9", opposing_parties=["party-x"]
                ),
                "matter-2": MatterConflictMetadata(
                    matter_id="matter-2", client_id="client-9", opposing_parties=["client-1"]
                ),
            }
        ),
        privilege_source=InMemoryPrivilegeMetadataSource(
            {
                "doc-1": PrivilegeMetadata(
                    classification=PrivilegeClassification.PRIVILEGED,
                    matter_id="matter-1",
                ),
            }
        ),
        settings=Settings(),
    )


class TestRequirePolicy:
    """Route-level enforcement."""

    def test_allowed(self, orchestrator: PolicyOrchestrator, audit_sink: InMemoryAuditSink) -> None:
        client = TestClient(_build_app(ATTORNEY_PAYLOAD, orchestrator))

        response = client.get("/matters/matter-1/documents/doc-1")

        assert response.status_code == 200
        body = response.json()
        assert body["checks"] == ["permission", "role", "privilege", "conflict"]
        assert body["waiver_notice"] is None
        assert len(audit_sink.records) == 2

    def test_unauthenticated(self, orchestrator: PolicyOrchestrator) -> None:
        client = TestClient(_build_app(None, orchestrator))

        response = client.get("/matters/matter-1/documents/doc-1")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    def test_conflict_of_interest(self, orchestrator: PolicyOrchestrator) -> None:
        client = TestClient(_build_app(ATTORNEY_PAYLOAD, orchestrator))

        response = client.get("/matters/matter-2/documents/doc-unknown")

        assert response.status_code == 403
        error = response.json()["error"]
        assert error["code"] == "CONFLICT_OF_INTEREST"
        assert error["message"] == "Access denied due to conflict of interest"
        assert error["details"]["conflict_type"] == "DIRECT_ADVERSE"
        assert error["details"]["correlationId"] == "corr-1"

    def test_privilege_denied(self, orchestrator: PolicyOrchestrator) -> None:
        payload = {**ATTORNEY_PAYLOAD, "isAttorney": False}
        client = TestClient(_build_app(payload, orchestrator))

        response = client.get("/matters/matter-1/documents/doc-1")

        assert response.status_code == 403
        error = response.json()["error"]
        assert error["code"] == "PRIVILEGE_DENIED"
        assert error["message"] == "Attorney status required for privileged access"

    def test_permission_denied(self, orchestrator: PolicyOrchestrator) -> None:
        payload = {"id": "u-9", "organizationId": "org-1", "roles": []}
        client = TestClient(_build_app(payload, orchestrator))

        response = client.get("/matters/matter-1/documents/doc-1")

        assert response.status_code == 403
        assert response.json()["error"]["details"]["missing_permissions"] == ["document:read"]


class TestRequestExtractors:
    """Resource attributes and matter IDs supplied from the request."""

    def test_assigned_attorney_reads_matter(self, orchestrator: PolicyOrchestrator) -> None:
        client = TestClient(_build_app(ATTORNEY_PAYLOAD, orchestrator))

        response = client.get("/matters/matter-1")

        assert response.status_code == 200
        assert response.json()["checks"] == ["permission", "role", "abac"]

    def test_unassigned_attorney_denied_by_policy(self, orchestrator: PolicyOrchestrator) -> None:
        client = TestClient(_build_app(ATTORNEY_PAYLOAD, orchestrator))

        response = client.get("/matters/matter-3")

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "POLICY_DENIED"

    def test_body_matter_id_triggers_conflict(self, orchestrator: PolicyOrchestrator) -> None:
        client = TestClient(_build_app(ATTORNEY_PAYLOAD, orchestrator))

        response = client.post("/documents", json={"matterId": "matter-2", "title": "Engagement letter"})

        assert response.status_code == 403
        error = response.json()["error"]
        assert error["code"] == "CONFLICT_OF_INTEREST"
        assert error["details"]["conflict_type"] == "DIRECT_ADVERSE"

    def test_snake_case_body_matter_id_is_screened(self, orchestrator: PolicyOrchestrator) -> None:
        client = TestClient(_build_app(ATTORNEY_PAYLOAD, orchestrator))

        response = client.post("/documents", json={"matter_id": "matter-1", "title": "Memo"})

        assert response.status_code == 200
        assert response.json() == {"title": "Memo", "conflict_check_skipped": False}

    def test_matter_id_extractor(self, orchestrator: PolicyOrchestrator) -> None:
        client = TestClient(_build_app(ATTORNEY_PAYLOAD, orchestrator))

        response = client.post("/intake", headers={"X-Matter-Id": "matter-2"})

        assert response.status_code == 403
        assert response.json()["error"]["details"]["conflict_type"] == "DIRECT_ADVERSE"


class TestGetPrincipal:
    """Principal resolution from request state."""

    def test_validates_payload(self, orchestrator: PolicyOrchestrator) -> None:
        client = TestClient(_build_app(ATTORNEY_PAYLOAD, orchestrator))

        response = client.get("/me")

        assert response.status_code == 200
        assert response.json() == {"id": "attorney-1"}
