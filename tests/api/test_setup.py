"""Tests for host application wiring."""

from collections.abc import Generator

import pytest
import structlog
from fastapi import FastAPI
from fastapi.testclient import TestClient

from matterguard.api.setup import setup_policy_layer
from matterguard.core.exceptions import PolicyDeniedError


@pytest.fixture(autouse=True)
def restore_structlog() -> Generator[None, None, None]:
    """Reset structlog to defaults after each test."""
    yield
    structlog.reset_defaults()


def _denying_app(configure_logs: bool) -> FastAPI:
    app = setup_policy_layer(FastAPI(), configure_logs=configure_logs)

    @app.get("/denied")
    async def denied() -> None:
        raise PolicyDeniedError("No matching policy - access denied by default")

    return app


class TestSetupPolicyLayer:
    """setup_policy_layer wiring."""

    def test_configures_logging(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MATTERGUARD_DEBUG", "false")

        _denying_app(configure_logs=True)

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_leaves_host_logging_alone(self) -> None:
        before = structlog.get_config()["processors"]

        _denying_app(configure_logs=False)

        assert structlog.get_config()["processors"] == before

    def test_installs_error_handlers(self) -> None:
        client = TestClient(_denying_app(configure_logs=False))

        response = client.get("/denied")

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "POLICY_DENIED"
