"""Host application wiring for the policy layer."""

import structlog
from fastapi import FastAPI

from matterguard.api.errors import register_exception_handlers
from matterguard.core.logging import configure_logging

logger = structlog.get_logger(__name__)


def setup_policy_layer(app: FastAPI, *, configure_logs: bool = True) -> FastAPI:
    """Configure logging and install the policy error handlers on ``app``.

    Hosts that already configure structlog themselves pass
    ``configure_logs=False``.

    Example:
        app = setup_policy_layer(FastAPI())
    """
    if configure_logs:
        configure_logging()

    register_exception_handlers(app)

    logger.info("policy_layer_installed", logging_configured=configure_logs)
    return app
