"""Exception handlers rendering policy errors as structured JSON responses."""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from matterguard.core.exceptions import PolicyError

logger = structlog.get_logger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the ``PolicyError`` handler on ``app``.

    Example:
        app = FastAPI()
        register_exception_handlers(app)
    """

    @app.exception_handler(PolicyError)
    async def policy_exception_handler(request: Request, exc: PolicyError) -> JSONResponse:
        """Render a policy error with the standard error envelope."""
        correlation_id = getattr(request.state, "correlation_id", None)

        content = exc.detail
        if correlation_id:
            content["error"]["details"]["correlationId"] = correlation_id

        logger.info(
            "policy_error_response",
            code=exc.code,
            status_code=exc.status_code,
            path=request.url.path,
        )

        return JSONResponse(status_code=exc.status_code, content=content)
