"""FastAPI dependencies for route-level policy enforcement.

The host's authentication middleware places a ``Principal`` (or its session
payload) on ``request.state.principal``. Routes declare a ``RoutePolicy``
and depend on ``require_policy`` to enforce it.
"""

import json
from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from fastapi import Depends, Request

from matterguard.core.exceptions import AuthenticationRequiredError
from matterguard.models.abac import ResourceAttributes
from matterguard.models.policy import PolicyDecisionContext, RoutePolicy
from matterguard.models.principal import Principal
from matterguard.services.policy_orchestrator import PolicyOrchestrator, get_policy_orchestrator

logger = structlog.get_logger(__name__)

RESOURCE_ID_PARAMS = ("id", "document_id")
MATTER_ID_PARAMS = ("matter_id",)
MATTER_ID_BODY_KEYS = ("matterId", "matter_id")

ResourceExtractor = Callable[[Request], ResourceAttributes | None | Awaitable[ResourceAttributes | None]]
MatterIdExtractor = Callable[[Request], str | None | Awaitable[str | None]]


def _first_param(request: Request, names: tuple[str, ...]) -> str | None:
    for name in names:
        value = request.path_params.get(name)
        if value:
            return str(value)
    return None


async def _maybe_await(value: Any) -> Any:
    if isinstance(value, Awaitable):
        return await value
    return value


async def matter_id_from_request(request: Request) -> str | None:
    """Matter ID from the ``matter_id`` path parameter, else a JSON body field.

    Body keys ``matterId`` and ``matter_id`` are read. A missing or non-JSON
    body yields None.
    """
    matter_id = _first_param(request, MATTER_ID_PARAMS)
    if matter_id is not None:
        return matter_id

    if "application/json" not in request.headers.get("content-type", ""):
        return None

    body = await request.body()
    if not body:
        return None

    try:
        payload = json.loads(body)
    except ValueError:
        logger.debug("matter_id_body_unparseable", path=request.url.path)
        return None

    if not isinstance(payload, dict):
        return None

    for key in MATTER_ID_BODY_KEYS:
        value = payload.get(key)
        if value:
            return str(value)
    return None


async def get_principal(request: Request) -> Principal:
    """Get the authenticated principal attached to the request.

    Raises:
        AuthenticationRequiredError: If no principal is attached.
    """
    principal: Any = getattr(request.state, "principal", None)

    if principal is None:
        logger.warning("principal_missing", path=request.url.path)
        raise AuthenticationRequiredError()

    if isinstance(principal, Principal):
        return principal

    return Principal.model_validate(principal)


def require_policy(
    policy: RoutePolicy,
    *,
    get_resource: ResourceExtractor | None = None,
    get_matter_id: MatterIdExtractor | None = None,
) -> Callable[..., Awaitable[PolicyDecisionContext]]:
    """Create a dependency that enforces ``policy`` for a route.

    The resource ID comes from the path parameters ``id``/``document_id``.
    The matter ID comes from ``get_matter_id`` when given, otherwise from
    ``matter_id_from_request``. ABAC routes pass ``get_resource`` to supply
    ownership and assignment attributes. Both extractors may be sync or async.
    The resulting decision context is returned and also stored on
    ``request.state.policy_context``.

    Example:
        @router.get("/matters/{matter_id}")
        async def get_matter(
            policy_context: PolicyDecisionContext = Depends(
                require_policy(MATTER_READ, get_resource=load_matter_attributes)
            ),
        ):
            ...
    """

    async def policy_checker(
        request: Request,
        principal: Principal = Depends(get_principal),
        orchestrator: PolicyOrchestrator = Depends(get_policy_orchestrator),
    ) -> PolicyDecisionContext:
        if get_matter_id is not None:
            matter_id = await _maybe_await(get_matter_id(request))
        else:
            matter_id = await matter_id_from_request(request)

        resource = await _maybe_await(get_resource(request)) if get_resource is not None else None

        context = await orchestrator.authorize(
            principal,
            policy,
            resource_id=_first_param(request, RESOURCE_ID_PARAMS),
            matter_id=matter_id,
            resource=resource,
        )
        request.state.policy_context = context
        return context

    return policy_checker
