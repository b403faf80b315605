"""FastAPI dependency helpers.

Map authorization outcomes to HTTP responses:

- missing principal -> 401
- denial by a rule -> 403
- any other engine error (unknown rule or policy, bad wiring) -> 500
"""

import inspect
import logging
from typing import Any, Callable

from fastapi import Depends, HTTPException, Request, status

from policygate.auth.context import RequestContext
from policygate.auth.middleware import get_request_context
from policygate.authz.engine import Authorizer, get_authorizer
from policygate.authz.errors import AccessDeniedError, InvalidAuthCtxError
from policygate.authz.models import AuthzDecision

logger = logging.getLogger(__name__)

ResourceLoader = Callable[[Request], Any]


async def _load_resource(loader: ResourceLoader | None, request: Request) -> Any:
    if loader is None:
        return None
    resource = loader(request)
    if inspect.isawaitable(resource):
        resource = await resource
    return resource


def _raise_for(decision: AuthzDecision) -> AuthzDecision:
    if decision.allowed:
        return decision

    if decision.code == InvalidAuthCtxError.code:
        status_code = status.HTTP_401_UNAUTHORIZED
    elif decision.code in (None, AccessDeniedError.code):
        status_code = status.HTTP_403_FORBIDDEN
    else:
        logger.error(
            "Authorization misconfigured: policy=%s rule=%s: %s",
            decision.policy, decision.rule, decision.reason
        )
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    if status_code != status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.info(
            "Access DENIED: policy=%s rule=%s reason=%s",
            decision.policy, decision.rule, decision.reason
        )

    raise HTTPException(
        status_code=status_code,
        detail={
            "error": "forbidden" if status_code == status.HTTP_403_FORBIDDEN else "authorization_error",
            "message": decision.reason,
            "policy": decision.policy,
            "rule": decision.rule,
            "code": decision.code,
        },
    )


def require_rule(
    rule: str,
    resource: ResourceLoader | None = None,
    authorizer: Authorizer | None = None,
):
    """FastAPI dependency to require an explicit rule.

    Usage:
        @app.post("/projects")
        async def create_project(
            _: AuthzDecision = Depends(require_rule("project.create"))
        ):
            pass
    """

    async def check(
        request: Request, ctx: RequestContext = Depends(get_request_context)
    ) -> AuthzDecision:
        engine = authorizer or get_authorizer()
        target = await _load_resource(resource, request)
        return _raise_for(engine.check(ctx, rule, target))

    return check


def require_method(
    policy: str,
    method: str,
    resource: ResourceLoader | None = None,
    authorizer: Authorizer | None = None,
):
    """FastAPI dependency to require a method of a factory-built policy.

    Usage:
        @app.get("/projects/{project_id}")
        async def get_project(
            _: AuthzDecision = Depends(require_method("project", "get", load_project))
        ):
            pass
    """

    async def check(
        request: Request, ctx: RequestContext = Depends(get_request_context)
    ) -> AuthzDecision:
        engine = authorizer or get_authorizer()
        target = await _load_resource(resource, request)
        return _raise_for(engine.check_method(ctx, policy, method, target))

    return check
