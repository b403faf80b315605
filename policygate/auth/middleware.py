"""FastAPI authentication context middleware.

Loads the principal for each request and stores a RequestContext
carrying it in request.state.authz_ctx.
"""

import inspect
import logging
from typing import Any, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from policygate.auth.context import RequestContext
from policygate.authz.engine import Authorizer

logger = logging.getLogger(__name__)

PrincipalLoader = Callable[[Request], Any]


class AuthContextMiddleware(BaseHTTPMiddleware):
    """Attach the caller's principal to every request.

    Usage:
        def load_user(request: Request) -> User | None:
            return users.get(request.headers.get("X-User"))

        app.add_middleware(
            AuthContextMiddleware, authorizer=authorizer, principal_loader=load_user
        )

    Then in endpoints:
        ctx = get_request_context(request)
        authorizer.authorize(ctx, "project.create", project)

    A loader returning None leaves no principal on the context, which
    the dynamic path reports as InvalidAuthCtxError.
    """

    def __init__(
        self,
        app,
        authorizer: Authorizer,
        principal_loader: PrincipalLoader,
        exclude_paths: list[str] | None = None,
    ):
        """Initialize middleware.

        Args:
            app: FastAPI application
            authorizer: Authorizer whose context key is used
            principal_loader: Returns the principal for a request (may be async)
            exclude_paths: Exact paths to skip (e.g., ["/health"])
        """
        super().__init__(app)
        self.authorizer = authorizer
        self.principal_loader = principal_loader
        self.exclude_paths = set(exclude_paths or [])

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Load the principal and continue."""
        if request.url.path in self.exclude_paths:
            return await call_next(request)

        principal = self.principal_loader(request)
        if inspect.isawaitable(principal):
            principal = await principal

        ctx = RequestContext()
        if principal is not None:
            ctx = self.authorizer.set_auth_context(ctx, principal)
        request.state.authz_ctx = ctx

        logger.debug(
            "Auth context attached: path=%s principal=%s",
            request.url.path, type(principal).__name__ if principal is not None else "-"
        )

        return await call_next(request)


def get_request_context(request: Request) -> RequestContext:
    """FastAPI dependency returning the request's RequestContext.

    Falls back to an empty context when the middleware did not run.
    """
    ctx = getattr(request.state, "authz_ctx", None)
    return ctx if ctx is not None else RequestContext()
