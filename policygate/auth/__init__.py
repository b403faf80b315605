"""Request-scoped authentication context.

Usage:
    from policygate.auth import RequestContext, AUTH_CONTEXT_KEY

    ctx = RequestContext().with_value(AUTH_CONTEXT_KEY, user)

FastAPI wiring lives in policygate.auth.middleware.
"""

from policygate.auth.context import AUTH_CONTEXT_KEY, ContextKey, RequestContext

__all__ = [
    "AUTH_CONTEXT_KEY",
    "ContextKey",
    "RequestContext",
]
