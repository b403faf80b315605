"""policygate: in-process authorization dispatcher.

Routes authorization requests to rules registered on namespaced
policies, or to methods of policy objects bound by naming convention.

Usage:
    from policygate import Authorizer, Policy, RequestContext

    authorizer = Authorizer()
    authorizer.register_policy(Policy("project", {"create": can_create}))

    ctx = authorizer.set_auth_context(RequestContext(), user)
    authorizer.authorize(ctx, "project.create", project)
"""

from policygate.auth.context import AUTH_CONTEXT_KEY, ContextKey, RequestContext
from policygate.authz import (
    AccessDeniedError,
    AuthorizationError,
    Authorizer,
    AuthorizerSettings,
    AuthzDecision,
    DefaultPolicy,
    Policy,
    get_authorizer,
)

__version__ = "0.1.0"

__all__ = [
    "AUTH_CONTEXT_KEY",
    "ContextKey",
    "RequestContext",
    "AccessDeniedError",
    "AuthorizationError",
    "Authorizer",
    "AuthorizerSettings",
    "AuthzDecision",
    "DefaultPolicy",
    "Policy",
    "get_authorizer",
]
