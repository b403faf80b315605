"""Authorization routing and binding.

Two ways to bind rules:
- explicit: rule functions registered on namespaced Policy objects
- dynamic: policy factories whose methods are looked up by name

Usage:
    from policygate.authz import Authorizer, Policy

    authorizer = Authorizer()
    authorizer.register_rule("create-resource", create_resource_rule)
    authorizer.register_policy_factory("project", ProjectPolicy)

FastAPI dependencies live in policygate.authz.dependencies.
"""

from policygate.authz.binder import AUTH_CTX_FIELD, DynamicBinder, normalize_method_name
from policygate.authz.config import AuthorizerSettings
from policygate.authz.engine import Authorizer, get_authorizer
from policygate.authz.errors import (
    AccessDeniedError,
    AuthCtxTypeMismatchError,
    AuthorizationError,
    InvalidAuthCtxError,
    InvalidResourceError,
    InvalidRuleNameError,
    MethodNotAvailableError,
    MisconfiguredPolicyTypeError,
    PolicyAlreadyRegisteredError,
    PolicyNotFoundError,
    RuleArgItemMismatchError,
    RuleArgsLenMismatchError,
    RuleNotFoundError,
)
from policygate.authz.metrics import MetricsSink, NullMetrics, PrometheusMetrics
from policygate.authz.models import AuthzDecision
from policygate.authz.policy import DEFAULT_POLICY_NAME, DefaultPolicy, Policy
from policygate.authz.registry import PolicyFactoryTable, PolicyRegistry
from policygate.authz.resolver import ResolvedRuleName, resolve_rule_name
from policygate.authz.rule import BoundRule, Rule

__all__ = [
    "AUTH_CTX_FIELD",
    "DEFAULT_POLICY_NAME",
    "AccessDeniedError",
    "AuthCtxTypeMismatchError",
    "AuthorizationError",
    "Authorizer",
    "AuthorizerSettings",
    "AuthzDecision",
    "BoundRule",
    "DefaultPolicy",
    "DynamicBinder",
    "InvalidAuthCtxError",
    "InvalidResourceError",
    "InvalidRuleNameError",
    "MethodNotAvailableError",
    "MetricsSink",
    "MisconfiguredPolicyTypeError",
    "NullMetrics",
    "Policy",
    "PolicyAlreadyRegisteredError",
    "PolicyFactoryTable",
    "PolicyNotFoundError",
    "PolicyRegistry",
    "PrometheusMetrics",
    "ResolvedRuleName",
    "Rule",
    "RuleArgItemMismatchError",
    "RuleArgsLenMismatchError",
    "RuleNotFoundError",
    "get_authorizer",
    "normalize_method_name",
    "resolve_rule_name",
]
