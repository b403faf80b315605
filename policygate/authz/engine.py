"""Authorization dispatch engine.

Routes authorization requests to rules, either registered explicitly on
namespaced policies or bound dynamically from policy factories.
"""

import logging
import time
from typing import Any, Mapping

from policygate.auth.context import AUTH_CONTEXT_KEY, ContextKey, RequestContext
from policygate.authz.binder import DynamicBinder
from policygate.authz.config import AuthorizerSettings
from policygate.authz.errors import AuthorizationError
from policygate.authz.metrics import MetricsSink, NullMetrics, PrometheusMetrics
from policygate.authz.models import AuthzDecision
from policygate.authz.policy import Policy
from policygate.authz.registry import PolicyFactory, PolicyFactoryTable, PolicyRegistry
from policygate.authz.resolver import resolve_rule_name
from policygate.authz.rule import Rule, apply_outcome

logger = logging.getLogger(__name__)


class _Labels:
    """Observation labels, filled in as resolution progresses."""

    __slots__ = ("policy", "rule")

    def __init__(self, policy: str, rule: str):
        self.policy = policy
        self.rule = rule


class Authorizer:
    """Single entry point for authorization.

    Explicit rules:
        authorizer = Authorizer()
        authorizer.register_rule("create-resource", create_resource_rule)
        authorizer.register_policy(Policy("project", {"create": can_create}))

        ctx = authorizer.set_auth_context(RequestContext(), user)
        authorizer.authorize(ctx, "project.create", project)

    Policy factories (dynamic binding):
        authorizer.register_policy_factory("project", ProjectPolicy)
        authorizer.authorize_method(ctx, "project", "create", project)

    authorize() and authorize_method() return None when access is granted
    and raise otherwise. Every call records exactly one latency
    observation, whatever the outcome.

    Rule outcomes:
        - raising, or returning an exception instance, denies with that
          exception unchanged
        - returning False denies with AccessDeniedError
        - any other return value grants

    The False case goes beyond a plain "error or nothing" contract, so a
    boolean-returning rule can never grant by accident.
    """

    def __init__(
        self,
        settings: AuthorizerSettings | None = None,
        metrics: MetricsSink | None = None,
        auth_ctx_key: ContextKey = AUTH_CONTEXT_KEY,
    ):
        """Initialize authorizer.

        Args:
            settings: Configuration (loaded from environment if omitted)
            metrics: Observation sink (prometheus histogram if omitted)
            auth_ctx_key: Context key the principal is stored under
        """
        self.settings = settings or AuthorizerSettings()
        self.auth_ctx_key = auth_ctx_key
        self.registry = PolicyRegistry()
        self.factories = PolicyFactoryTable()
        self.binder = DynamicBinder(self.factories, auth_ctx_key, self.settings.auth_ctx_field)

        if metrics is None:
            if self.settings.metrics_enabled:
                metrics = PrometheusMetrics(namespace=self.settings.metrics_namespace)
            else:
                metrics = NullMetrics()
        self.metrics = metrics

        if self.settings.metrics_port and isinstance(metrics, PrometheusMetrics):
            metrics.serve(self.settings.metrics_port)

        logger.info(
            "Authorizer initialized (separator=%r, metrics=%s)",
            self.settings.separator, type(metrics).__name__
        )

    @property
    def separator(self) -> str:
        return self.settings.separator

    # Context

    def set_auth_context(self, ctx: RequestContext | None, principal: Any) -> RequestContext:
        """Return a derived context carrying ``principal``."""
        base = ctx if ctx is not None else RequestContext()
        return base.with_value(self.auth_ctx_key, principal)

    def get_auth_context(self, ctx: RequestContext) -> Any:
        """Get the principal attached to ``ctx``, or None."""
        return ctx.value(self.auth_ctx_key)

    # Registration

    def register_policy(self, policy: Policy) -> None:
        """Register a namespaced policy."""
        self.registry.register(policy)

    def register_rule(self, name: str, rule: Rule) -> None:
        """Register a rule on the default policy."""
        self.registry.default.set_rule(name, rule)

    def register_policy_factory(self, name: str, factory: PolicyFactory) -> None:
        """Register a factory producing a fresh policy instance per call."""
        self.factories.register(name, factory)

    def register_policy_factories(self, factories: Mapping[str, PolicyFactory]) -> None:
        """Register several policy factories at once."""
        self.factories.register_many(factories)

    # Dispatch

    def authorize(self, ctx: RequestContext, rule: str, resource: Any = None) -> None:
        """Authorize ``resource`` against a registered rule.

        Args:
            ctx: Request context carrying the principal
            rule: Rule identifier, ``"<namespace><sep><rule>"`` or bare
                ``"<rule>"`` for the default policy
            resource: Resource being acted on

        Raises:
            InvalidRuleNameError: If the identifier is empty or malformed
            RuleNotFoundError: If the resolved policy has no such rule
            Exception: Whatever the rule raises or returns to deny
        """
        self._authorize(ctx, rule, resource, _Labels("", rule))

    def authorize_method(
        self,
        ctx: RequestContext,
        policy: str,
        method: str,
        resource: Any = None,
        *args: Any,
    ) -> None:
        """Authorize ``resource`` against a method of a factory-built policy.

        Args:
            ctx: Request context carrying the principal
            policy: Registered policy factory name
            method: Method name, e.g. ``"create-resource"``
            resource: Resource being acted on
            *args: Extra positional arguments for the method

        Raises:
            PolicyNotFoundError, InvalidAuthCtxError,
            MisconfiguredPolicyTypeError, AuthCtxTypeMismatchError,
            MethodNotAvailableError, RuleArgsLenMismatchError,
            RuleArgItemMismatchError: On binding failures
            Exception: Whatever the method raises or returns to deny
        """
        self._authorize_method(ctx, policy, method, resource, args, _Labels(policy, method))

    def check(self, ctx: RequestContext, rule: str, resource: Any = None) -> AuthzDecision:
        """Like authorize(), but return a decision instead of raising."""
        labels = _Labels("", rule)
        try:
            self._authorize(ctx, rule, resource, labels)
        except Exception as e:
            return _denied(labels, e)
        return _granted(labels)

    def check_method(
        self,
        ctx: RequestContext,
        policy: str,
        method: str,
        resource: Any = None,
        *args: Any,
    ) -> AuthzDecision:
        """Like authorize_method(), but return a decision instead of raising."""
        labels = _Labels(policy, method)
        try:
            self._authorize_method(ctx, policy, method, resource, args, labels)
        except Exception as e:
            return _denied(labels, e)
        return _granted(labels)

    def _authorize(self, ctx: RequestContext, rule: str, resource: Any, labels: _Labels) -> None:
        start = time.perf_counter()
        try:
            namespace, rule_name = resolve_rule_name(rule, self.separator)
            labels.rule = rule_name

            policy = self.registry.lookup(namespace) if namespace else None
            if policy is None:
                policy = self.registry.default
            labels.policy = policy.name

            rule_fn = policy.get_rule(rule_name)
            apply_outcome(rule_fn(ctx, resource), policy.name, rule_name)
        finally:
            self._record_observation(labels, start)

    def _authorize_method(
        self,
        ctx: RequestContext,
        policy: str,
        method: str,
        resource: Any,
        args: tuple,
        labels: _Labels,
    ) -> None:
        start = time.perf_counter()
        try:
            bound = self.binder.bind(ctx, policy, method, resource, args)
            apply_outcome(bound(ctx, resource), policy, bound.name)
        finally:
            self._record_observation(labels, start)

    def _record_observation(self, labels: _Labels, start: float) -> None:
        elapsed = max(time.perf_counter() - start, 0.0)
        self.metrics.record_observation(labels.policy, labels.rule, elapsed)


def _granted(labels: _Labels) -> AuthzDecision:
    return AuthzDecision(
        allowed=True,
        policy=labels.policy,
        rule=labels.rule,
        reason=f"Granted by rule: {labels.rule}",
    )


def _denied(labels: _Labels, error: Exception) -> AuthzDecision:
    return AuthzDecision(
        allowed=False,
        policy=labels.policy,
        rule=labels.rule,
        reason=str(error) or type(error).__name__,
        code=error.code if isinstance(error, AuthorizationError) else None,
    )


# Singleton instance
_authorizer: Authorizer | None = None


def get_authorizer() -> Authorizer:
    """Get the process-wide authorizer, configured from environment."""
    global _authorizer
    if _authorizer is None:
        _authorizer = Authorizer()
    return _authorizer
