"""Dynamic policy binding.

Binds a bare method name against a freshly built policy instance:

1. Read the principal from the request context
2. Inject it into the instance's ``auth_ctx`` slot, checking its type
3. Normalize the method name to snake_case and look the method up
4. Check the supplied arguments against the method signature

The result is a BoundRule, which the engine runs like any other rule.
Every binding failure is raised as an AuthorizationError subclass.
"""

from __future__ import annotations

import inspect
import re
import sys
import types
from typing import Any, Callable, Literal, Mapping, Sequence, TypeVar, Union, get_args, get_origin

from policygate.auth.context import AUTH_CONTEXT_KEY, ContextKey, RequestContext
from policygate.authz.errors import (
    AuthCtxTypeMismatchError,
    InvalidAuthCtxError,
    InvalidResourceError,
    MethodNotAvailableError,
    MisconfiguredPolicyTypeError,
    RuleArgItemMismatchError,
    RuleArgsLenMismatchError,
)
from policygate.authz.registry import PolicyFactoryTable
from policygate.authz.rule import BoundRule

# Well-known slot receiving the principal
AUTH_CTX_FIELD = "auth_ctx"

# Position of the resource among (ctx, resource, *extra)
RESOURCE_POSITION = 1

_SEPARATORS = re.compile(r"[\s\-.]+")
_CASE_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_REPEATED_UNDERSCORES = re.compile(r"_{2,}")

_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


def normalize_method_name(name: str) -> str:
    """Convert a rule-style name to a Python method name.

    Examples:
        "create-resource" -> "create_resource"
        "CreateResource"  -> "create_resource"
        "createResource"  -> "create_resource"
    """
    name = _SEPARATORS.sub("_", name.strip())
    name = _CASE_BOUNDARY.sub("_", name)
    return _REPEATED_UNDERSCORES.sub("_", name).strip("_").lower()


def accepts(value: Any, annotation: Any, exact: bool = False) -> bool:
    """Check whether ``value`` fits a parameter annotation.

    With ``exact``, a class annotation only matches values of exactly
    that class, so subclasses (and bool for int) are rejected. Unions,
    Optional and Any keep their usual meaning either way.

    Annotations that cannot be checked at runtime (unresolved strings,
    non runtime-checkable protocols) accept any value.
    """
    if annotation is Any or annotation is inspect.Parameter.empty:
        return True
    if annotation is None or annotation is type(None):
        return value is None

    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        return any(accepts(value, arg, exact) for arg in get_args(annotation))
    if origin is Literal:
        return value in get_args(annotation)
    if origin is not None:
        # Parameterized generics are checked on their container type
        annotation = origin

    if isinstance(annotation, TypeVar):
        if annotation.__bound__ is not None:
            return accepts(value, annotation.__bound__, exact)
        if annotation.__constraints__:
            return any(accepts(value, c, exact) for c in annotation.__constraints__)
        return True

    supertype = getattr(annotation, "__supertype__", None)
    if supertype is not None:
        return accepts(value, supertype, exact)

    if not isinstance(annotation, type):
        return True

    if exact and not getattr(annotation, "_is_protocol", False):
        return type(value) is annotation

    try:
        return isinstance(value, annotation)
    except TypeError:
        return True


def resolve_annotation(
    annotation: Any, globalns: Mapping[str, Any], localns: Mapping[str, Any] | None = None
) -> Any:
    """Evaluate a string annotation, leaving it as a string if it cannot be.

    Names imported only under TYPE_CHECKING stay unresolved and are then
    accepted by ``accepts``.
    """
    if not isinstance(annotation, str):
        return annotation
    try:
        return eval(annotation, dict(globalns), dict(localns or {}))
    except Exception:
        return annotation


class DynamicBinder:
    """Binds policy methods by name at dispatch time.

    Usage:
        binder = DynamicBinder(factories, auth_ctx_key)
        rule = binder.bind(ctx, "project", "create", resource)
        outcome = rule(ctx, resource)
    """

    def __init__(
        self,
        factories: PolicyFactoryTable,
        auth_ctx_key: ContextKey = AUTH_CONTEXT_KEY,
        auth_ctx_field: str = AUTH_CTX_FIELD,
    ):
        self.factories = factories
        self.auth_ctx_key = auth_ctx_key
        self.auth_ctx_field = auth_ctx_field

    def bind(
        self,
        ctx: RequestContext,
        policy: str,
        method: str,
        resource: Any,
        args: Sequence[Any] = (),
    ) -> BoundRule:
        """Resolve and validate ``policy.method`` for this request.

        Args:
            ctx: Request context carrying the principal
            policy: Registered policy factory name
            method: Method name in any casing style
            resource: Resource passed as the second argument
            args: Extra positional arguments after the resource

        Returns:
            BoundRule ready to be invoked with (ctx, resource)
        """
        instance = self.factories.create(policy)

        # The principal is checked before anything about the method
        principal = ctx.value(self.auth_ctx_key)
        if principal is None:
            raise InvalidAuthCtxError()

        self._inject_auth_ctx(policy, instance, principal)

        name = normalize_method_name(method)
        fn = self._lookup_method(policy, instance, name)

        self._validate_args(policy, name, fn, (ctx, resource, *args))

        return BoundRule(policy, name, fn, tuple(args))

    def _slot_type(self, policy: str, cls: type) -> Any:
        """Declared type of the auth context slot on ``cls``."""
        field = self.auth_ctx_field
        for klass in cls.__mro__:
            try:
                annotations = inspect.get_annotations(klass)
            except TypeError as e:
                raise MisconfiguredPolicyTypeError(
                    policy, f"cannot read annotations of {klass.__name__}: {e}"
                ) from e
            if field not in annotations:
                continue
            module = sys.modules.get(klass.__module__)
            globalns = vars(module) if module is not None else {}
            return resolve_annotation(annotations[field], globalns, vars(klass))

        raise MisconfiguredPolicyTypeError(policy, f"missing {field!r} field")

    def _inject_auth_ctx(self, policy: str, instance: Any, principal: Any) -> None:
        expected = self._slot_type(policy, type(instance))
        if not accepts(principal, expected, exact=True):
            raise AuthCtxTypeMismatchError(expected, type(principal))

        try:
            setattr(instance, self.auth_ctx_field, principal)
        except (AttributeError, TypeError, ValueError) as e:
            raise MisconfiguredPolicyTypeError(
                policy, f"{self.auth_ctx_field!r} field is not assignable"
            ) from e

    def _lookup_method(self, policy: str, instance: Any, name: str) -> Callable[..., Any]:
        if not name or name.startswith("_") or name == self.auth_ctx_field:
            raise MethodNotAvailableError(policy, name)

        fn = getattr(instance, name, None)
        if fn is None or not callable(fn) or isinstance(fn, type):
            raise MethodNotAvailableError(policy, name)

        return fn

    def _validate_args(
        self, policy: str, name: str, fn: Callable[..., Any], supplied: tuple
    ) -> None:
        try:
            signature = inspect.signature(fn)
        except (TypeError, ValueError) as e:
            raise MethodNotAvailableError(policy, name) from e

        globalns = getattr(getattr(fn, "__func__", fn), "__globals__", {})

        params = signature.parameters.values()
        positional = [p for p in params if p.kind in _POSITIONAL]
        variadic = next((p for p in params if p.kind is inspect.Parameter.VAR_POSITIONAL), None)
        required = [p for p in positional if p.default is inspect.Parameter.empty]
        keyword_required = [
            p for p in params
            if p.kind is inspect.Parameter.KEYWORD_ONLY and p.default is inspect.Parameter.empty
        ]

        minimum, maximum = len(required), len(positional)
        if keyword_required:
            raise RuleArgsLenMismatchError(
                name, f"{minimum} positional and keyword {keyword_required[0].name!r}", len(supplied)
            )

        if len(supplied) < minimum or (variadic is None and len(supplied) > maximum):
            if variadic is not None:
                expected = f"at least {minimum}"
            elif minimum == maximum:
                expected = str(minimum)
            else:
                expected = f"{minimum} to {maximum}"
            raise RuleArgsLenMismatchError(name, expected, len(supplied))

        for position, value in enumerate(supplied):
            param = positional[position] if position < len(positional) else variadic
            expected_type = resolve_annotation(param.annotation, globalns)
            if accepts(value, expected_type):
                continue
            if position == RESOURCE_POSITION:
                raise InvalidResourceError(name, param.name, expected_type, type(value))
            raise RuleArgItemMismatchError(name, param.name, expected_type, type(value))
