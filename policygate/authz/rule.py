"""Rules: single authorization decision functions.

A rule is anything callable as ``rule(ctx, resource)``. Rules obtained by
explicit registration and methods bound by the dynamic binder share the
same outcome contract:

- raising denies, and the exception reaches the caller untouched
- returning an Exception instance denies with that exception
- returning False denies with AccessDeniedError
- any other return value grants
"""

from __future__ import annotations

from typing import Any, Callable, Protocol, runtime_checkable

from policygate.auth.context import RequestContext
from policygate.authz.errors import AccessDeniedError


@runtime_checkable
class Rule(Protocol):
    """Callable authorization rule."""

    def __call__(self, ctx: RequestContext, resource: Any) -> Any: ...


class BoundRule:
    """A policy method bound to its instance and extra arguments.

    Produced by the dynamic binder after validation so that it can be
    invoked exactly like an explicitly registered rule.
    """

    __slots__ = ("policy", "name", "_method", "_extra")

    def __init__(self, policy: str, name: str, method: Callable[..., Any], extra: tuple = ()):
        self.policy = policy
        self.name = name
        self._method = method
        self._extra = extra

    def __call__(self, ctx: RequestContext, resource: Any) -> Any:
        return self._method(ctx, resource, *self._extra)

    def __repr__(self) -> str:
        return f"BoundRule({self.policy}.{self.name})"


def apply_outcome(outcome: Any, policy: str, rule: str) -> None:
    """Raise for a denying outcome, return for a granting one."""
    if isinstance(outcome, BaseException):
        raise outcome
    if outcome is False:
        raise AccessDeniedError(policy, rule)
