"""Request-scoped context.

An immutable key/value carrier that travels with a request and holds
the authenticated principal under an explicit ContextKey.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Iterator, Mapping


class ContextKey:
    """Opaque key for values stored in a RequestContext.

    Keys compare by identity, so two keys created with the same name
    never collide.
    """

    __slots__ = ("name",)

    def __init__(self, name: str):
        self.name = name

    def __repr__(self) -> str:
        return f"ContextKey({self.name!r})"


# Default key under which the principal is attached
AUTH_CONTEXT_KEY = ContextKey("policygate.auth_ctx")


class RequestContext:
    """Immutable, derivable context for a single request.

    Usage:
        ctx = RequestContext().with_value(AUTH_CONTEXT_KEY, user)
        user = ctx.value(AUTH_CONTEXT_KEY)

    ``with_value`` never mutates the receiver. ``key in ctx`` tells an
    absent key apart from one explicitly set to None.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[ContextKey, Any] | None = None):
        self._values = MappingProxyType(dict(values or {}))

    def with_value(self, key: ContextKey, value: Any) -> RequestContext:
        """Return a derived context with ``key`` bound to ``value``."""
        values = dict(self._values)
        values[key] = value
        return RequestContext(values)

    def value(self, key: ContextKey, default: Any = None) -> Any:
        """Get the value stored under ``key``."""
        return self._values.get(key, default)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[ContextKey]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        keys = ", ".join(k.name if isinstance(k, ContextKey) else repr(k) for k in self._values)
        return f"RequestContext({keys})"
