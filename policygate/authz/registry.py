"""Policy registry and policy factory table.

Both tables are written during registration and read during dispatch.
Writers serialize on a lock and publish a fresh read-only snapshot, so
dispatch reads never wait on registration.
"""

from __future__ import annotations

import logging
import threading
from types import MappingProxyType
from typing import Any, Callable, Mapping

from policygate.authz.errors import PolicyAlreadyRegisteredError, PolicyNotFoundError
from policygate.authz.policy import DefaultPolicy, Policy

logger = logging.getLogger(__name__)

PolicyFactory = Callable[[], Any]


class PolicyRegistry:
    """Namespace -> Policy mapping with a pre-installed default policy."""

    def __init__(self, default_policy: Policy | None = None):
        self._lock = threading.Lock()
        self._default = default_policy or DefaultPolicy()
        self._policies: Mapping[str, Policy] = MappingProxyType(
            {self._default.name: self._default}
        )

    @property
    def default(self) -> Policy:
        return self._default

    def register(self, policy: Policy) -> None:
        """Register a policy.

        Raises:
            PolicyAlreadyRegisteredError: If the name is taken, including
                the default policy's reserved name.
        """
        with self._lock:
            if policy.name in self._policies:
                raise PolicyAlreadyRegisteredError(policy.name)
            policies = dict(self._policies)
            policies[policy.name] = policy
            self._policies = MappingProxyType(policies)

        logger.info("Registered policy: %s (%d rules)", policy.name, len(policy.get_rules()))

    def lookup(self, namespace: str) -> Policy | None:
        """Get the policy for an exact namespace match."""
        return self._policies.get(namespace)

    def names(self) -> list[str]:
        """Registered policy names in registration order."""
        return list(self._policies)

    def __contains__(self, namespace: object) -> bool:
        return namespace in self._policies

    def __len__(self) -> int:
        return len(self._policies)


class PolicyFactoryTable:
    """Policy name -> zero-argument factory for the dynamic path.

    Every dispatch calls the factory once; instances are never reused.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._factories: Mapping[str, PolicyFactory] = MappingProxyType({})

    def register(self, name: str, factory: PolicyFactory) -> None:
        """Register a factory under a policy name."""
        if not name:
            raise ValueError("Policy name must not be empty")
        if not callable(factory):
            raise TypeError(
                f"Factory for policy {name!r} must be callable, got {type(factory).__name__}"
            )

        with self._lock:
            if name in self._factories:
                raise PolicyAlreadyRegisteredError(name)
            factories = dict(self._factories)
            factories[name] = factory
            self._factories = MappingProxyType(factories)

        logger.info("Registered policy factory: %s", name)

    def register_many(self, factories: Mapping[str, PolicyFactory]) -> None:
        """Register several factories, all or nothing."""
        for name, factory in factories.items():
            if not name:
                raise ValueError("Policy name must not be empty")
            if not callable(factory):
                raise TypeError(
                    f"Factory for policy {name!r} must be callable, got {type(factory).__name__}"
                )

        with self._lock:
            duplicates = [name for name in factories if name in self._factories]
            if duplicates:
                raise PolicyAlreadyRegisteredError(duplicates[0])
            merged = dict(self._factories)
            merged.update(factories)
            self._factories = MappingProxyType(merged)

        logger.info("Registered %d policy factories", len(factories))

    def create(self, name: str) -> Any:
        """Build a fresh policy instance."""
        factory = self._factories.get(name)
        if factory is None:
            raise PolicyNotFoundError(name)
        return factory()

    def names(self) -> list[str]:
        return list(self._factories)

    def __contains__(self, name: object) -> bool:
        return name in self._factories
