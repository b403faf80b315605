"""Policies: named collections of rules."""

from __future__ import annotations

import logging
import threading
from types import MappingProxyType
from typing import Mapping

from policygate.authz.errors import InvalidRuleNameError, RuleNotFoundError
from policygate.authz.rule import Rule

logger = logging.getLogger(__name__)

# Reserved name of the policy that receives un-namespaced rules
DEFAULT_POLICY_NAME = "default"


class Policy:
    """A permission namespace owning a rule store.

    Rules are added with set_rule() and never removed. Registering a
    rule under an existing name replaces it.

    Usage:
        projects = Policy("project")
        projects.set_rule("create", can_create_project)
        authorizer.register_policy(projects)
    """

    def __init__(self, name: str, rules: Mapping[str, Rule] | None = None):
        if not name:
            raise ValueError("Policy name must not be empty")
        self._name = name
        self._lock = threading.Lock()
        self._rules: Mapping[str, Rule] = MappingProxyType({})

        for rule_name, rule in (rules or {}).items():
            self.set_rule(rule_name, rule)

    @property
    def name(self) -> str:
        return self._name

    def set_rule(self, name: str, rule: Rule) -> None:
        """Add or replace a rule."""
        if not name:
            raise InvalidRuleNameError(name)
        if not callable(rule):
            raise TypeError(f"Rule {name!r} must be callable, got {type(rule).__name__}")

        with self._lock:
            rules = dict(self._rules)
            replaced = name in rules
            rules[name] = rule
            self._rules = MappingProxyType(rules)

        logger.debug(
            "%s rule %s on policy %s",
            "Replaced" if replaced else "Added", name, self._name
        )

    def get_rule(self, name: str) -> Rule:
        """Get a rule by name."""
        try:
            return self._rules[name]
        except KeyError:
            raise RuleNotFoundError(self._name, name) from None

    def get_rules(self) -> Mapping[str, Rule]:
        """Read-only snapshot of the rule store."""
        return self._rules

    def __contains__(self, name: object) -> bool:
        return name in self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._name!r}, rules={sorted(self._rules)})"


class DefaultPolicy(Policy):
    """Policy for rules registered without a namespace."""

    def __init__(self, rules: Mapping[str, Rule] | None = None):
        super().__init__(DEFAULT_POLICY_NAME, rules)
