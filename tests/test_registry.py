"""Tests for policies, the policy registry and the factory table."""

import threading

import pytest

from policygate.authz.errors import (
    InvalidRuleNameError,
    PolicyAlreadyRegisteredError,
    PolicyNotFoundError,
    RuleNotFoundError,
)
from policygate.authz.policy import DEFAULT_POLICY_NAME, DefaultPolicy, Policy
from policygate.authz.registry import PolicyFactoryTable, PolicyRegistry


def allow(ctx, resource):
    return None


def deny(ctx, resource):
    return False


class TestPolicy:
    """Test rule storage on a policy."""

    def test_set_and_get_rule(self):
        policy = Policy("project")
        policy.set_rule("create", allow)

        assert policy.get_rule("create") is allow

    def test_missing_rule_raises(self):
        policy = Policy("project")

        with pytest.raises(RuleNotFoundError) as exc_info:
            policy.get_rule("delete")

        assert exc_info.value.policy == "project"
        assert exc_info.value.rule == "delete"

    def test_setting_rule_twice_replaces_it(self):
        """Last registration wins, leaving a single rule."""
        policy = Policy("project")
        policy.set_rule("create", allow)
        policy.set_rule("create", deny)

        assert policy.get_rule("create") is deny
        assert len(policy) == 1

    def test_rules_from_constructor(self):
        policy = Policy("project", {"create": allow, "delete": deny})
        assert set(policy.get_rules()) == {"create", "delete"}

    def test_rules_snapshot_is_read_only(self):
        policy = Policy("project", {"create": allow})
        rules = policy.get_rules()

        with pytest.raises(TypeError):
            rules["delete"] = deny  # type: ignore[index]

    def test_non_callable_rule_rejected(self):
        with pytest.raises(TypeError):
            Policy("project").set_rule("create", "not-a-rule")  # type: ignore[arg-type]

    def test_empty_rule_name_rejected(self):
        with pytest.raises(InvalidRuleNameError):
            Policy("project").set_rule("", allow)

    def test_empty_policy_name_rejected(self):
        with pytest.raises(ValueError):
            Policy("")

    def test_default_policy_uses_reserved_name(self):
        assert DefaultPolicy().name == DEFAULT_POLICY_NAME


class TestPolicyRegistry:
    """Test namespace registration."""

    def test_default_policy_installed_at_construction(self):
        registry = PolicyRegistry()

        assert registry.names() == [DEFAULT_POLICY_NAME]
        assert registry.lookup(DEFAULT_POLICY_NAME) is registry.default

    def test_register_and_lookup(self):
        registry = PolicyRegistry()
        project = Policy("project")
        registry.register(project)

        assert registry.lookup("project") is project
        assert registry.lookup("invoice") is None

    def test_duplicate_registration_keeps_first(self):
        """A second policy with the same name is rejected, not merged."""
        registry = PolicyRegistry()
        first = Policy("project", {"create": allow})
        second = Policy("project", {"delete": allow})
        registry.register(first)

        with pytest.raises(PolicyAlreadyRegisteredError):
            registry.register(second)

        assert registry.lookup("project") is first
        assert "delete" not in registry.lookup("project")

    def test_reserved_default_name_rejected(self):
        registry = PolicyRegistry()

        with pytest.raises(PolicyAlreadyRegisteredError):
            registry.register(Policy(DEFAULT_POLICY_NAME))

    def test_registration_order_preserved(self):
        registry = PolicyRegistry()
        for name in ("zeta", "alpha", "mid"):
            registry.register(Policy(name))

        assert registry.names() == [DEFAULT_POLICY_NAME, "zeta", "alpha", "mid"]

    def test_concurrent_registration_of_same_name(self):
        """Exactly one of many racing registrations succeeds."""
        registry = PolicyRegistry()
        errors = []

        def register():
            try:
                registry.register(Policy("project"))
            except PolicyAlreadyRegisteredError as e:
                errors.append(e)

        threads = [threading.Thread(target=register) for _ in range(16)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(errors) == 15
        assert registry.names().count("project") == 1


class TestPolicyFactoryTable:
    """Test dynamic-path factory registration."""

    def test_create_builds_fresh_instances(self):
        table = PolicyFactoryTable()
        table.register("project", dict)

        assert table.create("project") is not table.create("project")

    def test_unknown_policy_raises(self):
        with pytest.raises(PolicyNotFoundError):
            PolicyFactoryTable().create("project")

    def test_duplicate_factory_rejected(self):
        table = PolicyFactoryTable()
        table.register("project", dict)

        with pytest.raises(PolicyAlreadyRegisteredError):
            table.register("project", list)

    def test_non_callable_factory_rejected(self):
        with pytest.raises(TypeError):
            PolicyFactoryTable().register("project", None)  # type: ignore[arg-type]

    def test_register_many_is_all_or_nothing(self):
        table = PolicyFactoryTable()
        table.register("project", dict)

        with pytest.raises(PolicyAlreadyRegisteredError):
            table.register_many({"invoice": dict, "project": list})

        assert table.names() == ["project"]

    def test_register_many(self):
        table = PolicyFactoryTable()
        table.register_many({"project": dict, "invoice": list})

        assert "project" in table
        assert "invoice" in table
