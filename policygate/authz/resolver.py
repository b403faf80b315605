"""Rule name resolution.

Splits ``"<namespace><sep><rule>"`` identifiers on the first separator.
"""

from __future__ import annotations

from typing import NamedTuple

from policygate.authz.errors import InvalidRuleNameError


class ResolvedRuleName(NamedTuple):
    """Namespace and rule parts of a rule identifier.

    An empty namespace means the identifier carried none.
    """

    namespace: str
    rule: str


def resolve_rule_name(identifier: str, separator: str = ".") -> ResolvedRuleName:
    """Split a rule identifier into namespace and rule name.

    Examples:
        "create-resource"    -> ("", "create-resource")
        "project.create"     -> ("project", "create")
        "project.sub.create" -> ("project", "sub.create")

    Raises:
        InvalidRuleNameError: If the identifier or its rule part is empty.
        ValueError: If the separator is empty.
    """
    if not separator:
        raise ValueError("Rule name separator must not be empty")
    if not identifier:
        raise InvalidRuleNameError(identifier)

    namespace, sep, rule = identifier.partition(separator)
    if not sep:
        return ResolvedRuleName("", identifier)
    if not rule:
        raise InvalidRuleNameError(identifier)

    return ResolvedRuleName(namespace, rule)
