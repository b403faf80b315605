"""Authorization error taxonomy.

Every failure detected by the dispatch engine is raised as a subclass
of AuthorizationError. Denials produced by a rule itself are owned by
the rule author and propagate untouched.
"""


class AuthorizationError(Exception):
    """Base class for engine-detected authorization failures."""

    code = "authorization_error"

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        if code is not None:
            self.code = code
        super().__init__(message)


class InvalidRuleNameError(AuthorizationError):
    """Raised when a rule identifier is empty or malformed."""

    code = "invalid_rule_name"

    def __init__(self, rule: str = ""):
        self.rule = rule
        super().__init__(f"Invalid rule name: {rule!r}")


class PolicyAlreadyRegisteredError(AuthorizationError):
    """Raised when a policy name is registered twice."""

    code = "policy_already_registered"

    def __init__(self, policy: str):
        self.policy = policy
        super().__init__(f"Policy already registered: {policy}")


class RuleNotFoundError(AuthorizationError):
    """Raised when the resolved policy has no rule under the name."""

    code = "rule_not_found"

    def __init__(self, policy: str, rule: str):
        self.policy = policy
        self.rule = rule
        super().__init__(f"Rule {rule!r} not found on policy {policy!r}")


class PolicyNotFoundError(AuthorizationError):
    """Raised when no policy factory is registered under the name."""

    code = "policy_not_found"

    def __init__(self, policy: str):
        self.policy = policy
        super().__init__(f"Policy not found: {policy}")


class InvalidAuthCtxError(AuthorizationError):
    """Raised when the authentication context is missing or None."""

    code = "invalid_auth_ctx"

    def __init__(self):
        super().__init__("An invalid auth context was provided")


class AuthCtxTypeMismatchError(AuthorizationError):
    """Raised when the auth context does not fit the policy's slot."""

    code = "auth_ctx_type_mismatch"

    def __init__(self, expected: object, actual: type):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Auth context type mismatch: expected {_type_name(expected)}, "
            f"got {actual.__name__}"
        )


class MisconfiguredPolicyTypeError(AuthorizationError):
    """Raised when a policy instance cannot receive the auth context."""

    code = "misconfigured_policy_type"

    def __init__(self, policy: str, reason: str):
        self.policy = policy
        super().__init__(f"Misconfigured policy {policy!r}: {reason}")


class MethodNotAvailableError(AuthorizationError):
    """Raised when a policy has no method under the normalized name."""

    code = "method_not_available"

    def __init__(self, policy: str, method: str):
        self.policy = policy
        self.method = method
        super().__init__(f"Method {method!r} not available on policy {policy!r}")


class RuleArgsLenMismatchError(AuthorizationError):
    """Raised when a method cannot take the supplied number of arguments."""

    code = "rule_args_len_mismatch"

    def __init__(self, method: str, expected: str, supplied: int):
        self.method = method
        super().__init__(
            f"Rule {method!r} expects {expected} arguments, {supplied} supplied"
        )


class RuleArgItemMismatchError(AuthorizationError):
    """Raised when a supplied argument does not fit the declared parameter."""

    code = "rule_arg_item_mismatch"

    def __init__(self, method: str, parameter: str, expected: object, actual: type):
        self.method = method
        self.parameter = parameter
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Argument {parameter!r} of {method!r} expects {_type_name(expected)}, "
            f"got {actual.__name__}"
        )


class InvalidResourceError(RuleArgItemMismatchError):
    """Raised when the resource does not fit the method's resource parameter."""

    code = "invalid_resource"


class AccessDeniedError(AuthorizationError):
    """Raised when a rule returns False."""

    code = "access_denied"

    def __init__(self, policy: str, rule: str):
        self.policy = policy
        self.rule = rule
        super().__init__(f"Access denied by rule {rule!r} of policy {policy!r}")


def _type_name(tp: object) -> str:
    return getattr(tp, "__name__", None) or repr(tp)
