"""Password policy: rule set loading, checks and evaluation."""

from .evaluator import PasswordPolicyEvaluator, blocking, expired_violations
from .rule_set import DEFAULT_POLICY, PolicyRuleSet

__all__ = [
    "DEFAULT_POLICY",
    "PasswordPolicyEvaluator",
    "PolicyRuleSet",
    "blocking",
    "expired_violations",
]
