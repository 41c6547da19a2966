"""Password policy evaluation.

The evaluator applies every rule of a ``PolicyRuleSet`` to a candidate and
returns the complete, ordered list of violations in one pass. Evaluation is
deterministic and synchronous; it never performs I/O, so it can be called
from anywhere without awaiting.
"""

from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Sequence, Tuple

from identity_core.domain.interfaces.security import IPasswordHasher
from identity_core.domain.services.policy.checks import CHECK_ORDER, CHECKS, CheckContext
from identity_core.domain.services.policy.rule_set import DEFAULT_SPECIAL_CHARACTERS, PolicyRuleSet
from identity_core.domain.value_objects.policy import (
    EnforcementMode,
    PasswordHistoryEntry,
    PolicyViolation,
)


class PasswordPolicyEvaluator:
    """Evaluates candidate passwords against a rule set.

    Rules are visited in ``(priority, key)`` order and the checks of each rule
    in a fixed order, with no short-circuiting. Failures of rules that are
    not required are returned too, tagged ``advisory``.

    Args:
        hasher: Used to compare the candidate with prior credential hashes.
            Only needed when history is passed to ``evaluate``.
    """

    def __init__(self, hasher: Optional[IPasswordHasher] = None):
        self._hasher = hasher

    def evaluate(
        self,
        candidate: str,
        rule_set: PolicyRuleSet,
        history: Sequence[PasswordHistoryEntry] = (),
        username: Optional[str] = None,
        last_changed_at: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> Tuple[PolicyViolation, ...]:
        """Returns every violation of ``candidate``, ordered by rule then check.

        Args:
            candidate: The clear-text candidate. It never appears in the output.
            rule_set: The loaded rule set.
            history: Prior credentials, newest first.
            username: The account holder's username, for sequence checks.
            last_changed_at: When the current credential was set, for the
                minimum interval between changes. None skips that check.
            now: Reference time for the interval check; defaults to UTC now.
        """
        now = now or datetime.now(timezone.utc)
        violations: List[PolicyViolation] = []
        for rule in rule_set.rules():
            context = CheckContext(
                special_characters=rule.parameters.get(
                    "specialCharacters", DEFAULT_SPECIAL_CHARACTERS
                ),
                username=username,
                history=tuple(history),
                hasher=self._hasher,
                last_changed_at=last_changed_at,
                now=now,
            )
            for check in CHECK_ORDER:
                if not rule.configures(check):
                    continue
                failure = CHECKS[check](candidate, rule.parameters[check], context)
                if failure is None:
                    continue
                violations.append(
                    PolicyViolation(
                        rule_key=rule.key,
                        check=check,
                        message=failure.message,
                        offending=failure.offending,
                        advisory=not rule.required,
                    )
                )
        return tuple(violations)


def expired_violations(
    rule_set: PolicyRuleSet,
    last_changed_at: Optional[datetime],
    now: Optional[datetime] = None,
) -> Tuple[PolicyViolation, ...]:
    """Reports rules whose ``expiryDays`` the current credential has outlived.

    A user without a credential change timestamp never expires. An expiry of
    zero days disables the check for that rule.
    """
    if last_changed_at is None:
        return ()
    now = now or datetime.now(timezone.utc)
    if not last_changed_at.tzinfo:
        last_changed_at = last_changed_at.replace(tzinfo=timezone.utc)
    age = now - last_changed_at

    violations: List[PolicyViolation] = []
    for rule in rule_set.rules():
        days = rule.parameters.get("expiryDays")
        if not days:
            continue
        if age > timedelta(days=days):
            violations.append(
                PolicyViolation(
                    rule_key=rule.key,
                    check="expiryDays",
                    message=f"Password is older than {days} days and must be changed",
                    offending=(age.days,),
                    advisory=not rule.required,
                )
            )
    return tuple(violations)


def blocking(
    violations: Iterable[PolicyViolation], mode: EnforcementMode
) -> Tuple[PolicyViolation, ...]:
    """Selects the violations that block an action under ``mode``."""
    if mode == EnforcementMode.BLOCK_ON_ANY:
        return tuple(violations)
    return tuple(violation for violation in violations if not violation.advisory)
