"""Individual password checks.

Each check receives the candidate, the configured parameter value and the
evaluation context, and returns ``None`` on success or a ``CheckFailure``.
Checks are pure: no I/O, no logging, and never a copy of the candidate in
their output.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from identity_core.domain.interfaces.security import IPasswordHasher
from identity_core.domain.value_objects.policy import PasswordHistoryEntry

# Order in which the checks of a single rule run.
CHECK_ORDER: Tuple[str, ...] = (
    "minLength",
    "maxLength",
    "minUppercase",
    "minLowercase",
    "minDigits",
    "minSpecial",
    "usernameSequenceLength",
    "historyDepth",
    "blacklistSource",
    "passwordUpdateTimeIntervalSec",
)


@dataclass(frozen=True)
class CheckContext:
    special_characters: str
    username: Optional[str] = None
    history: Sequence[PasswordHistoryEntry] = ()
    hasher: Optional[IPasswordHasher] = None
    last_changed_at: Optional[datetime] = None
    now: Optional[datetime] = None


@dataclass(frozen=True)
class CheckFailure:
    message: str
    offending: Tuple[Any, ...] = ()


Check = Callable[[str, Any, CheckContext], Optional[CheckFailure]]


def check_min_length(candidate: str, minimum: int, context: CheckContext) -> Optional[CheckFailure]:
    if len(candidate) >= minimum and candidate:
        return None
    return CheckFailure(
        f"Password must be at least {minimum} characters long", (len(candidate),)
    )


def check_max_length(candidate: str, maximum: int, context: CheckContext) -> Optional[CheckFailure]:
    if len(candidate) <= maximum and candidate:
        return None
    if not candidate:
        return CheckFailure("Password must not be empty", (0,))
    return CheckFailure(f"Password must not exceed {maximum} characters", (len(candidate),))


def _min_count(label: str, predicate: Callable[[str], bool]) -> Check:
    def check(candidate: str, minimum: int, context: CheckContext) -> Optional[CheckFailure]:
        count = sum(1 for char in candidate if predicate(char))
        if count >= minimum and candidate:
            return None
        plural = "s" if minimum != 1 else ""
        return CheckFailure(f"Password must contain at least {minimum} {label}{plural}", (count,))

    return check


check_min_uppercase = _min_count("uppercase letter", str.isupper)
check_min_lowercase = _min_count("lowercase letter", str.islower)
check_min_digits = _min_count("digit", str.isdigit)


def check_min_special(candidate: str, minimum: int, context: CheckContext) -> Optional[CheckFailure]:
    count = sum(1 for char in candidate if char in context.special_characters)
    if count >= minimum and candidate:
        return None
    plural = "s" if minimum != 1 else ""
    return CheckFailure(
        f"Password must contain at least {minimum} special character{plural} "
        f"from '{context.special_characters}'",
        (count,),
    )


def check_username_sequence(
    candidate: str, length: int, context: CheckContext
) -> Optional[CheckFailure]:
    """Rejects any run of ``length`` consecutive username characters."""
    username = context.username
    if not candidate or not username or length <= 0 or len(username) < length:
        return None
    lowered = candidate.lower()
    name = username.lower()
    for start in range(len(name) - length + 1):
        if name[start : start + length] in lowered:
            return CheckFailure(
                f"Password must not contain {length} or more consecutive characters "
                "of the username",
                ("username", length),
            )
    return None


def check_history(candidate: str, depth: int, context: CheckContext) -> Optional[CheckFailure]:
    """Compares the candidate with the ``depth`` most recent credentials."""
    if not candidate or depth <= 0 or not context.history:
        return None
    if context.hasher is None:
        raise ValueError("A password hasher is required to check password history")
    for position, entry in enumerate(context.history[:depth], start=1):
        if context.hasher.verify(candidate, entry.password_hash):
            return CheckFailure(
                f"Password must not match any of the last {depth} passwords", (position,)
            )
    return None


def check_blacklist(candidate: str, words: frozenset, context: CheckContext) -> Optional[CheckFailure]:
    if not candidate or candidate.lower() not in words:
        return None
    return CheckFailure("Password is too common", ("blacklist",))


def check_update_interval(
    candidate: str, seconds: int, context: CheckContext
) -> Optional[CheckFailure]:
    """Rejects a change made less than ``seconds`` after the previous one."""
    if seconds <= 0 or context.last_changed_at is None:
        return None
    last_changed_at = context.last_changed_at
    if not last_changed_at.tzinfo:
        last_changed_at = last_changed_at.replace(tzinfo=timezone.utc)
    elapsed = (context.now or datetime.now(timezone.utc)) - last_changed_at
    if elapsed >= timedelta(seconds=seconds):
        return None
    return CheckFailure(
        f"Password was changed less than {seconds} seconds ago and cannot be changed yet",
        (int(elapsed.total_seconds()),),
    )


CHECKS: Dict[str, Check] = {
    "minLength": check_min_length,
    "maxLength": check_max_length,
    "minUppercase": check_min_uppercase,
    "minLowercase": check_min_lowercase,
    "minDigits": check_min_digits,
    "minSpecial": check_min_special,
    "usernameSequenceLength": check_username_sequence,
    "historyDepth": check_history,
    "blacklistSource": check_blacklist,
    "passwordUpdateTimeIntervalSec": check_update_interval,
}
