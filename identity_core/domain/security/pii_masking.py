"""PII masking for audit details and log fields.

Audit records and logs keep enough of a value to correlate events while never
storing it in the clear. Masking of identifiers is deterministic, so the same
username always masks to the same string.
"""

import hashlib
from typing import Any, Mapping

# Keys whose values are never kept, not even partially.
SECRET_KEYS = frozenset({"password", "password_hash", "new_password", "secret", "token"})
EMAIL_KEYS = frozenset({"email"})
USERNAME_KEYS = frozenset({"username", "user_name", "actor"})
NAME_KEYS = frozenset({"first_name", "last_name", "name"})
PHONE_KEYS = frozenset({"phone", "phone_number"})
# A {"from": ..., "to": ...} change record is masked as its parent key.
CHANGE_KEYS = frozenset({"from", "to"})


class PiiMasker:
    """Masks personally identifiable values.

    Attributes:
        USERNAME_MASK_LENGTH: Characters of a username kept in the clear.
    """

    USERNAME_MASK_LENGTH = 2

    def mask_username(self, username: str) -> str:
        if not username:
            return "[empty]"
        if len(username) <= self.USERNAME_MASK_LENGTH:
            return "*" * len(username)
        digest = hashlib.sha256(username.lower().encode()).hexdigest()[:8]
        return f"{username[:self.USERNAME_MASK_LENGTH]}***{digest}"

    def mask_email(self, email: str) -> str:
        if not email:
            return "[empty]"
        if "@" not in email:
            return self.mask_username(email)

        local, domain = email.split("@", 1)
        domain_parts = domain.split(".")
        if len(domain_parts) > 1:
            masked_domain = f"{domain_parts[0][:2]}***.{domain_parts[-1]}"
        else:
            masked_domain = f"{domain[:2]}***"
        return f"{self.mask_username(local)}@{masked_domain}"

    def mask_name(self, name: str) -> str:
        if not name:
            return "[empty]"
        return f"{name[0]}***"

    def mask_phone(self, phone: str) -> str:
        digits = [char for char in phone if char.isdigit()]
        if len(digits) <= 4:
            return "*" * len(digits)
        return f"***{''.join(digits[-4:])}"

    def mask_value(self, key: str, value: Any) -> Any:
        """Masks ``value`` according to the kind of data ``key`` names."""
        lowered = key.lower()
        if lowered in SECRET_KEYS:
            return "[redacted]"
        if isinstance(value, Mapping):
            if value and set(value) <= CHANGE_KEYS:
                return {side: self.mask_value(key, item) for side, item in value.items()}
            return self.mask_details(value)
        if isinstance(value, (list, tuple)):
            return [self.mask_value(key, item) for item in value]
        if not isinstance(value, str):
            return value
        if lowered in EMAIL_KEYS:
            return self.mask_email(value)
        if lowered in USERNAME_KEYS:
            return self.mask_username(value)
        if lowered in NAME_KEYS:
            return self.mask_name(value)
        if lowered in PHONE_KEYS:
            return self.mask_phone(value)
        return value

    def mask_details(self, details: Mapping[str, Any]) -> dict:
        """Returns a masked copy of ``details``, recursing into nested values."""
        return {key: self.mask_value(str(key), value) for key, value in details.items()}


pii_masker = PiiMasker()
