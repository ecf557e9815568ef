"""Helpers for generating unique, provider-safe resource names."""

import hashlib
import re
import secrets
import string
import time

_BASE36_ALPHABET = string.digits + string.ascii_lowercase


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("value must be non-negative")
    digits = []
    while True:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_ALPHABET[remainder])
        if value == 0:
            break
    return "".join(reversed(digits))


def timestamp_token() -> str:
    """Current time in milliseconds, base36-encoded."""
    return to_base36(time.time_ns() // 1_000_000)


def random_token(length: int = 6) -> str:
    """Random lowercase alphanumeric string of the given length."""
    return "".join(secrets.choice(_BASE36_ALPHABET) for _ in range(length))


def logical_id(kind: str, name: str) -> str:
    """
    Construct id for a named resource, e.g. ("Role", "app-ec2-role") -> "RoleAppEc2Role" + digest.

    The readable part drops separators, so an 8-character digest of the raw
    name keeps "app-role" and "app_role" apart.
    """
    digest = hashlib.sha256(name.encode()).hexdigest()[:8]
    return kind + re.sub(r"[^A-Za-z0-9]", "", name.title()) + digest
