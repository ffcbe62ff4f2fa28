"""
Slugs and human-readable reference numbers.

Pure functions; callers pass the clock value where one matters.
"""

from __future__ import annotations

import re
import secrets
import string
from datetime import datetime

_BASE36 = string.digits + string.ascii_lowercase
_REFERENCE_ALPHABET = string.ascii_uppercase + string.digits


def generate_slug(text: str | None) -> str:
    """Create a URL-safe slug from a title."""
    if not text:
        return ""
    slug = text.lower().strip()
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"[^\w-]+", "", slug, flags=re.ASCII)
    slug = re.sub(r"--+", "-", slug)
    return slug.strip("-")


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("base36 encoding needs a non-negative integer")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def _epoch_ms(now: datetime) -> int:
    return int(now.timestamp() * 1000)


def generate_reference(prefix: str, now: datetime) -> str:
    """
    Order-style reference, e.g. ``ORD-1718000000000-K3J9QZ1AB``.

    Used for order numbers, payment receipts and subscription receipts.
    """
    suffix = "".join(secrets.choice(_REFERENCE_ALPHABET) for _ in range(9))
    return f"{prefix}-{_epoch_ms(now)}-{suffix}"


def generate_certificate_no(now: datetime) -> str:
    """Certificate number: ``CERT-<base36 timestamp>-<8 hex upper>``."""
    return f"CERT-{to_base36(_epoch_ms(now)).upper()}-{secrets.token_hex(4).upper()}"
