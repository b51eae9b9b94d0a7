"""
Canonical forms for contact identifiers.

Phones become 10 national digits, handles become lowercase without the
leading "@". Two raw inputs describe the same person exactly when their
normalized forms are equal.
"""

import re

from .errors import InvalidIdentifier
from .models import IdentifierType

PHONE_DIGITS = 10

_NON_DIGITS = re.compile(r"\D")


def normalize_phone(raw: str, country_code: str = "1") -> str:
    """
    Strip formatting and a leading country code from a phone number.

    "+1 (555) 123-4567", "15551234567" and "555-123-4567" all become
    "5551234567".
    """
    digits = _NON_DIGITS.sub("", raw or "")
    if len(digits) == PHONE_DIGITS + len(country_code) and digits.startswith(country_code):
        digits = digits[len(country_code) :]

    if len(digits) != PHONE_DIGITS:
        raise InvalidIdentifier(f"Phone number must have {PHONE_DIGITS} digits, got {len(digits)}")
    return digits


def normalize_handle(raw: str) -> str:
    handle = (raw or "").strip()
    if handle.startswith("@"):
        handle = handle[1:]
    handle = handle.strip().lower()

    if not handle:
        raise InvalidIdentifier("Handle must not be empty")
    if any(ch.isspace() for ch in handle):
        raise InvalidIdentifier("Handle must not contain whitespace")
    return handle


def normalize_identifier(
    identifier_type: IdentifierType, raw: str, *, country_code: str = "1"
) -> str:
    if identifier_type is IdentifierType.PHONE:
        return normalize_phone(raw, country_code)
    return normalize_handle(raw)
