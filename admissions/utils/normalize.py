# utils/normalize.py
"""
Canonical forms for applicant contact details.
Used wherever emails and phones are compared or stored for uniqueness checks.
"""

import re

from email_validator import EmailNotValidError, validate_email

_PHONE_FORMATTING = re.compile(r'[\s\-()]')
# ASCII digits only; str patterns would otherwise accept e.g. fullwidth digits
_PHONE_DIGITS = re.compile(r'^\+?[0-9]+$')


def normalize_email(value):
    """Trim and lowercase an email. Blank values normalize to None."""
    if not value:
        return None
    normalized = value.strip().lower()
    return normalized or None


def is_valid_email(value):
    """Syntax check only; no DNS lookups."""
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def normalize_phone(value):
    """
    Strip spaces, dashes and parentheses from a phone number.

    Returns None for blank input or when the result is not an optional
    leading '+' followed by digits.
    """
    if not value:
        return None
    trimmed = value.strip()
    if not trimmed:
        return None
    normalized = _PHONE_FORMATTING.sub('', trimmed)
    if not _PHONE_DIGITS.match(normalized):
        return None
    return normalized
