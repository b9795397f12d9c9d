"""Shared validation utilities"""

import re
import uuid
from typing import Optional

HHMM_PATTERN = re.compile(r"(\d{2}):(\d{2})")


def validate_uuid(value: str) -> bool:
    """Validate UUID format"""
    try:
        uuid.UUID(value)
        return True
    except (ValueError, AttributeError, TypeError):
        return False


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a phone number.

    Args:
        phone: Phone number string in various formats

    Returns:
        Phone number with spacing and punctuation removed, leading + kept

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    phone = phone.strip()
    prefix = "+" if phone.startswith("+") else ""
    digits = re.sub(r"\D", "", phone)

    if not 7 <= len(digits) <= 15:
        raise ValueError("Phone number must contain between 7 and 15 digits")

    return f"{prefix}{digits}"


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    # Basic email validation pattern
    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def normalize_postcode(postcode: Optional[str]) -> Optional[str]:
    """
    Normalize a postcode for lookups and cache keys.

    Collapses whitespace and upper-cases ("sw1a  1aa" -> "SW1A 1AA").
    Returns None for blank input.
    """
    if not postcode:
        return None
    normalized = " ".join(postcode.split()).upper()
    return normalized or None


def validate_hhmm(value: str) -> str:
    """
    Validate an "HH:MM" time of day.

    Raises:
        ValueError: If the value is not a valid 24h time
    """
    match = HHMM_PATTERN.fullmatch(value or "")
    if not match:
        raise ValueError(f"Invalid time '{value}' - expected HH:MM")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError(f"Invalid time '{value}' - out of range")
    return value
