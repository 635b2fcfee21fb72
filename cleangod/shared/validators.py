"""Shared validation utilities"""

import re
from typing import Optional


def validate_indian_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize an Indian mobile number to E.164 format.

    Args:
        phone: Phone number string in various formats

    Returns:
        Normalized phone number in E.164 format (+91XXXXXXXXXX)

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    # Remove all non-digit characters
    digits = re.sub(r"\D", "", phone)

    # Handle +91 / 0 prefixes
    if digits.startswith("91") and len(digits) == 12:
        digits = digits[2:]
    elif digits.startswith("0") and len(digits) == 11:
        digits = digits[1:]

    if len(digits) != 10 or digits[0] not in "6789":
        raise ValueError("Phone number must be a 10 digit Indian mobile number")

    return f"+91{digits}"


def validate_pincode(pincode: str) -> str:
    """Validate a six digit Indian PIN code (first digit is never 0)"""
    pincode = (pincode or "").strip()
    if not re.fullmatch(r"[1-9][0-9]{5}", pincode):
        raise ValueError("Pincode must be 6 digits")
    return pincode


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_client_key(value: str) -> str:
    """Validate a client-generated device or session identifier"""
    value = (value or "").strip()
    if not re.fullmatch(r"[A-Za-z0-9_-]{8,64}", value):
        raise ValueError("Identifier must be 8-64 characters of letters, digits, '-' or '_'")
    return value
