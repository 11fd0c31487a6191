"""
Phone number validation utilities.

Provides centralized phone number cleaning and validation logic
for consistent validation across the application.
"""

import re
from typing import Optional

MIN_PHONE_DIGITS = 7
MAX_PHONE_DIGITS = 15


def clean_phone_number(phone: str) -> str:
    """
    Clean phone number by removing common separators.

    Args:
        phone: Phone number string (may contain spaces, dashes, dots, parentheses, etc.)

    Returns:
        Cleaned phone number (digits only)
    """
    # Remove common separators: spaces, dashes, dots, parentheses, plus signs
    return re.sub(r'[-\s().+]', '', phone)


def validate_phone(phone: str) -> str:
    """
    Validate a contact phone number.

    The submitted value is returned trimmed but otherwise unchanged, because
    patient matching compares phones exactly as entered. Only the digit count
    of its cleaned form is checked.

    Raises:
        ValueError: If phone number is missing or malformed
    """
    if not phone or not phone.strip():
        raise ValueError('El teléfono es obligatorio')

    cleaned = clean_phone_number(phone)

    if not cleaned.isdigit():
        raise ValueError('Formato de teléfono inválido')

    if not MIN_PHONE_DIGITS <= len(cleaned) <= MAX_PHONE_DIGITS:
        raise ValueError(f'El teléfono debe tener entre {MIN_PHONE_DIGITS} y {MAX_PHONE_DIGITS} dígitos')

    return phone.strip()


def validate_phone_optional(phone: Optional[str]) -> Optional[str]:
    """Same as ``validate_phone`` but None/empty passes through as None."""
    if phone is None or not phone.strip():
        return None
    return validate_phone(phone)
