"""
Patient field validation utilities.

Provides centralized validation logic for patient contact fields
for consistent validation across the application.
"""

import re
from typing import Optional

from core.constants import MAX_STRING_LENGTH

_EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


def validate_name_field(v: Optional[str]) -> str:
    """
    Validate a patient name.

    Returns:
        The trimmed name

    Raises:
        ValueError: If the name is empty or too long
    """
    if v is None or not v.strip():
        raise ValueError('El nombre es obligatorio')
    v = v.strip()
    if len(v) > MAX_STRING_LENGTH:
        raise ValueError(f'El nombre no puede exceder {MAX_STRING_LENGTH} caracteres')
    return v


def validate_email_field(v: Optional[str]) -> Optional[str]:
    """
    Validate an optional email address.

    Empty strings become None so the store keeps NULL rather than ''.
    The address is not lowercased: patient matching is an exact comparison.

    Raises:
        ValueError: If a non-empty value is not an email address
    """
    if v is None:
        return None
    v = v.strip()
    if not v:
        return None
    if len(v) > MAX_STRING_LENGTH or not _EMAIL_PATTERN.match(v):
        raise ValueError('Correo electrónico inválido')
    return v
