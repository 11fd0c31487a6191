"""
Utility modules for the dental booking backend.

This package contains shared utility functions and helpers used across
the application, including datetime utilities, field validators and
blob storage backends.
"""

from utils.patient_validators import validate_email_field, validate_name_field
from utils.phone_validator import validate_phone

__all__ = ['validate_email_field', 'validate_name_field', 'validate_phone']
