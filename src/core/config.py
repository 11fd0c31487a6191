"""
Application configuration using python-dotenv.

This module loads environment variables from .env file into os.environ
for use throughout the application.
"""

import os
import pathlib
from typing import Dict

from dotenv import load_dotenv


# Determine if we're running in a test environment
# Don't load .env file during testing to ensure predictable test behavior
is_testing = os.getenv("PYTEST_VERSION") is not None or any("pytest" in str(frame) for frame in __import__('inspect').stack(0))

# Load .env file into os.environ (only outside of testing)
if not is_testing:
    possible_paths = [
        pathlib.Path(__file__).parent.parent.parent / ".env",  # repo root (when run from src)
        pathlib.Path.cwd() / ".env",  # .env in current directory
        pathlib.Path.cwd().parent / ".env",  # .env in parent directory
    ]

    for env_path in possible_paths:
        if env_path.exists():
            load_dotenv(env_path)
            break


def get_database_url():
    """Get the database URL from environment."""
    return os.getenv(
        "DATABASE_URL",
        "sqlite:///./dental_booking.db"
    )


def parse_admin_accounts(raw: str) -> Dict[str, str]:
    """
    Parse ADMIN_ACCOUNTS into an email -> bcrypt hash mapping.

    Format: ``email:hash,email:hash``. Bcrypt hashes never contain ':' or ','
    so a single split on the first ':' is enough.
    """
    accounts: Dict[str, str] = {}
    for entry in raw.split(","):
        entry = entry.strip()
        if not entry or ":" not in entry:
            continue
        email, password_hash = entry.split(":", 1)
        accounts[email.strip().lower()] = password_hash.strip()
    return accounts


# Configuration constants with defaults
DATABASE_URL = get_database_url()
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# Deployment scope shared by every row this backend reads or writes
APP_ID = os.getenv("APP_ID", "dental")

# Clinic wall-clock timezone (dashboard "today" / "this week")
CLINIC_TIMEZONE = os.getenv("CLINIC_TIMEZONE", "America/Mexico_City")

# Authentication
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-secret-key-change-in-production")
JWT_ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("JWT_ACCESS_TOKEN_EXPIRE_MINUTES", "480"))
ADMIN_ACCOUNTS = parse_admin_accounts(os.getenv("ADMIN_ACCOUNTS", ""))

# Blob storage
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "local")  # "local" or "s3"
STORAGE_LOCAL_DIR = os.getenv("STORAGE_LOCAL_DIR", "uploads")
STORAGE_PUBLIC_URL = os.getenv("STORAGE_PUBLIC_URL", f"{API_BASE_URL}/static/uploads")
S3_ENDPOINT_URL = os.getenv("S3_ENDPOINT_URL") or None
S3_REGION = os.getenv("S3_REGION", "us-east-1")
S3_ACCESS_KEY = os.getenv("S3_ACCESS_KEY", "")
S3_SECRET_KEY = os.getenv("S3_SECRET_KEY", "")
MAX_UPLOAD_SIZE_MB = int(os.getenv("MAX_UPLOAD_SIZE_MB", "10"))
