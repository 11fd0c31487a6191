"""Application constants and configuration values."""

from core.config import FRONTEND_URL

# Database field lengths
MAX_STRING_LENGTH = 255
MAX_NOTES_LENGTH = 5000

# Database connection settings
DB_POOL_RECYCLE_SECONDS = 300  # 5 minutes

# CORS origins for development and production
_CORS_ORIGINS_RAW = [
    "http://localhost:5173",      # React dev server (Vite)
    FRONTEND_URL,
]

# Filter out None values and empty strings to avoid CORS errors
CORS_ORIGINS = [origin for origin in _CORS_ORIGINS_RAW if origin and origin.strip()]

# Slot grid defaults (every location uses a 30-minute grid)
DEFAULT_DAY_START_HOUR = 9
DEFAULT_DAY_END_HOUR = 15  # exclusive: last candidate is 14:30
SLOT_INTERVAL_MINUTES = 30

# Reserved patient that owns manually blocked calendar slots
BLOCK_PATIENT_EMAIL = "system@block.com"
BLOCK_PATIENT_NAME = "BLOQUEO DE HORARIO"
BLOCK_PATIENT_PHONE = "0000000000"
BLOCK_PATIENT_NOTES = "Usuario sistema para bloqueos"
BLOCKED_SLOT_NOTES = "Horario Bloqueado Manualmente"

# Global search
MIN_SEARCH_TERM_LENGTH = 2
SEARCH_RESULT_LIMIT = 5

# Patient attachments
PATIENT_FILES_BUCKET = "patient_files"
ALLOWED_UPLOAD_CONTENT_TYPES = ("image/", "application/pdf")
THUMBNAIL_TRANSFORM = {
    "width": 300,
    "height": 200,
    "resize": "cover",
    "quality": 80,
}
