"""
Configuration settings for the Club Scorebook scoresheet ingestion service.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _get_env_list(name: str, default: str) -> tuple:
    raw = os.getenv(name, default)
    return tuple(part.strip().upper() for part in raw.split(",") if part.strip())


# Base paths
BASE_DIR = Path(__file__).resolve().parent

# Database
DATABASE_PATH = Path(os.getenv("SCOREBOOK_DB_PATH", str(BASE_DIR / "scorebook.db")))

# Home club identification
HOME_CLUB_NAME = os.getenv("HOME_CLUB_NAME", "Northolt Manor CC")
# Any of these tokens in a team name marks it as the home club
HOME_CLUB_MARKERS = _get_env_list("HOME_CLUB_MARKERS", "NMCC,NORTHOLT,MANOR")

# OCR engine selection: "tesseract" (local binary) or "ocrspace" (HTTP API)
OCR_ENGINE = os.getenv("OCR_ENGINE", "tesseract").lower()
OCR_LANGUAGE = os.getenv("OCR_LANGUAGE", "eng")
OCR_TIMEOUT_SECONDS = int(os.getenv("OCR_TIMEOUT_SECONDS", 30))
TESSERACT_CMD = os.getenv("TESSERACT_CMD")
OCR_SPACE_API_KEY = os.getenv("OCR_SPACE_API_KEY")
OCR_SPACE_URL = os.getenv("OCR_SPACE_URL", "https://api.ocr.space/parse/image")

# Overs arithmetic for season aggregates:
#   "balls"   - 19.2 means 19 overs + 2 balls (sums carry at 6 balls)
#   "decimal" - raw decimal addition, compatible with legacy stored data
OVERS_ARITHMETIC = os.getenv("OVERS_ARITHMETIC", "balls").lower()

# Batting strike rate:
#   "innings" - runs/balls of the latest innings with balls faced
#   "season"  - season runs / season balls faced
STRIKE_RATE_MODE = os.getenv("STRIKE_RATE_MODE", "innings").lower()

# Service credential for mutating endpoints (confirm). Unset disables the check.
SCOREBOOK_API_TOKEN = os.getenv("SCOREBOOK_API_TOKEN")

# Parsing defaults
PARSER_CONFIG = {
    "unknown": "Unknown",
    "placeholder_batter": "Unknown Batter",
    "placeholder_bowler": "Unknown Bowler",
    "extraction_failed_marker": "OCR processing failed",
}

# Batch ingestion
IMAGE_EXTENSIONS = [".png", ".jpg", ".jpeg", ".tif", ".tiff", ".bmp"]


# Flask Configuration
class FlaskConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key-change-in-production")
    DEBUG = os.getenv("FLASK_DEBUG", "False").lower() == "true"
    HOST = os.getenv("FLASK_HOST", "127.0.0.1")
    PORT = int(os.getenv("FLASK_PORT", 5000))
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_UPLOAD_MB", 16)) * 1024 * 1024


# Logging Configuration
LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
            "level": "INFO",
        },
        "file": {
            "class": "logging.FileHandler",
            "filename": str(BASE_DIR / "scorebook.log"),
            "formatter": "standard",
            "level": "DEBUG",
            "delay": True,
        },
    },
    "root": {
        "handlers": ["console", "file"],
        "level": "INFO",
    },
}


def validate_config() -> None:
    """Raise RuntimeError for settings that would break the pipeline at runtime."""
    if OCR_ENGINE not in ("tesseract", "ocrspace"):
        raise RuntimeError(f"OCR_ENGINE must be 'tesseract' or 'ocrspace', got '{OCR_ENGINE}'")

    if OCR_ENGINE == "ocrspace" and not OCR_SPACE_API_KEY:
        raise RuntimeError("OCR_SPACE_API_KEY missing but OCR_ENGINE=ocrspace")

    if OVERS_ARITHMETIC not in ("balls", "decimal"):
        raise RuntimeError(f"OVERS_ARITHMETIC must be 'balls' or 'decimal', got '{OVERS_ARITHMETIC}'")

    if STRIKE_RATE_MODE not in ("innings", "season"):
        raise RuntimeError(f"STRIKE_RATE_MODE must be 'innings' or 'season', got '{STRIKE_RATE_MODE}'")

    if OCR_TIMEOUT_SECONDS <= 0:
        raise RuntimeError("OCR_TIMEOUT_SECONDS must be positive")

    if not HOME_CLUB_MARKERS:
        raise RuntimeError("HOME_CLUB_MARKERS must name at least one token")
