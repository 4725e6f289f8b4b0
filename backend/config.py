"""Configuration management for the chunk scoring service."""
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# Server Configuration
PORT = int(os.getenv("PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "text")  # "text" or "json"

# CORS Configuration
CORS_ORIGINS = os.getenv(
    "CORS_ORIGINS",
    "http://localhost:3000,http://localhost:5173"
).split(",")

# Chunking Configuration
CHUNK_SIZE = int(os.getenv("CHUNK_SIZE", "512"))  # body tokens, cascade excluded
CHUNK_OVERLAP = int(os.getenv("CHUNK_OVERLAP", "50"))  # tokens
CASCADE_HEADINGS = _env_bool("CASCADE_HEADINGS", "true")

# Scoring Configuration
SCORING_WORKERS = int(os.getenv("SCORING_WORKERS", "4"))
ASSIGNMENT_MIN_SCORE = float(os.getenv("ASSIGNMENT_MIN_SCORE", "0"))
