"""
Configuration module for PrepDeck.
Centralizes environment variables, logging setup, and constants.
"""
import os
import logging
from dotenv import load_dotenv

# Load .env file for local development
load_dotenv()

# ============================================================================
# Backend Configuration
# ============================================================================

# Base URL of the question backend (company, round and question endpoints)
BACKEND_URL = os.environ.get("BACKEND_URL", "http://localhost:8000")

# Seconds before an HTTP call to the backend is abandoned
HTTP_TIMEOUT = float(os.environ.get("HTTP_TIMEOUT", "30.0"))

# ============================================================================
# Generation Quota Configuration
# ============================================================================

# Generation requests allowed per calendar day
GENERATION_LIMIT = int(os.environ.get("GENERATION_LIMIT", "5"))

# Optional JSON file holding the local quota ledger between runs
QUOTA_STATE_PATH = os.environ.get("QUOTA_STATE_PATH") or None

# Optional JSON file holding the last generated question set between runs
LAST_GENERATED_PATH = os.environ.get("LAST_GENERATED_PATH") or None

# Re-read the server's tracked count after each successful generation
TRACK_SERVER_QUOTA = os.environ.get("TRACK_SERVER_QUOTA", "true").lower() in ("1", "true", "yes")

# ============================================================================
# Logging Configuration
# ============================================================================

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# ============================================================================
# Application Constants
# ============================================================================

# Round types that do not ask for a programming language
LANGUAGE_EXEMPT_ROUNDS = frozenset({
    "Behavioral Interview",
    "HR Round",
    "Managerial Round",
})

# Round types a user can add to a company
ROUND_OPTIONS = [
    "Technical Interview",
    "Machine Coding",
    "Behavioral Interview",
    "System Design",
    "HR Round",
    "Managerial Round",
]

# Languages offered for question generation and deletion
LANGUAGES = ["python", "javascript", "java", "go", "php"]

# User-facing messages shared by the view-models
GENERATION_SUCCESS_MESSAGE = "Your questions are ready! Good luck with your preparation."
GENERATION_FAILURE_MESSAGE = (
    "Oops! We couldn't generate your questions. Please check your selections and try again."
)
RATE_LIMIT_FALLBACK_MESSAGE = (
    f"You have reached the limit of {GENERATION_LIMIT} requests. Please try again later."
)
