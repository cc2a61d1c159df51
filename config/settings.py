"""Central Configuration for the Inclusive Travel Agent client."""
import os
from pathlib import Path
from dotenv import load_dotenv

# Base Directory (Root of the project)
BASE_DIR = Path(__file__).resolve().parent.parent

# Load Environment Variables
load_dotenv(BASE_DIR / ".env")


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() == "true"


# Backend
API_BASE_URL = os.getenv("TRAVEL_AGENT_API_BASE_URL", "http://localhost:8080").rstrip("/")
REQUEST_TIMEOUT = float(os.getenv("TRAVEL_AGENT_REQUEST_TIMEOUT", "15"))
PROBE_TIMEOUT = float(os.getenv("TRAVEL_AGENT_PROBE_TIMEOUT", "2"))

# Connectivity: local fallback only kicks in eagerly when this flag is set
# AND the network probe reports offline. Remote failures always fall back.
OFFLINE_FALLBACK = _env_flag("TRAVEL_AGENT_OFFLINE_FALLBACK")
LOCAL_CHAT_SIMULATION = _env_flag("TRAVEL_AGENT_LOCAL_CHAT", "true")

# Local Cache
PROFILE_STORAGE_PATH = os.getenv("TRAVEL_AGENT_STORAGE_PATH")  # None = in-memory only
DB_USER_PREFIX = "db_user_"
ACTIVE_USER_KEY = "inclusive_travel_user_id"

# Profile Defaults
DEFAULT_TIMEZONE = os.getenv("TRAVEL_AGENT_TIMEZONE", "UTC")
DEFAULT_LANGUAGE = "en-US"
DEFAULT_CURRENCY = "USD"

# Speech
SPEECH_LANG = os.getenv("TRAVEL_AGENT_SPEECH_LANG", DEFAULT_LANGUAGE)

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
