# Role: Central configuration module. Loads .env into environment variables and computes runtime flags
# (DEBUG, GOOGLE_SEARCH_ENABLED). Importers read ecotravel.config.<FLAG> instead of threading flags through calls.

from __future__ import annotations

import os
from dotenv import load_dotenv

DEBUG: bool = False
GOOGLE_SEARCH_ENABLED: bool = True

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_DATA_FILE = "ecotravel_data.json"

_TRUTHY = {"1", "true", "yes"}


def load_env() -> None:
    """
    Load .env into os.environ, then recompute the module flags.
    This makes the flags correct even if load_env() is called after import.
    """
    global DEBUG, GOOGLE_SEARCH_ENABLED
    load_dotenv()
    DEBUG = os.getenv("DEBUG", "0").lower() in _TRUTHY
    # Key line: search grounding is on unless explicitly disabled.
    GOOGLE_SEARCH_ENABLED = os.getenv("GEMINI_GOOGLE_SEARCH", "1").lower() in _TRUTHY


def data_file() -> str:
    return os.getenv("ECOTRAVEL_DATA_FILE", DEFAULT_DATA_FILE)
