import os
from dotenv import load_dotenv

load_dotenv()


def _get_int_env(name, default=None):
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_bool_env(name, default=False):
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")

DATA_DIR = os.getenv("DATA_DIR", "./data")
VOCABULARY_DIR = os.getenv("VOCABULARY_DIR", os.path.join(DATA_DIR, "vocabularies"))

# Unset means no depth limit
DEFAULT_MAX_DEPTH = _get_int_env("DEFAULT_MAX_DEPTH")
GUARD_CYCLES = _get_bool_env("GUARD_CYCLES", True)
TREE_CACHE_ENABLED = _get_bool_env("TREE_CACHE_ENABLED", True)

SEARCH_LIMIT = _get_int_env("SEARCH_LIMIT", 25)
SEARCH_MIN_SCORE = _get_int_env("SEARCH_MIN_SCORE", 60)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
PORT = _get_int_env("PORT", 8000)
