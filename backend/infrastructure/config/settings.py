import os
import warnings
from typing import Optional

from dotenv import load_dotenv

# Single place where infrastructure reads `.env`; the project-root .env wins over
# the shell so edits take effect without re-exporting variables.
load_dotenv(override=True)


def _get_env_int(key: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {key} must be an integer, got {raw!r}") from exc


def _get_env_float(key: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {key} must be a number, got {raw!r}") from exc


def _get_env_bool(key: str, default: bool) -> bool:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    return raw.lower() in {"1", "true", "yes", "y", "on"}


def _get_env_choice(key: str, default: str, choices: set[str]) -> str:
    raw = (os.getenv(key) or "").strip().lower()
    if not raw:
        return default
    if raw not in choices:
        warnings.warn(
            f"{key} must be one of {sorted(choices)}; using {default!r}.",
            RuntimeWarning,
            stacklevel=2,
        )
        return default
    return raw


# ===== Movie store =====

# memory: process-local store (dev/tests); firestore: Cloud Firestore via firebase-admin.
MOVIE_STORE_PROVIDER = _get_env_choice("MOVIE_STORE_PROVIDER", "memory", {"memory", "firestore"})
FIREBASE_CREDENTIALS_PATH = os.getenv("FIREBASE_CREDENTIALS_PATH", "").strip()
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID", "").strip()

# Collection layout: artifacts/{CURATOR_APP_ID}/users/{uid}/movies
CURATOR_APP_ID = os.getenv("CURATOR_APP_ID", "").strip() or "default-app-id"
CURATOR_LIST_LAYOUT = _get_env_choice("CURATOR_LIST_LAYOUT", "dual", {"dual", "single"})


# ===== Identity =====

# Fixed uid (takes precedence), else a Firebase ID token to verify, else anonymous.
CURATOR_USER_ID = os.getenv("CURATOR_USER_ID", "").strip()
CURATOR_ID_TOKEN = os.getenv("CURATOR_ID_TOKEN", "").strip()


# ===== OMDb metadata lookup =====

OMDB_BASE_URL = os.getenv("OMDB_BASE_URL", "https://www.omdbapi.com/").strip() or "https://www.omdbapi.com/"
OMDB_API_KEY = os.getenv("OMDB_API_KEY", "").strip()
OMDB_TIMEOUT_S = _get_env_float("OMDB_TIMEOUT_S", 10.0) or 10.0


# ===== Gemini taste analysis =====

GEMINI_BASE_URL = (
    os.getenv("GEMINI_BASE_URL", "").strip() or "https://generativelanguage.googleapis.com/v1beta"
)
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "").strip()
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "").strip() or "gemini-2.0-flash"
GEMINI_TIMEOUT_S = _get_env_float("GEMINI_TIMEOUT_S", 30.0) or 30.0
GEMINI_TEMPERATURE = _get_env_float("GEMINI_TEMPERATURE", None)


# ===== Session behaviour =====

SEARCH_DEBOUNCE_S = _get_env_float("SEARCH_DEBOUNCE_S", 0.3)
FEEDBACK_TTL_S = _get_env_float("FEEDBACK_TTL_S", 2.0)

_raw_min_watched = _get_env_int("MIN_WATCHED_FOR_ANALYSIS", 3)
if _raw_min_watched is None or _raw_min_watched <= 0:
    warnings.warn(
        "MIN_WATCHED_FOR_ANALYSIS must be a positive integer; using default.",
        RuntimeWarning,
        stacklevel=2,
    )
    _raw_min_watched = 3
MIN_WATCHED_FOR_ANALYSIS = _raw_min_watched
