import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent

# Pick up backend/hiring/.env when present; real environment wins.
load_dotenv(BASE_DIR / ".env")


def _read_env(*keys, default=None):
    """Return the first found environment variable from provided keys."""
    for key in keys:
        if key and key in os.environ:
            return os.environ[key]
    return default


def _parse_tokens(raw):
    """Parse `token:owner,token:owner` into a dict."""
    tokens = {}
    for pair in (raw or "").split(","):
        token, _, owner = pair.strip().partition(":")
        if token.strip() and owner.strip():
            tokens[token.strip()] = owner.strip()
    return tokens


# ------------------------------------------------------
# STORE CONFIGURATION
# ------------------------------------------------------
STORE_CONFIG = {
    # "memory" keeps candidates in-process; "mysql" uses DB_CONFIG
    "backend": _read_env("HIRING_STORE", default="memory").strip().lower(),
}

DB_CONFIG = {
    "host": _read_env("DB_HOST", "MYSQL_HOST", default="127.0.0.1"),
    "user": _read_env("DB_USER", "MYSQL_USER", default="hiring"),
    "password": _read_env("DB_PASSWORD", "MYSQL_PASSWORD", default=""),
    "database": _read_env("DB_NAME", "MYSQL_DB", default="hiring"),
    "port": int(_read_env("DB_PORT", "MYSQL_PORT", default=3306)),
    "autocommit": True,
}


# ------------------------------------------------------
# RESUME UPLOADS
# ------------------------------------------------------
UPLOAD_CONFIG = {
    "dir": Path(_read_env("UPLOAD_DIR", default=str(BASE_DIR / "Uploaded_Resumes"))),
    "max_bytes": int(_read_env("RESUME_MAX_BYTES", default=10 * 1024 * 1024)),
    "public_base_url": _read_env("UPLOAD_PUBLIC_URL", default="/uploads").rstrip("/"),
}


# ------------------------------------------------------
# AUTH
# ------------------------------------------------------
AUTH_CONFIG = {
    "tokens": _parse_tokens(_read_env("HIRING_API_TOKENS", default="")),
}


# ------------------------------------------------------
# SCORING / AGGREGATION RULES
# ------------------------------------------------------
SCORING_RULES = {
    "recommendation_limit": 3,
    "recent_window_days": 7,
    "top_positions_limit": 3,
    "default_required_skills": ("JavaScript", "Python", "SQL", "Communication"),
}

LOG_LEVEL = _read_env("LOG_LEVEL", default="INFO").upper()
