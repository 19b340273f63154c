"""
Residency Pulse — Configuration & Constants
All environment variables, roster, triad labels and logging setup.
"""
import os
import logging
from pathlib import Path

# ============================================================
# PATHS
# ============================================================
BASE_DIR = Path(__file__).parent.parent.parent
DATA_DIR = Path(os.environ.get("PULSE_DATA_DIR", str(BASE_DIR / "data")))
SUBMISSIONS_PATH = DATA_DIR / "submissions.json"

# ============================================================
# STORE BACKEND SELECTION
# ============================================================
STORE_BACKENDS = ("auto", "file", "memory", "kv")
STORE_BACKEND = os.environ.get("STORE_BACKEND", "auto").lower().strip()
PERSIST_DATA = os.environ.get("PERSIST_DATA", "true").lower() == "true"

# Vercel KV names first, raw Upstash names as an alias
KV_URL = os.environ.get("KV_REST_API_URL") or os.environ.get("UPSTASH_REDIS_REST_URL")
KV_TOKEN = os.environ.get("KV_REST_API_TOKEN") or os.environ.get("UPSTASH_REDIS_REST_TOKEN")
KV_KEY = os.environ.get("KV_SUBMISSIONS_KEY", "submissions")
KV_TIMEOUT_SECONDS = float(os.environ.get("KV_TIMEOUT_SECONDS", "5"))

# ============================================================
# AUTH
# ============================================================
ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD", "residency2024")
ADMIN_HEADER = "X-Admin-Password"

# ============================================================
# ROSTER
# ============================================================
DEFAULT_ROSTER = ["Anna", "Andrej", "Justina", "Matt", "Anastasia", "Kirill", "Jordi", "Stacey", "Jane"]


def _parse_roster(raw):
    if not raw:
        return list(DEFAULT_ROSTER)
    names = [n.strip() for n in raw.split(",")]
    return [n for n in names if n] or list(DEFAULT_ROSTER)


ROSTER = _parse_roster(os.environ.get("PULSE_ROSTER"))

# ============================================================
# TRIAD GEOMETRY & LABELS
# ============================================================
CANVAS_SIZE = 500
CANVAS_MARGIN = 100

# Order matters: (top vertex, bottom-left, bottom-right)
VALUE_LABELS = ("container", "network", "launchpad")
IDENTITY_LABELS = ("sanctuary", "laboratory", "guild")

TRIADS = {
    "values": {"field": "valueTriad", "labels": VALUE_LABELS,
               "title": "The Value Engine",
               "display": ("The Container", "The Network", "The Launchpad")},
    "identity": {"field": "identityTriad", "labels": IDENTITY_LABELS,
                 "title": "The Identity Map",
                 "display": ("The Sanctuary", "The Laboratory", "The Guild")},
}

SLIDER_MIN = 0
SLIDER_MAX = 100

# ============================================================
# SERVER
# ============================================================
PORT = int(os.environ.get("PORT", 8000))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level=None):
    """Install the process-wide log format. Safe to call more than once."""
    logging.basicConfig(level=level or LOG_LEVEL, format=LOG_FORMAT)
