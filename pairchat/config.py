# ============================================
#     PairChat — Global Configuration
# ============================================

import os

# =========================================
#   ENVIRONMENT
# =========================================
# Expected values: "dev", "prod"
ENV = os.getenv("ENV", "dev").lower()

IS_PROD = ENV == "prod"


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


# =========================================
#   PATHS — SINGLE SOURCE OF TRUTH (PERSISTENCE)
# =========================================
# Only durable user/friend records are written here.
# Sessions and groups live in memory and are reset on restart.
#
# Override:
#   - PAIRCHAT_PERSIST_ROOT=/custom/path
#
# In dev, we default to a local folder inside the repo: ./var/data

# Project root = one level above /pairchat
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

PERSIST_ROOT = (
    os.getenv("PAIRCHAT_PERSIST_ROOT")
    or ("/var/data" if IS_PROD else os.path.join(PROJECT_ROOT, "var", "data"))
)

USERS_FILE = os.getenv("PAIRCHAT_USERS_FILE", os.path.join(PERSIST_ROOT, "users.json"))

# Logs persistence
LOG_DIR = os.path.join(PERSIST_ROOT, "logs")
DEFAULT_LOG_FILE = os.path.join(LOG_DIR, "pairchat.log")
LOG_FILE = os.getenv("PAIRCHAT_LOG_FILE", DEFAULT_LOG_FILE)
LOG_LEVEL = os.getenv("PAIRCHAT_LOG_LEVEL", "INFO")

# "module=LEVEL,module=LEVEL" → {"module": "LEVEL"}
LOG_MODULE_LEVELS = dict(
    item.split("=", 1)
    for item in os.getenv("PAIRCHAT_LOG_LEVELS", "").replace(" ", "").split(",")
    if "=" in item
)

# Ensure folders exist at startup
os.makedirs(PERSIST_ROOT, exist_ok=True)
os.makedirs(LOG_DIR, exist_ok=True)

# Disable to keep users/friends in memory only
PERSIST_USERS = _env_bool("PERSIST_USERS", "true")

# =========================================
#   SERVER
# =========================================
PORT = int(os.getenv("PORT", "5001"))

# Comma separated; "*" allows everything
CORS_ALLOWED_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ALLOWED_ORIGINS", "http://localhost:3000").split(",")
    if o.strip()
]

# =========================================
#   GENERAL PARAMETERS
# =========================================
MAX_MESSAGE_LENGTH = int(os.getenv("MAX_MESSAGE_LENGTH", "1000"))   # Hard cap on message size (chars)
MAX_GROUP_SIZE = int(os.getenv("MAX_GROUP_SIZE", "50"))             # Creator included

# =========================================
#   MATCHMAKING
# =========================================
# Full roster by default; set to pair only members with a live session.
MATCH_ONLINE_ONLY = _env_bool("MATCH_ONLINE_ONLY", "false")

# Fixed seed makes pairings reproducible (debugging only)
_seed = os.getenv("MATCH_SEED", "").strip()
MATCH_SEED = int(_seed) if _seed else None

# =========================================
#   RESERVED NAMES
# =========================================
RESERVED_USERNAMES = {
    "pairchat",
    "admin",
    "system",
}
