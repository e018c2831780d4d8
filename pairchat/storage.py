# ============================================
#   PairChat — JSON Persistence (durable users)
#   Users + friend lists only. Sessions and
#   groups are never written to disk.
# ============================================

import os
import json
import time
import threading

from pairchat.logger import log_info, log_warning, log_exception


# =====================================================
#   FILESYSTEM SAFETY
# =====================================================

def _safe_read_json(path: str, default):
    """
    Safe JSON reader with fallback.
    Returns `default` on missing file or parse errors.
    """
    if not path:
        return default

    try:
        if not os.path.exists(path):
            return default

        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        return default
    except (OSError, ValueError):
        log_exception("storage", f"Unreadable JSON file: {path}")
        return default


def _atomic_write_json(path: str, payload):
    """
    Atomic JSON write to avoid corruption on crash/restart:
    write temp file then os.replace().
    """
    if not path:
        raise ValueError("Missing path")

    base = os.path.dirname(path)
    if base:
        os.makedirs(base, exist_ok=True)

    tmp_path = f"{path}.tmp"
    try:
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, path)
        return True
    except Exception:
        # Try cleanup tmp, but never mask the original exception
        try:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
        except OSError:
            pass
        raise


# =====================================================
#   USER STORE
# =====================================================

class UserStore:
    """
    Durable user records:

        {
            "users": {
                "alice": {"username": "alice", "friends": ["bob"], "created_at": float},
                ...
            }
        }

    Credentials never live here; registration and auth happen upstream.
    """

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.RLock()
        self._users = {}
        self._load()

    def _load(self):
        data = _safe_read_json(self.path, {})

        if not isinstance(data, dict) or not isinstance(data.get("users", {}), dict):
            log_warning("storage", f"{self.path} invalid format (expected dict), resetting.")
            data = {}

        users = {}
        for name, record in data.get("users", {}).items():
            record = record if isinstance(record, dict) else {}
            friends = record.get("friends") or []
            users[name] = {
                "username": name,
                "friends": sorted({f for f in friends if isinstance(f, str) and f != name}),
                "created_at": record.get("created_at", time.time()),
            }

        self._users = users
        log_info("storage", f"Loaded {len(users)} users from {self.path}.")

    def _save(self):
        try:
            _atomic_write_json(self.path, {"users": self._users})
        except Exception:
            log_exception("storage", f"Failed writing {self.path}")

    # -----------------------------------------
    # Collaborator interface
    # -----------------------------------------

    def find_by_username(self, username):
        """Copy of the user record, or None."""
        with self._lock:
            record = self._users.get(username)
            if record is None:
                return None
            return {
                "username": record["username"],
                "friends": list(record["friends"]),
                "created_at": record["created_at"],
            }

    def create_user(self, username):
        """Create the record if missing. Returns the stored record."""
        with self._lock:
            if username not in self._users:
                self._users[username] = {
                    "username": username,
                    "friends": [],
                    "created_at": time.time(),
                }
                self._save()
                log_info("storage", f'User "{username}" created.')
        return self.find_by_username(username)

    def persist_friend_update(self, user_a, user_b):
        """Record the friendship on both records in a single write."""
        with self._lock:
            for name, other in ((user_a, user_b), (user_b, user_a)):
                record = self._users.setdefault(name, {
                    "username": name,
                    "friends": [],
                    "created_at": time.time(),
                })
                if other not in record["friends"]:
                    record["friends"] = sorted(record["friends"] + [other])
            self._save()

    def all_usernames(self):
        with self._lock:
            return set(self._users)
