# ============================================
#     PairChat — User Helpers + Connection Registry
#     + Username Validation
#     + Reserved System Usernames
# ============================================

import re
import threading

from pairchat.config import RESERVED_USERNAMES


# =====================================================
#   USERNAME VALIDATION (letters, numbers, _ -)
# =====================================================

# NOTE:
#  - 1 to 32 characters max
#  - No whitespace, unicode, emoji, HTML, etc.
USERNAME_REGEX = re.compile(r"^[A-Za-z0-9_-]{1,32}$")


def is_valid_username(username: str) -> bool:
    """
    Validate a username:
        - 1 to 32 characters
        - A–Z, a–z, 0–9, underscore, dash
    """
    if not isinstance(username, str):
        return False

    return bool(USERNAME_REGEX.fullmatch(username.strip()))


def is_reserved_username(username: str) -> bool:
    """
    Returns True if the username is reserved for system usage.
    Case-insensitive.
    """
    if not isinstance(username, str):
        return False

    return username.strip().lower() in RESERVED_USERNAMES


# =====================================================
#   CONNECTION REGISTRY (sid <-> username)
# =====================================================

class ConnectionRegistry:
    """
    Single source of truth for "who is online, on which connection".

    Both directions are kept in sync under one lock, so a sid resolves to at
    most one username and a username to at most one sid. Last login wins.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._by_sid = {}        # sid -> username
        self._by_username = {}   # username -> sid

    def register(self, sid, username):
        """
        Bind `sid` to `username`.

        Returns the sid of the Session this login replaced (same username,
        other connection), or None. The replaced sid stops resolving
        immediately; notifying or closing it is up to the caller.
        """
        with self._lock:
            # sid re-logging under another name: drop its old binding
            old_name = self._by_sid.get(sid)
            if old_name is not None and old_name != username:
                if self._by_username.get(old_name) == sid:
                    del self._by_username[old_name]

            previous_sid = self._by_username.get(username)
            if previous_sid is not None and previous_sid != sid:
                self._by_sid.pop(previous_sid, None)
            else:
                previous_sid = None

            self._by_sid[sid] = username
            self._by_username[username] = sid
            return previous_sid

    def resolve(self, username):
        """Live sid for `username`, or None when offline."""
        with self._lock:
            return self._by_username.get(username)

    def username_for(self, sid):
        """Username bound to `sid`, or None (not logged in / replaced)."""
        with self._lock:
            return self._by_sid.get(sid)

    def unregister(self, sid):
        """
        Remove the Session bound to `sid`. Idempotent.
        Returns the username that was bound, or None.
        """
        with self._lock:
            username = self._by_sid.pop(sid, None)
            if username is None:
                return None

            # never drop a newer session of the same user
            if self._by_username.get(username) == sid:
                del self._by_username[username]
            return username

    def is_online(self, username) -> bool:
        with self._lock:
            return username in self._by_username

    def online_usernames(self):
        with self._lock:
            return set(self._by_username)

    def count(self) -> int:
        with self._lock:
            return len(self._by_sid)
