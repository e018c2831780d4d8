# ============================================
#     PairChat — Social Graph Store
#     Friends (symmetric) + Group rosters (fixed)
# ============================================

import re
import time
import threading
from collections import namedtuple

from pairchat.config import MAX_GROUP_SIZE
from pairchat.logger import log_info, log_warning, log_exception


# =====================================================
#   RESULT CODES
# =====================================================
# Every mutating operation returns either
#   {"success": True, ...}
# or
#   {"error": <code>, ...}

NOT_FOUND = "not_found"
NAME_COLLISION = "name_collision"
NOT_MEMBER = "not_member"
INVALID_MEMBER = "invalid_member"
INVALID_NAME = "invalid_name"
NO_SUCH_GROUP = "no_such_group"
GROUP_TOO_LARGE = "group_too_large"


# members: tuple, creator first, insertion order, no duplicates
Group = namedtuple("Group", ["name", "members", "creator", "created_at"])


# =====================================================
#   GROUP NAME VALIDATION
# =====================================================

GROUP_NAME_REGEX = re.compile(r"^[A-Za-z0-9_-]{1,32}$")


def is_valid_group_name(name: str) -> bool:
    """Letters, digits, underscore, dash. 1 to 32 chars."""
    if not isinstance(name, str):
        return False
    return bool(GROUP_NAME_REGEX.fullmatch(name))


def group_payload(group):
    return {"name": group.name, "members": list(group.members)}


# =====================================================
#   SOCIAL GRAPH
# =====================================================

class SocialGraph:
    """
    Owns every friend set and every group roster.

    A single lock guards all of it: a friendship is never visible from one
    side only, and a group never exists without its membership index.
    """

    def __init__(self, user_store=None):
        self._lock = threading.RLock()
        self._user_store = user_store
        self._friends = {}       # username -> set(username)
        self._memberships = {}   # username -> set(group name)
        self._groups = {}        # group name -> Group
        self._loaded = set()     # users whose own store record is merged

    # -----------------------------------------
    # Known users
    # -----------------------------------------

    def _add_user_locked(self, username):
        self._friends.setdefault(username, set())
        self._memberships.setdefault(username, set())

    def _link_locked(self, a, b):
        self._add_user_locked(a)
        self._add_user_locked(b)
        self._friends[a].add(b)
        self._friends[b].add(a)

    def load_user(self, username, friends=()):
        """
        Make `username` known, merging durable friends into memory.
        Both sides of every loaded friendship are linked.
        `friends` is the user's own store record, so it counts as loaded.
        """
        with self._lock:
            self._add_user_locked(username)
            self._loaded.add(username)
            for friend in friends:
                if friend and friend != username:
                    self._link_locked(username, friend)

    def _ensure_loaded_locked(self, username):
        """
        Merge `username`'s own store record once. A user linked only from a
        friend's record has a partial friend set until this runs.
        Returns True when a record exists.
        """
        if self._user_store is None or username in self._loaded:
            return False

        record = self._user_store.find_by_username(username)
        if record is None:
            return False

        self._loaded.add(username)
        self._add_user_locked(username)
        for friend in record.get("friends", []):
            if friend != username:
                self._link_locked(username, friend)
        return True

    def _is_known_locked(self, username):
        self._ensure_loaded_locked(username)
        return username in self._friends

    def is_known(self, username) -> bool:
        """Known = seen this process, or present in the durable store."""
        if not isinstance(username, str) or not username:
            return False
        with self._lock:
            return self._is_known_locked(username)

    # -----------------------------------------
    # Friends
    # -----------------------------------------

    def add_friend(self, requester, target):
        """
        Link `requester` and `target` as friends.
        The target must be a known user other than the requester.
        """
        with self._lock:
            if target == requester or not self.is_known(target):
                return {"error": NOT_FOUND}

            self._add_user_locked(requester)
            already = target in self._friends[requester]
            self._link_locked(requester, target)

        if not already and self._user_store is not None:
            try:
                self._user_store.persist_friend_update(requester, target)
            except Exception:
                log_exception("social", f"Failed persisting friendship {requester} <-> {target}")

        log_info("social", f"{requester} and {target} are friends (new={not already}).")
        return {"success": True, "created": not already}

    def friends_of(self, username):
        """Sorted friend list, or None for an unknown user."""
        with self._lock:
            self._ensure_loaded_locked(username)
            friends = self._friends.get(username)
            if friends is None:
                return None
            return sorted(friends)

    def common_friends(self, user_a, user_b):
        with self._lock:
            if not self.is_known(user_a) or not self.is_known(user_b):
                return {"error": NOT_FOUND}
            common = self._friends[user_a] & self._friends[user_b]
            return {"success": True, "friends": sorted(common)}

    # -----------------------------------------
    # Groups
    # -----------------------------------------

    def create_group(self, creator, name, member_names):
        """
        Register a group whose members are {creator} ∪ member_names.

        Errors:
            invalid_name      malformed group name
            invalid_member    some names are not known users (listed in "members")
            group_too_large   roster over MAX_GROUP_SIZE
            name_collision    group name already taken
        """
        if not is_valid_group_name(name):
            log_warning("social", f"Rejected invalid group name: {name!r}")
            return {"error": INVALID_NAME}

        if member_names is None:
            member_names = []
        if not isinstance(member_names, (list, tuple)):
            return {"error": INVALID_MEMBER, "members": []}

        bad = [m for m in member_names if not isinstance(m, str) or not m.strip()]
        if bad:
            return {"error": INVALID_MEMBER, "members": [str(m) for m in bad]}

        # creator first, then request order, de-duplicated
        members = tuple(dict.fromkeys([creator] + [m.strip() for m in member_names]))

        if len(members) > MAX_GROUP_SIZE:
            return {"error": GROUP_TOO_LARGE}

        with self._lock:
            unknown = [m for m in members if not self.is_known(m)]
            if unknown:
                log_warning("social", f"Group {name}: unknown members {unknown}")
                return {"error": INVALID_MEMBER, "members": unknown}

            if name in self._groups:
                return {"error": NAME_COLLISION}

            group = Group(name=name, members=members, creator=creator, created_at=time.time())
            self._groups[name] = group
            for member in members:
                self._memberships[member].add(name)

        log_info("social", f"Group created: {name} by {creator} ({len(members)} members)")
        return {"success": True, "group": group}

    def get_group(self, name):
        with self._lock:
            return self._groups.get(name)

    def groups_of(self, username):
        """Groups `username` belongs to, sorted by name."""
        with self._lock:
            names = sorted(self._memberships.get(username, ()))
            return [self._groups[n] for n in names]

    def group_count(self) -> int:
        with self._lock:
            return len(self._groups)

    def group_message(self, sender, group_name, text):
        """
        Check that `sender` may post to `group_name`.
        On success returns the group and the recipients (members but sender).
        """
        with self._lock:
            group = self._groups.get(group_name)
            if group is None:
                return {"error": NO_SUCH_GROUP}
            if sender not in group.members:
                return {"error": NOT_MEMBER}

        return {
            "success": True,
            "group": group,
            "recipients": [m for m in group.members if m != sender],
            "text": text,
        }

    # -----------------------------------------
    # Matchmaking support
    # -----------------------------------------

    def match_snapshot(self, group_name):
        """
        Roster plus a frozen copy of each member's friends, taken under one
        lock hold so a matchmaking pass sees a single consistent graph.
        """
        with self._lock:
            group = self._groups.get(group_name)
            if group is None:
                return None
            for member in group.members:
                self._ensure_loaded_locked(member)
            friends = {m: frozenset(self._friends.get(m, ())) for m in group.members}
            return group, friends
