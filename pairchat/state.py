# ============================================
#     PairChat — Runtime State
# ============================================
#
# All live state sits in explicit store objects bundled in a ChatContext,
# which is handed to the socket handler registration. Nothing here is
# module-global: tests build as many independent contexts as they need.
#
#   registry    sid <-> username (ConnectionRegistry)
#   graph       friends + groups (SocialGraph)
#   user_store  durable users (UserStore) or None for memory only
#   rng         random.Random used by the matchmaker

import random

from pairchat.config import (
    USERS_FILE,
    PERSIST_USERS,
    MATCH_SEED,
    MATCH_ONLINE_ONLY,
)
from pairchat.users import ConnectionRegistry
from pairchat.social import SocialGraph
from pairchat.storage import UserStore


class ChatContext:

    def __init__(self, user_store=None, rng=None, match_online_only=False):
        self.user_store = user_store
        self.registry = ConnectionRegistry()
        self.graph = SocialGraph(user_store=user_store)
        self.rng = rng or random.Random()
        self.match_online_only = match_online_only


def create_context():
    """Context wired from config (used by app.py)."""
    user_store = UserStore(USERS_FILE) if PERSIST_USERS else None
    rng = random.Random(MATCH_SEED) if MATCH_SEED is not None else random.Random()
    return ChatContext(
        user_store=user_store,
        rng=rng,
        match_online_only=MATCH_ONLINE_ONLY,
    )
