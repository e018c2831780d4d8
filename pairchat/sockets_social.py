# ============================================
#   PairChat — Social Socket.IO Handlers
#   login / friends / groups / matchmaking / disconnect
# ============================================

from flask import request
from flask_socketio import emit

from pairchat.users import is_valid_username, is_reserved_username
from pairchat.social import group_payload, NO_SUCH_GROUP, NOT_MEMBER
from pairchat.router import Router
from pairchat.matchmaker import run_match
from pairchat.config import MAX_MESSAGE_LENGTH
from pairchat.logger import log_info, log_warning, log_exception


def clean_text(text):
    """Stripped message text, or None when empty / not a string."""
    if not isinstance(text, str):
        return None
    text = text.strip()
    return text or None


def register_social_handlers(socketio, ctx):
    """
    Social events, all bound to the stores of `ctx` (a ChatContext):
    - login / disconnect   → session lifecycle
    - add_friend           → symmetric friendship
    - create_group         → fixed roster
    - group_message        → fan-out to the roster
    - random_match         → matchmaking pass
    - get_friends / get_groups → state resync for the client
    """
    router = Router(ctx.registry, socketio.emit)

    def _current_user():
        return ctx.registry.username_for(request.sid)

    # -----------------------------------------
    # ERRORS (never fatal for other sockets)
    # -----------------------------------------
    @socketio.on_error_default
    def on_error(e):
        log_exception("sockets_social", f"Unhandled error in handler (sid={request.sid}): {e}")

    # -----------------------------------------
    # CONNECT
    # -----------------------------------------
    @socketio.on("connect")
    def on_connect(auth=None):
        log_info("sockets_social", f"Client connected: sid={request.sid}")

    # -----------------------------------------
    # LOGIN
    # -----------------------------------------
    @socketio.on("login")
    def login(username=None):
        username = username.strip() if isinstance(username, str) else ""

        if not is_valid_username(username):
            emit("login_error", {"error": "invalid_username"})
            return

        if is_reserved_username(username):
            emit("login_error", {"error": "reserved_username"})
            return

        # Durable friends (registration itself happens upstream)
        friends = []
        if ctx.user_store is not None:
            try:
                record = ctx.user_store.find_by_username(username)
                if record is None:
                    record = ctx.user_store.create_user(username)
                friends = record.get("friends", []) if record else []
            except Exception:
                log_exception("sockets_social", f'Failed loading user "{username}" from store')

        ctx.graph.load_user(username, friends)

        previous_sid = ctx.registry.register(request.sid, username)
        if previous_sid:
            # last login wins: the old connection no longer routes
            router.deliver_to_connection(previous_sid, "force_disconnect", {"reason": "session_replaced"})
            log_warning("sockets_social", f'"{username}" logged in again; sid={previous_sid} replaced.')

        emit("login_success", username)
        emit("friend_list", ctx.graph.friends_of(username) or [])
        emit("group_list", [group_payload(g) for g in ctx.graph.groups_of(username)])

        log_info("sockets_social", f'User "{username}" logged in (sid={request.sid}).')

    # -----------------------------------------
    # DISCONNECT
    # -----------------------------------------
    @socketio.on("disconnect")
    def on_disconnect(reason=None):
        username = ctx.registry.unregister(request.sid)
        if not username:
            return
        log_info("sockets_social", f'User "{username}" disconnected (reason={reason}).')

    # -----------------------------------------
    # ADD FRIEND
    # -----------------------------------------
    @socketio.on("add_friend")
    def add_friend(friend_name=None):
        user = _current_user()
        if not user:
            return

        friend_name = friend_name.strip() if isinstance(friend_name, str) else ""

        resp = ctx.graph.add_friend(user, friend_name)
        if "error" in resp:
            emit("friend_not_found", friend_name)
            log_info("sockets_social", f'{user} -> add_friend "{friend_name}": not found.')
            return

        emit("friend_added", friend_name)
        router.deliver_to_user(friend_name, "friend_added", user)

    # -----------------------------------------
    # CREATE GROUP
    # -----------------------------------------
    @socketio.on("create_group")
    def create_group(group_name=None, members=None):
        user = _current_user()
        if not user:
            return

        group_name = group_name.strip() if isinstance(group_name, str) else ""

        resp = ctx.graph.create_group(user, group_name, members)
        if "error" in resp:
            detail = {"error": resp["error"]}
            if "members" in resp:
                detail["members"] = resp["members"]
            emit("group_create_error", group_name, detail)
            return

        group = resp["group"]
        router.deliver_to_group(group.members, "group_created", group.name, list(group.members))

    # -----------------------------------------
    # GROUP MESSAGE
    # -----------------------------------------
    @socketio.on("group_message")
    def group_message(group_name=None, text=None):
        user = _current_user()
        if not user:
            return

        if not isinstance(group_name, str):
            return

        text = clean_text(text)
        if text is None:
            return

        if len(text) > MAX_MESSAGE_LENGTH:
            emit("system_message", {"msg": f"Message too long ({len(text)} chars)."})
            return

        resp = ctx.graph.group_message(user, group_name, text)
        if "error" in resp:
            if resp["error"] == NO_SUCH_GROUP:
                emit("group_not_found", group_name)
            elif resp["error"] == NOT_MEMBER:
                # silent drop for non-members
                log_warning("sockets_social", f"{user} is not a member of {group_name}; message dropped.")
            return

        group = resp["group"]
        router.deliver_to_group(group.members, "group_message", group.name, user, text, exclude=user)

        log_info("sockets_social", f"Message in {group.name} from \"{user}\": {text[:80]!r}")

    # -----------------------------------------
    # RANDOM MATCH
    # -----------------------------------------
    @socketio.on("random_match")
    def random_match(group_name=None):
        user = _current_user()
        if not user:
            return

        if not isinstance(group_name, str):
            return

        resp = run_match(
            ctx.graph,
            router,
            group_name,
            rng=ctx.rng,
            online_only=ctx.match_online_only,
        )
        if "error" in resp:
            emit("group_not_found", group_name)
            return

        log_info("sockets_social", f"{user} ran random_match on {group_name} ({len(resp['units'])} units).")

    # -----------------------------------------
    # RESYNC
    # -----------------------------------------
    @socketio.on("get_friends")
    def get_friends(data=None):
        user = _current_user()
        if not user:
            return
        emit("friend_list", ctx.graph.friends_of(user) or [])

    @socketio.on("get_groups")
    def get_groups(data=None):
        user = _current_user()
        if not user:
            return
        emit("group_list", [group_payload(g) for g in ctx.graph.groups_of(user)])
