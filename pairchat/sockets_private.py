# ============================================
#     PairChat — Private Socket.IO Handlers
# ============================================

from flask import request
from flask_socketio import emit

from pairchat.users import is_valid_username
from pairchat.router import Router, OFFLINE
from pairchat.sockets_social import clean_text
from pairchat.config import MAX_MESSAGE_LENGTH
from pairchat.logger import log_info


def register_private_handlers(socketio, ctx):
    """
    Private events:
    - private_message → one recipient + self-echo to the sender

    No history, no queueing: an offline recipient simply misses it.
    """
    router = Router(ctx.registry, socketio.emit)

    @socketio.on("private_message")
    def private_message(to=None, text=None):
        user = ctx.registry.username_for(request.sid)
        if not user:
            return

        target = to.strip() if isinstance(to, str) else ""
        if not is_valid_username(target):
            emit("system_message", {"msg": "Invalid recipient."})
            return

        text = clean_text(text)
        if text is None:
            return

        if len(text) > MAX_MESSAGE_LENGTH:
            emit("system_message", {"msg": f"Private message too long ({len(text)} chars)."})
            return

        outcome = router.deliver_private(user, request.sid, target, text)

        log_info(
            "sockets_private",
            f"PM {user} -> {target} ({'offline' if outcome == OFFLINE else 'delivered'}): {text[:60]!r}"
        )
