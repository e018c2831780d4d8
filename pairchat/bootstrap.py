# ============================================
#     PairChat — Startup
#     context + handler registration + status
# ============================================

from pairchat.state import create_context
from pairchat.sockets_social import register_social_handlers
from pairchat.sockets_private import register_private_handlers
from pairchat.logger import log_info, log_error


# =========================================
#   RUNTIME STATE + SOCKET.IO HANDLERS
# =========================================

def init_runtime(socketio, ctx=None):
    """
    Build the ChatContext (unless given) and bind every handler to it.

    Each step is logged; a failing step is logged and re-raised, since a
    server without its stores or handlers cannot serve anything.
    """
    if ctx is None:
        try:
            ctx = create_context()
            log_info("app", "Runtime context ready.")
        except Exception as e:
            log_error("app", f"Fatal error creating runtime context: {e}")
            raise

    try:
        register_social_handlers(socketio, ctx)
        register_private_handlers(socketio, ctx)
        log_info("app", "Socket handlers registered successfully.")
    except Exception as e:
        log_error("app", f"Error registering socket handlers: {e}")
        raise

    return ctx


# =========================================
#   STATUS (GET /)
# =========================================

def status_payload(ctx):
    """Live counters; `users` is None when users are memory only."""
    users = None
    if ctx.user_store is not None:
        users = len(ctx.user_store.all_usernames())

    return {
        "status": "ok",
        "online": ctx.registry.count(),
        "groups": ctx.graph.group_count(),
        "users": users,
    }
