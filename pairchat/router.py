# ============================================
#     PairChat — Router (fan-out to live sids)
# ============================================

from pairchat.logger import log_warning, log_exception


# Delivery outcomes (not errors)
DELIVERED = "delivered"
OFFLINE = "offline"


class Router:
    """
    Delivers events to the live connections of usernames.

    Holds no state of its own: every delivery resolves through the registry
    at send time. `emit` is a Socket.IO style callable:
        emit(event, *args, to=sid)
    Offline recipients are dropped, never queued.
    """

    def __init__(self, registry, emit):
        self.registry = registry
        self._emit = emit

    def deliver_to_connection(self, sid, event, *args):
        """Emit straight to a sid. Returns DELIVERED or OFFLINE."""
        if not sid:
            return OFFLINE
        try:
            self._emit(event, *args, to=sid)
        except Exception:
            log_exception("router", f"Emit {event} to sid={sid} failed")
            return OFFLINE
        return DELIVERED

    def deliver_to_user(self, username, event, *args):
        sid = self.registry.resolve(username)
        if sid is None:
            return OFFLINE
        return self.deliver_to_connection(sid, event, *args)

    def deliver_to_group(self, members, event, *args, exclude=None):
        """
        Fan-out to every member except `exclude`.
        Returns {username: DELIVERED | OFFLINE}.
        """
        outcomes = {}
        for member in members:
            if member == exclude:
                continue
            outcomes[member] = self.deliver_to_user(member, event, *args)
        return outcomes

    def deliver_private(self, sender, sender_sid, target, text):
        """
        Peer gets private_message(sender, text, False); the sender's own
        connection gets the same message flagged as a self-echo.
        Returns the peer outcome.
        """
        outcome = OFFLINE
        if target != sender:
            outcome = self.deliver_to_user(target, "private_message", sender, text, False)
            if outcome == OFFLINE:
                log_warning("router", f"Private message {sender} -> {target} dropped (offline).")

        self.deliver_to_connection(sender_sid, "private_message", sender, text, True)
        return outcome
