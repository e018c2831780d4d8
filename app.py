# ============================================
#     PairChat — Main Application
#     Presence + friends + groups + matchmaking
# ============================================

# -------------------------------------------------
#   EVENTLET PATCH (REQUIRED FOR GUNICORN)
# -------------------------------------------------
import eventlet
eventlet.monkey_patch()

from flask import Flask, jsonify
from flask_socketio import SocketIO

# -----------------------------------------
#   ENV VARIABLES (.env)
# -----------------------------------------
from dotenv import load_dotenv
load_dotenv()

from pairchat.config import PORT, CORS_ALLOWED_ORIGINS
from pairchat.bootstrap import init_runtime, status_payload
from pairchat.logger import log_info, log_exception

# =========================================
#   FLASK + SOCKET.IO
# =========================================
app = Flask(__name__)
socketio = SocketIO(
    app,
    cors_allowed_origins="*" if "*" in CORS_ALLOWED_ORIGINS else CORS_ALLOWED_ORIGINS,
)

# =========================================
#   RUNTIME STATE + HANDLERS
# =========================================
ctx = init_runtime(socketio)


# =========================================
#   STATUS ROUTE
# =========================================
@app.route("/")
def index():
    try:
        return jsonify(status_payload(ctx))
    except Exception as e:
        log_exception("app", f"Error rendering index route: {e}")
        return jsonify({"status": "error"}), 500


# =========================================
#   RUN SERVER (DEV / PROD)
# =========================================
if __name__ == "__main__":
    log_info("app", f"Server starting on port {PORT}...")
    socketio.run(app, host="0.0.0.0", port=PORT)
