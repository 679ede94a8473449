# backend/realtime.py
from flask_socketio import SocketIO, emit

# one shared instance for the whole app
socketio = SocketIO(cors_allowed_origins="*", ping_interval=25, ping_timeout=20)


@socketio.on("connect")
def on_connect(auth=None):
    emit("connected", {"ok": True})


@socketio.on("disconnect")
def on_disconnect(*_):
    pass


def emit_new_tweet(payload: dict) -> None:
    """Broadcast a freshly created tweet to every connected client."""
    socketio.emit("new-tweet", payload)
