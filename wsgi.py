# wsgi.py
import os

from app import create_app
from config import DevelopmentConfig, ProductionConfig
from realtime import socketio  # shared SocketIO instance

_CONFIGS = {"production": ProductionConfig, "development": DevelopmentConfig}

app = create_app(_CONFIGS.get(os.getenv("APP_ENV", "production"), ProductionConfig))

# Local dev only: `python wsgi.py`
if __name__ == "__main__":
    socketio.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "5000")))
