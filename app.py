# backend/app.py
from __future__ import annotations

import os

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix
from flask_cors import CORS

from config import Config
from db import db, migrate
from realtime import socketio

# Ensure models are imported so Flask-Migrate sees them
from models.user import User
from models.login_history import LoginHistory
from models.login_challenge import LoginChallenge
from models.email_otp import EmailOtp
from models.tweet import Tweet

# Blueprints
from routes.auth import auth_bp
from routes.users import users_bp
from routes.tweets import tweets_bp
from routes.audio import audio_bp
from routes.payments import payments_bp

# Background tasks / CLI
from tasks.purge_otps import purge_expired_otps


def create_app(config_object: type[Config] | str = Config) -> Flask:
    app = Flask(__name__)

    # Respect reverse proxy headers (client IP / scheme / host)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)  # type: ignore[arg-type]

    # Load config + init extensions
    app.config.from_object(config_object)
    CORS(app, resources={r"/*": {"origins": app.config["CORS_ORIGINS"]}})
    db.init_app(app)
    migrate.init_app(app, db)
    socketio.init_app(app, cors_allowed_origins=app.config["CORS_ORIGINS"])

    with app.app_context():
        # Touch models so Alembic/Flask-Migrate registers them
        _ = (User, LoginHistory, LoginChallenge, EmailOtp, Tweet)

    # Health check
    @app.route("/")
    def health_check():
        return "Twiller backend is running successfully", 200

    @app.errorhandler(404)
    def handle_404(e):
        return jsonify(error="Not Found", path=request.path), 404

    # Global error handler
    @app.errorhandler(Exception)
    def handle_any_error(e: Exception):
        if isinstance(e, HTTPException):
            return jsonify(error=e.description), e.code
        app.logger.exception("[app] unhandled error on %s %s", request.method, request.path)
        return jsonify(error=str(e)), 500

    # Register blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(tweets_bp)
    app.register_blueprint(audio_bp)
    app.register_blueprint(payments_bp)

    # CLI: drop expired OTPs (mirrors a TTL index)
    @app.cli.command("purge-otps")
    def purge_otps_cmd():
        counts = purge_expired_otps()
        print(f"Purged {counts['login_challenges']} login challenge(s), {counts['email_otps']} email OTP(s).")

    return app


# Optional local entrypoint (useful for quick dev runs)
if __name__ == "__main__":
    app = create_app()
    # Socket.IO server (falls back to Werkzeug in dev)
    socketio.run(
        app,
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "5000")),
        allow_unsafe_werkzeug=True,  # dev convenience
        debug=bool(os.environ.get("FLASK_DEBUG", "")),
    )
