# models/login_challenge.py
from db import db
from sqlalchemy.sql import func


class LoginChallenge(db.Model):
    """Pending login OTP. Keyed by user: at most one open challenge each."""
    __tablename__ = "login_challenges"

    user_id    = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    code_hash  = db.Column(db.String(64), nullable=False)      # sha256 hex string
    expires_at = db.Column(db.DateTime, nullable=False, index=True)
    created_at = db.Column(db.DateTime, server_default=func.now(), nullable=False)
