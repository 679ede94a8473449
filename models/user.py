# models/user.py
from __future__ import annotations

from typing import Any

from db import db
from sqlalchemy.sql import func
from werkzeug.security import generate_password_hash, check_password_hash


def _iso(dt) -> str | None:
    return dt.isoformat() + "Z" if dt is not None else None


class User(db.Model):
    __tablename__ = "users"

    id               = db.Column(db.Integer, primary_key=True, autoincrement=True)
    username         = db.Column(db.String(80), nullable=False, index=True)
    display_name     = db.Column(db.String(120), nullable=False)
    avatar           = db.Column(db.String(512), nullable=False, default="")
    email            = db.Column(db.String(254), nullable=False, unique=True, index=True)
    mobile           = db.Column(db.String(15), nullable=True, index=True)
    password_hash    = db.Column(db.String(255), nullable=True)   # NULL for social-only accounts

    bio              = db.Column(db.String(280), nullable=False, default="")
    location         = db.Column(db.String(120), nullable=False, default="")
    website          = db.Column(db.String(255), nullable=False, default="")
    joined_at        = db.Column(db.DateTime, server_default=func.now(), nullable=False)
    notification_enabled = db.Column(db.Boolean, nullable=False, default=False)

    last_reset_at    = db.Column(db.DateTime, nullable=True)       # forgot-password, once per day

    subscription_plan       = db.Column(db.String(16), nullable=False, default="Free")
    subscription_started_at = db.Column(db.DateTime, nullable=True)
    subscription_expires_at = db.Column(db.DateTime, nullable=True)
    tweet_count             = db.Column(db.Integer, nullable=False, default=0)

    preferred_language      = db.Column(db.String(8), nullable=False, default="en")
    pending_language        = db.Column(db.String(8), nullable=True)
    language_otp_hash       = db.Column(db.String(64), nullable=True)
    language_otp_expires_at = db.Column(db.DateTime, nullable=True)

    # ── Helpers ─────────────────────────────────────────────────────────────
    def set_password(self, raw: str) -> None:
        self.password_hash = generate_password_hash(raw)

    def check_password(self, raw: str) -> bool:
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, raw or "")

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    def to_dict(self) -> dict[str, Any]:
        """Public shape of a user. Never includes hashes."""
        return {
            "id": self.id,
            "username": self.username,
            "displayName": self.display_name,
            "avatar": self.avatar,
            "email": self.email,
            "mobile": self.mobile,
            "bio": self.bio,
            "location": self.location,
            "website": self.website,
            "joinedDate": _iso(self.joined_at),
            "notificationEnabled": bool(self.notification_enabled),
            "subscriptionPlan": self.subscription_plan,
            "subscriptionStartDate": _iso(self.subscription_started_at),
            "subscriptionExpiryDate": _iso(self.subscription_expires_at),
            "tweetCount": self.tweet_count or 0,
            "preferredLanguage": self.preferred_language,
        }
