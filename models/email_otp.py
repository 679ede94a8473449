# models/email_otp.py
from db import db
from sqlalchemy.sql import func


class EmailOtp(db.Model):
    """Audio-upload verification code. One row per email; consumed on upload."""
    __tablename__ = "email_otps"

    id         = db.Column(db.Integer, primary_key=True, autoincrement=True)
    email      = db.Column(db.String(254), nullable=False, index=True)
    code_hash  = db.Column(db.String(64), nullable=False)      # sha256 hex string
    verified   = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, server_default=func.now(), index=True)
