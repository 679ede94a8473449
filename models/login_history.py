# models/login_history.py
from db import db
from sqlalchemy.sql import func


class LoginHistory(db.Model):
    __tablename__ = "login_history"

    id         = db.Column(db.Integer, primary_key=True)
    user_id    = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    browser    = db.Column(db.String(64), nullable=False)
    os         = db.Column(db.String(64), nullable=False)
    device     = db.Column(db.String(16), nullable=False)     # mobile | desktop | unknown
    ip         = db.Column(db.String(64), nullable=False)
    login_time = db.Column(db.DateTime, server_default=func.now(), nullable=False, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "browser": self.browser,
            "os": self.os,
            "device": self.device,
            "ip": self.ip,
            "loginTime": self.login_time.isoformat() + "Z" if self.login_time else None,
        }
