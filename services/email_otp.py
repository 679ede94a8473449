# services/email_otp.py
"""Email OTP that unlocks a single audio-tweet upload."""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from flask import current_app
from sqlalchemy import delete

from db import db
from models.email_otp import EmailOtp
from services import notify
from utils import clock
from utils.codes import code_matches, gen_otp_code, hash_code, mask_email
from utils.mail import MailError

__all__ = ["request_email_otp", "verify_email_otp", "has_verified_otp", "consume_email_otp", "purge_expired_email_otps"]


def _ttl() -> timedelta:
    return timedelta(minutes=current_app.config["EMAIL_OTP_TTL_MINUTES"])


def _live(email: str, now: datetime) -> Optional[EmailOtp]:
    row = EmailOtp.query.filter_by(email=email).order_by(EmailOtp.id.desc()).first()
    if row is None or now > clock.as_utc(row.created_at) + _ttl():
        return None
    return row


def request_email_otp(email: str, *, now: Optional[datetime] = None) -> bool:
    """
    Replace any code for ``email`` and mail a new one.
    Returns False when the email could not be sent; the code is kept either way.
    """
    now = now or clock.now_utc()
    code = gen_otp_code()
    db.session.execute(delete(EmailOtp).where(EmailOtp.email == email))
    db.session.add(EmailOtp(email=email, code_hash=hash_code(code), created_at=clock.to_db(now)))
    db.session.commit()

    try:
        notify.send_audio_otp(email, code, ttl_minutes=current_app.config["EMAIL_OTP_TTL_MINUTES"])
    except MailError:
        current_app.logger.exception("[audio-otp] email to %s failed", mask_email(email))
        return False
    return True


def verify_email_otp(email: str, code: str, *, now: Optional[datetime] = None) -> bool:
    now = now or clock.now_utc()
    row = _live(email, now)
    if row is None or not code_matches(row.code_hash, code):
        return False
    row.verified = True
    db.session.commit()
    return True


def has_verified_otp(email: str, *, now: Optional[datetime] = None) -> bool:
    row = _live(email, now or clock.now_utc())
    return bool(row and row.verified)


def consume_email_otp(email: str) -> None:
    db.session.execute(delete(EmailOtp).where(EmailOtp.email == email))
    db.session.commit()


def purge_expired_email_otps(*, now: datetime) -> int:
    cutoff = clock.to_db(now - _ttl())
    res = db.session.execute(delete(EmailOtp).where(EmailOtp.created_at < cutoff))
    db.session.commit()
    return res.rowcount or 0
