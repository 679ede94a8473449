# services/account.py
"""Password reset and language-change flows."""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from flask import current_app

from db import db
from errors import DeliveryFailure, Expired, Forbidden, InvalidCode, NotFound, TooManyRequests, ValidationError
from models.user import User
from services import notify
from utils import clock
from utils.codes import code_matches, gen_alpha_password, gen_otp_code, hash_code, mask_email
from utils.mail import MailError

RESET_SENT_MESSAGE = "A new password has been sent to your registered email."
RESET_GENERIC_MESSAGE = "If an account exists, your reset instructions have been processed."


def find_by_email(email: Optional[str]) -> User:
    user = User.query.filter_by(email=(email or "").strip().lower()).first()
    if user is None:
        raise NotFound("User not found")
    return user


def _local_date(moment: datetime):
    tz = clock.get_tz(current_app.config["APP_TIMEZONE"])
    return clock.as_utc(moment).astimezone(tz).date()


def forgot_password(identity: str, *, now: Optional[datetime] = None) -> Optional[User]:
    """
    Email a fresh letters-only password. Allowed once per local calendar day.
    Returns None when nobody matches ``identity`` (email or mobile).
    The new hash is stored only after the email went out.
    """
    now = now or clock.now_utc()
    ident = identity.strip().lower()
    user = User.query.filter((User.email == ident) | (User.mobile == ident)).first()
    if user is None:
        return None

    if user.last_reset_at and _local_date(user.last_reset_at) == _local_date(now):
        raise Forbidden("You can use this option only one time per day.")

    new_password = gen_alpha_password(current_app.config["RESET_PASSWORD_LENGTH"])
    try:
        notify.send_password_reset(user.email, new_password)
    except MailError:
        current_app.logger.exception("[reset] email to %s failed", mask_email(user.email))
        raise DeliveryFailure("Failed to send reset email. Please try again later.")

    user.set_password(new_password)
    user.last_reset_at = clock.to_db(now)
    db.session.commit()
    current_app.logger.info("[reset] password reset for uid=%s", user.id)
    return user


def request_language_change(email: str, language: str, *, now: Optional[datetime] = None) -> None:
    now = now or clock.now_utc()
    cfg = current_app.config
    user = find_by_email(email)

    if not user.mobile:
        raise Forbidden("Mobile number is required. Please complete your profile first.")

    ttl = timedelta(minutes=cfg["LANGUAGE_OTP_TTL_MINUTES"])
    if user.language_otp_expires_at is not None:
        issued_at = clock.as_utc(user.language_otp_expires_at) - ttl
        if (now - issued_at).total_seconds() < cfg["LANGUAGE_OTP_COOLDOWN_SEC"]:
            raise TooManyRequests("Please wait a minute before requesting another OTP.")

    code = gen_otp_code()
    user.pending_language = language
    user.language_otp_hash = hash_code(code)
    user.language_otp_expires_at = clock.to_db(now + ttl)
    db.session.commit()

    try:
        notify.send_language_otp(user.email, code, ttl_minutes=cfg["LANGUAGE_OTP_TTL_MINUTES"])
    except MailError:
        current_app.logger.exception("[language] email to %s failed", mask_email(user.email))
        # an undelivered code must not hold the resend cooldown
        user.pending_language = None
        user.language_otp_hash = None
        user.language_otp_expires_at = None
        db.session.commit()
        raise DeliveryFailure("Failed to send verification code via email. Please try again.")


def verify_language_change(email: str, code: str, *, now: Optional[datetime] = None) -> User:
    now = now or clock.now_utc()
    user = find_by_email(email)

    if not user.language_otp_hash or not user.pending_language:
        raise ValidationError("No pending language change found")
    if now > clock.as_utc(user.language_otp_expires_at):
        raise Expired("OTP has expired")
    if not code_matches(user.language_otp_hash, code):
        raise InvalidCode()

    user.preferred_language = user.pending_language
    user.pending_language = None
    user.language_otp_hash = None
    user.language_otp_expires_at = None
    db.session.commit()
    return user
