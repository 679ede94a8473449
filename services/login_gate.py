# services/login_gate.py
"""
Login security gate.

Runs after the password (or an equivalent identity check) has succeeded and
decides what happens next:

* mobile devices outside the mobile login window are refused (403);
* Edge browsers are admitted straight away and a login-history row is written;
* every other browser gets a 6-digit email OTP and must call
  ``/verify-login-otp`` to finish; history is written only then.

The mobile-window check and the browser check are independent, so a phone
running Edge is still subject to the window.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from flask import current_app

from db import db
from errors import DeliveryFailure, Forbidden
from models.login_history import LoginHistory
from models.user import User
from services import notify
from services.challenges import consume_challenge, issue_challenge
from utils import clock
from utils.codes import mask_email
from utils.mail import MailError
from utils.time_window import TimeWindow
from utils.user_agent import ClientInfo

__all__ = [
    "Disposition",
    "GateResult",
    "decide",
    "mobile_login_window",
    "record_login",
    "check_login_security",
    "verify_login_otp",
]

OTP_SENT_MESSAGE = "OTP sent to your registered email. Please verify to complete login."


class Disposition(enum.Enum):
    RESTRICTED = "restricted"
    ADMIT = "admit"
    CHALLENGE = "challenge"


@dataclass
class GateResult:
    disposition: Disposition
    challenge: dict[str, Any] = field(default_factory=dict)

    @property
    def otp_required(self) -> bool:
        return self.disposition is Disposition.CHALLENGE


def mobile_login_window() -> Optional[TimeWindow]:
    cfg = current_app.config
    return TimeWindow.parse(cfg.get("MOBILE_LOGIN_WINDOW"), clock.get_tz(cfg["APP_TIMEZONE"]))


def decide(client: ClientInfo, now: datetime, window: Optional[TimeWindow]) -> Disposition:
    """Pure decision; no I/O."""
    if client.is_mobile and window is not None and not window.contains(now):
        return Disposition.RESTRICTED
    if client.is_edge:
        return Disposition.ADMIT
    return Disposition.CHALLENGE


def record_login(user: User, client: ClientInfo, *, now: datetime) -> LoginHistory:
    """Add (not commit) one login-history row."""
    row = LoginHistory(
        user_id=user.id,
        browser=client.browser,
        os=client.os,
        device=client.device.value,
        ip=client.ip,
        login_time=clock.to_db(now),
    )
    db.session.add(row)
    return row


def check_login_security(user: User, client: ClientInfo, *, now: Optional[datetime] = None) -> GateResult:
    now = now or clock.now_utc()
    window = mobile_login_window()
    disposition = decide(client, now, window)

    if disposition is Disposition.RESTRICTED:
        current_app.logger.info(
            "[gate] uid=%s refused: mobile login at %s outside window",
            user.id, window.local_time(now).strftime("%H:%M"),
        )
        raise Forbidden(f"Login is restricted to {window.describe(now)} on mobile devices.")

    if disposition is Disposition.ADMIT:
        record_login(user, client, now=now)
        db.session.commit()
        current_app.logger.info("[gate] uid=%s admitted (%s/%s/%s)", user.id, client.browser, client.os, client.device.value)
        return GateResult(disposition)

    code = issue_challenge(user.id, now=now)
    try:
        notify.send_login_otp(user.email, code, ttl_minutes=current_app.config["LOGIN_OTP_TTL_MINUTES"])
    except MailError:
        # The challenge stays stored; the client has to start over.
        current_app.logger.exception("[gate] failed to email login OTP to %s", mask_email(user.email))
        raise DeliveryFailure()

    current_app.logger.info("[gate] uid=%s login OTP issued (%s)", user.id, client.browser)
    return GateResult(
        disposition,
        challenge={
            "otpRequired": True,
            "userId": user.id,
            "email": user.email,
            "message": OTP_SENT_MESSAGE,
        },
    )


def verify_login_otp(user: User, code: str, client: ClientInfo, *, now: Optional[datetime] = None) -> User:
    """
    Finish a challenged login. History captures *this* request's client,
    which may differ from the one that started the login.
    """
    now = now or clock.now_utc()
    consume_challenge(user.id, code, now=now)
    record_login(user, client, now=now)
    db.session.commit()
    current_app.logger.info("[gate] uid=%s login OTP verified", user.id)
    return user
