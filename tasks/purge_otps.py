# tasks/purge_otps.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from services.challenges import purge_expired_challenges
from services.email_otp import purge_expired_email_otps
from utils import clock


def purge_expired_otps(now: Optional[datetime] = None) -> dict:
    """Drop login challenges and audio OTPs past their lifetime."""
    now = now or clock.now_utc()
    return {
        "login_challenges": purge_expired_challenges(now=now),
        "email_otps": purge_expired_email_otps(now=now),
    }
