# services/challenges.py
"""
Login OTP challenge store.

One row per user in ``login_challenges``. Issuing replaces whatever was
pending; verifying deletes the row only if it still holds the hash that was
compared, so two concurrent verifications cannot both succeed.
"""
from __future__ import annotations

from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy import delete

from db import db
from errors import Expired, InvalidCode, NoPendingChallenge
from models.login_challenge import LoginChallenge
from utils.clock import as_utc, to_db
from utils.codes import code_matches, gen_otp_code, hash_code

__all__ = ["issue_challenge", "consume_challenge", "purge_expired_challenges"]


def issue_challenge(user_id: int, *, now: datetime) -> str:
    """Store a fresh code for ``user_id`` and return it in clear text. Commits."""
    code = gen_otp_code()
    ttl = timedelta(minutes=current_app.config["LOGIN_OTP_TTL_MINUTES"])

    row = db.session.get(LoginChallenge, user_id)
    if row is None:
        row = LoginChallenge(user_id=user_id)
        db.session.add(row)
    row.code_hash = hash_code(code)
    row.created_at = to_db(now)
    row.expires_at = to_db(now + ttl)
    db.session.commit()
    return code


def consume_challenge(user_id: int, code: str, *, now: datetime) -> None:
    """
    Check ``code`` against the pending challenge and delete it on success.
    Does not commit; the caller commits together with the login record.
    """
    row = db.session.get(LoginChallenge, user_id)
    if row is None:
        raise NoPendingChallenge()
    if now > as_utc(row.expires_at):
        raise Expired("OTP has expired. Please login again.")
    if not code_matches(row.code_hash, code):
        raise InvalidCode()

    res = db.session.execute(
        delete(LoginChallenge)
        .where(LoginChallenge.user_id == user_id, LoginChallenge.code_hash == row.code_hash)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        # Someone else consumed or replaced it between our read and delete
        db.session.rollback()
        raise NoPendingChallenge()
    db.session.expunge(row)


def purge_expired_challenges(*, now: datetime) -> int:
    res = db.session.execute(
        delete(LoginChallenge)
        .where(LoginChallenge.expires_at < to_db(now))
        .execution_options(synchronize_session=False)
    )
    db.session.commit()
    return res.rowcount or 0