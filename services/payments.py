# services/payments.py
"""
Plan activation after checkout.

Creating the checkout itself happens in the payment provider's own flow. This
side only asks a configured verifier whether a checkout session was paid,
then switches the plan and emails the invoice. Activation is limited to the
``PAYMENT_WINDOW`` of the day.
"""
from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from flask import current_app
from werkzeug.utils import import_string

from errors import Forbidden, ServiceUnavailable, ValidationError
from models.user import User
from services import notify
from services.subscriptions import activate_plan, paid_plan
from utils import clock
from utils.codes import mask_email
from utils.mail import MailError
from utils.time_window import TimeWindow

__all__ = ["payment_window", "ensure_payment_window", "is_session_paid", "verify_payment"]

SessionVerifier = Callable[[str], bool]


def payment_window() -> Optional[TimeWindow]:
    cfg = current_app.config
    return TimeWindow.parse(cfg.get("PAYMENT_WINDOW"), clock.get_tz(cfg["APP_TIMEZONE"]))


def ensure_payment_window(now: datetime) -> None:
    window = payment_window()
    if window is not None and not window.contains(now):
        raise Forbidden(f"Payments are allowed only between {window.describe(now, joiner='and')}.")


def _verifier() -> SessionVerifier:
    verifier = current_app.config.get("PAYMENT_VERIFIER")
    if not verifier:
        raise ServiceUnavailable("Payment verification is not configured.")
    if isinstance(verifier, str):
        verifier = import_string(verifier)
    return verifier


def is_session_paid(session_id: str) -> bool:
    return bool(_verifier()(session_id))


def _display_date(moment: datetime) -> str:
    tz = clock.get_tz(current_app.config["APP_TIMEZONE"])
    return clock.as_utc(moment).astimezone(tz).strftime("%d %b %Y")


def verify_payment(user: User, session_id: str, plan_name: str, *, now: Optional[datetime] = None) -> dict:
    """Activate ``plan_name`` for ``user`` once the checkout session is confirmed paid."""
    now = now or clock.now_utc()
    ensure_payment_window(now)
    paid_plan(plan_name)

    if not is_session_paid(session_id):
        raise ValidationError("Payment not successful.")

    invoice = activate_plan(user, plan_name, now=now)
    invoice = dict(
        invoice,
        paymentDate=_display_date(invoice["paymentDate"]),
        expiryDate=_display_date(invoice["expiryDate"]),
    )
    try:
        notify.send_invoice(user.email, invoice)
    except MailError:
        # plan stays active without the invoice email
        current_app.logger.exception("[plans] invoice email to %s failed", mask_email(user.email))
    return invoice
