# utils/mail.py
import logging
import smtplib
import ssl
import socket
from email.message import EmailMessage
from typing import Optional

from flask import current_app

from utils.codes import mask_email

__all__ = ["send_email", "MailError"]

log = logging.getLogger(__name__)

_PORT_PLAN = [("STARTTLS", 587), ("STARTTLS", 2525), ("SSL", 465)]


class MailError(RuntimeError):
    """Raised when no SMTP attempt succeeded (or mail is not configured)."""


def send_email(*, to: str, subject: str, html: str = "", text: str = "") -> None:
    """
    Sends an email via the Brevo SMTP relay.
    Required config (env): BREVO_LOGIN, BREVO_PASSWORD, MAIL_FROM.
    Optional: BREVO_HOST (default: smtp-relay.brevo.com)
    """
    cfg = current_app.config
    host      = cfg.get("BREVO_HOST") or "smtp-relay.brevo.com"
    login     = cfg.get("BREVO_LOGIN")
    password  = cfg.get("BREVO_PASSWORD")
    mail_from = cfg.get("MAIL_FROM")

    if not login:
        raise MailError("BREVO_LOGIN is not set.")
    if not password:
        raise MailError("BREVO_PASSWORD is not set.")
    if not mail_from:
        raise MailError("MAIL_FROM is not set.")

    msg = EmailMessage()
    msg["From"] = mail_from
    msg["To"] = to
    msg["Subject"] = subject
    msg.set_content(text or "")
    if html:
        msg.add_alternative(html, subtype="html")

    last_err: Optional[Exception] = None

    for mode, port in _PORT_PLAN:
        try:
            ctx = ssl.create_default_context()
            if mode == "SSL":
                with smtplib.SMTP_SSL(host, port, context=ctx, timeout=20) as s:
                    s.login(login, password)
                    s.send_message(msg)
            else:
                with smtplib.SMTP(host, port, timeout=20) as s:
                    s.ehlo()
                    s.starttls(context=ctx)
                    s.ehlo()
                    s.login(login, password)
                    s.send_message(msg)

            log.info("[mail] sent via %s:%s to %s", host, port, mask_email(to))
            return
        except (smtplib.SMTPException, OSError, socket.error) as e:
            last_err = e
            log.warning("[mail] attempt %s %s:%s failed: %r", mode, host, port, e)

    raise MailError(f"All SMTP attempts failed; last error: {last_err!r}")
