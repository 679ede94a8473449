# services/notify.py
"""Outgoing transactional emails (OTP codes, password resets, invoices)."""
from utils import mail

_WRAP = """
  <div style="font-family:system-ui,Segoe UI,Roboto,Arial;max-width:600px;margin:0 auto">
    <h2 style="color:#1DA1F2">{title}</h2>
    {body}
    <p style="font-size:12px;color:#8899a6">If you didn't request this, please ignore this email.</p>
  </div>
"""

_CODE_BLOCK = '<div style="font-size:28px;font-weight:700;letter-spacing:6px">{code}</div>'


def _send_code(to: str, *, subject: str, title: str, intro: str, code: str, ttl_minutes: int) -> None:
    body = (
        f"<p>{intro}</p>"
        + _CODE_BLOCK.format(code=code)
        + f"<p>This code expires in {ttl_minutes} minutes and can be used once.</p>"
    )
    mail.send_email(
        to=to,
        subject=subject,
        html=_WRAP.format(title=title, body=body),
        text=f"Your Twiller code is {code}. It expires in {ttl_minutes} minutes.",
    )


def send_login_otp(to: str, code: str, *, ttl_minutes: int) -> None:
    _send_code(
        to,
        subject="Your Twiller login code",
        title="Verify your sign-in",
        intro="Use this code to finish signing in to Twiller.",
        code=code,
        ttl_minutes=ttl_minutes,
    )


def send_audio_otp(to: str, code: str, *, ttl_minutes: int) -> None:
    _send_code(
        to,
        subject="Your Twiller Audio Verification Code",
        title="Audio Tweet Verification",
        intro="Verify your identity to post audio tweets on Twiller.",
        code=code,
        ttl_minutes=ttl_minutes,
    )


def send_language_otp(to: str, code: str, *, ttl_minutes: int) -> None:
    _send_code(
        to,
        subject="Confirm your Twiller language change",
        title="Language change",
        intro="Use this code to confirm your new display language.",
        code=code,
        ttl_minutes=ttl_minutes,
    )


def send_password_reset(to: str, new_password: str) -> None:
    body = (
        "<p>Your password has been reset. Your new password is:</p>"
        + _CODE_BLOCK.format(code=new_password)
        + "<p>Please sign in and change it from your profile.</p>"
    )
    mail.send_email(
        to=to,
        subject="Your new Twiller password",
        html=_WRAP.format(title="Password reset", body=body),
        text=f"Your new Twiller password is {new_password}",
    )


_INVOICE_ROW = (
    '<tr><td style="padding:8px 0;color:#657786">{label}</td>'
    '<td style="padding:8px 0;text-align:right;font-weight:700">{value}</td></tr>'
)


def send_invoice(to: str, invoice: dict) -> None:
    """``invoice`` holds display-ready values (dates already formatted)."""
    rows = [
        ("Plan", invoice["planName"]),
        ("Amount", f"₹{invoice['amount']}"),
        ("Invoice number", invoice["invoiceNumber"]),
        ("Payment date", invoice["paymentDate"]),
        ("Valid until", invoice["expiryDate"]),
    ]
    body = (
        "<p>Thanks for subscribing to Twiller.</p><table style=\"width:100%\">"
        + "".join(_INVOICE_ROW.format(label=label, value=value) for label, value in rows)
        + "</table>"
        + f"<p>Your tweet limit has been updated to <strong>{invoice['tweetLimit']}</strong>.</p>"
    )
    mail.send_email(
        to=to,
        subject=f"Your Twiller Invoice - {invoice['invoiceNumber']}",
        html=_WRAP.format(title="Payment received", body=body),
        text=(
            f"Invoice {invoice['invoiceNumber']}: Twiller {invoice['planName']} plan, "
            f"INR {invoice['amount']}, valid until {invoice['expiryDate']}. "
            f"Tweet limit: {invoice['tweetLimit']}."
        ),
    )
