# routes/payments.py
from __future__ import annotations

from flask import Blueprint, jsonify

from errors import ValidationError
from routes.auth import _clean_email, _user_by_email, json_body, str_field
from services.payments import verify_payment

payments_bp = Blueprint("payments", __name__)


@payments_bp.route("/verify-payment", methods=["POST"])
def verify_payment_route():
    data = json_body()
    session_id = str_field(data, "session_id")
    plan_name = str_field(data, "planName")
    email = _clean_email(data.get("email"))
    if not session_id:
        raise ValidationError("Session ID is required.")
    if not email:
        raise ValidationError("Email is required")

    user = _user_by_email(email)
    invoice = verify_payment(user, session_id, plan_name)
    return jsonify(
        message="Subscription updated successfully",
        invoiceNumber=invoice["invoiceNumber"],
        user=user.to_dict(),
    ), 200
