# routes/users.py
from __future__ import annotations

from flask import Blueprint, request, jsonify, current_app

from db import db
from errors import ValidationError
from models.login_history import LoginHistory
from routes.auth import MOBILE_RE, _as_bool, _clean_email, _gate_or_user, _user_by_email, json_body, str_field
from services.account import request_language_change, verify_language_change
from services.subscriptions import check_subscription_expiry

users_bp = Blueprint("users", __name__)

# request key -> column; anything else in the body is ignored
EDITABLE_FIELDS = {
    "username": "username",
    "displayName": "display_name",
    "avatar": "avatar",
    "bio": "bio",
    "location": "location",
    "website": "website",
    "mobile": "mobile",
    "notificationEnabled": "notification_enabled",
}


@users_bp.route("/loggedinuser", methods=["GET"])
def logged_in_user():
    email = _clean_email(request.args.get("email"))
    if not email:
        raise ValidationError("Email required")

    user = _user_by_email(email)

    check_subscription_expiry(user)

    if _as_bool(request.args.get("isLogin")):
        return _gate_or_user(user)
    return jsonify(user.to_dict()), 200


@users_bp.route("/login-history", methods=["GET"])
def login_history():
    user_id = request.args.get("userId", type=int)
    if not user_id:
        raise ValidationError("UserId is required")

    rows = (
        LoginHistory.query.filter_by(user_id=user_id)
        .order_by(LoginHistory.login_time.desc(), LoginHistory.id.desc())
        .limit(current_app.config["LOGIN_HISTORY_LIMIT"])
        .all()
    )
    return jsonify([r.to_dict() for r in rows]), 200


@users_bp.route("/userupdate/<email>", methods=["PATCH"])
def update_user(email: str):
    data = json_body()
    user = _user_by_email(_clean_email(email), "User not found for update")

    updates = {}
    for key, column in EDITABLE_FIELDS.items():
        if key not in data:
            continue
        if column == "notification_enabled":
            updates[column] = _as_bool(data[key])
        elif column == "mobile":
            mobile = str_field(data, key, allow_number=True)
            if mobile and not MOBILE_RE.fullmatch(mobile):
                raise ValidationError("Invalid mobile number format")
            updates[column] = mobile or None
        else:
            updates[column] = str_field(data, key)

    for column, value in updates.items():
        setattr(user, column, value)

    db.session.commit()
    return jsonify(user.to_dict()), 200


# -------------------------------------------------------------------
# Language change (email OTP)
# -------------------------------------------------------------------
@users_bp.route("/request-language-change", methods=["POST"])
def request_language_change_route():
    data = json_body()
    email = _clean_email(data.get("email"))
    language = str_field(data, "language")
    if not email or not language:
        raise ValidationError("Email and language are required")

    request_language_change(email, language)
    return jsonify(message="OTP sent successfully to your registered email."), 200


@users_bp.route("/verify-language-change", methods=["POST"])
def verify_language_change_route():
    data = json_body()
    email = _clean_email(data.get("email"))
    code = str_field(data, "code", allow_number=True)
    if not email or not code:
        raise ValidationError("Email and code are required")

    user = verify_language_change(email, code)
    return jsonify(message="Language updated successfully", preferredLanguage=user.preferred_language), 200
