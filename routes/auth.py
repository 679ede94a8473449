# routes/auth.py
from __future__ import annotations

import re

from flask import Blueprint, request, jsonify, current_app

from db import db
from errors import NotFound, Unauthorized, ValidationError
from models.user import User
from services.account import RESET_GENERIC_MESSAGE, RESET_SENT_MESSAGE, forgot_password
from services.login_gate import check_login_security, verify_login_otp
from utils.user_agent import client_info_from_request

__all__ = ["auth_bp"]
auth_bp = Blueprint("auth", __name__)

MOBILE_RE = re.compile(r"[0-9]{10,15}")


def _as_bool(x, default=False) -> bool:
    if x is None:
        return default
    if isinstance(x, bool):
        return x
    return str(x).strip().lower() in {"1", "true", "yes", "on"}


def json_body() -> dict:
    """Request JSON as a dict; a missing or unparsable body counts as empty."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def str_field(data: dict, key: str, *, allow_number: bool = False, strip: bool = True) -> str:
    """
    Read ``data[key]`` as text. Missing or null gives "".
    Numbers are accepted only with ``allow_number`` (mobile numbers, OTP codes).
    """
    value = data.get(key)
    if value is None:
        return ""
    if allow_number and isinstance(value, int) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    return value.strip() if strip else value


def _clean_email(raw) -> str:
    if raw is not None and not isinstance(raw, str):
        raise ValidationError("email must be a string")
    return (raw or "").strip().lower()


def _user_by_email(email: str, message: str = "User not found") -> User:
    user = User.query.filter_by(email=email).first()
    if not user:
        raise NotFound(message)
    return user


def _gate_or_user(user: User, status: int = 200):
    """Run the login gate; answer with the challenge or the user."""
    result = check_login_security(user, client_info_from_request(request))
    if result.otp_required:
        return jsonify(result.challenge), 200
    return jsonify(user.to_dict()), status


@auth_bp.after_request
def add_no_store(resp):
    resp.headers["Cache-Control"] = "no-store"
    return resp


# -------------------------------------------------------------------
# Register (also used by social sign-in with isLogin=true)
# -------------------------------------------------------------------
@auth_bp.route("/register", methods=["POST"])
def register():
    data = json_body()
    email = _clean_email(data.get("email"))
    mobile = str_field(data, "mobile", allow_number=True)
    is_login = _as_bool(data.get("isLogin"))

    if not email:
        raise ValidationError("Email is required")
    if not MOBILE_RE.fullmatch(mobile):
        raise ValidationError("A valid mobile number (10-15 digits) is required")

    existing = User.query.filter_by(email=email).first()
    if existing:
        if is_login:
            return _gate_or_user(existing)
        return jsonify(existing.to_dict()), 200

    username = str_field(data, "username") or email.split("@", 1)[0]
    password = str_field(data, "password", strip=False)
    user = User(
        email=email,
        mobile=mobile,
        username=username,
        display_name=str_field(data, "displayName") or username,
        avatar=str_field(data, "avatar"),
    )
    if password:
        user.set_password(password)
    db.session.add(user)
    db.session.commit()
    current_app.logger.info("[auth] registered uid=%s", user.id)

    if is_login:
        return _gate_or_user(user, status=201)
    return jsonify(user.to_dict()), 201


# -------------------------------------------------------------------
# Password login + OTP verification
# -------------------------------------------------------------------
@auth_bp.route("/login", methods=["POST"])
def login():
    data = json_body()
    email = _clean_email(data.get("email"))
    password = str_field(data, "password", strip=False)
    if not email or not password:
        raise ValidationError("Email and password are required")

    user = _user_by_email(email)

    if not user.has_password:
        raise ValidationError(
            "This account uses Google Login or hasn't set a password yet. "
            "Please use Google or reset your password."
        )

    if not user.check_password(password):
        raise Unauthorized()

    return _gate_or_user(user)


@auth_bp.route("/verify-login-otp", methods=["POST"])
def verify_login_otp_route():
    data = json_body()
    email = _clean_email(data.get("email"))
    code = str_field(data, "code", allow_number=True)
    if not email or not code:
        raise ValidationError("Email and code are required")

    user = _user_by_email(email)
    verify_login_otp(user, code, client_info_from_request(request))
    return jsonify(user.to_dict()), 200


# -------------------------------------------------------------------
# Forgot password (once per day)
# -------------------------------------------------------------------
@auth_bp.route("/forgot-password", methods=["POST"])
def forgot_password_route():
    identity = str_field(json_body(), "identity", allow_number=True)
    if not identity:
        raise ValidationError("Email or Phone is required")

    user = forgot_password(identity)
    if user is None:
        # Same answer whether or not the account exists
        return jsonify(message=RESET_GENERIC_MESSAGE), 200
    return jsonify(message=RESET_SENT_MESSAGE, identity=user.email), 200
