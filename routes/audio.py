# routes/audio.py
from __future__ import annotations

import math
import os
import time
import uuid

from flask import Blueprint, request, jsonify, current_app, url_for
from werkzeug.utils import secure_filename

from errors import Forbidden, ValidationError
from routes.auth import _clean_email, json_body, str_field
from services.email_otp import consume_email_otp, has_verified_otp, request_email_otp, verify_email_otp
from utils import clock
from utils.codes import mask_email
from utils.time_window import TimeWindow

audio_bp = Blueprint("audio", __name__)

AUDIO_DIR = "audio_uploads"
ALLOWED_EXTS = {"mp3", "wav", "m4a", "ogg", "webm", "aac"}


def _unique_ref(prefix: str) -> str:
    return f"{prefix}-{int(time.time()*1000)}-{uuid.uuid4().hex[:8]}"


def _save_audio(file_storage) -> str:
    fname = secure_filename(file_storage.filename or "")
    ext = (fname.rsplit(".", 1)[-1].lower() if "." in fname else "mp3")
    if ext not in ALLOWED_EXTS:
        ext = "mp3"

    base_dir = os.path.join(current_app.static_folder, AUDIO_DIR)
    os.makedirs(base_dir, exist_ok=True)

    name = f"{_unique_ref('audio')}.{ext}"
    file_storage.save(os.path.join(base_dir, name))
    return url_for("static", filename=f"{AUDIO_DIR}/{name}", _external=True)


def _enforce_upload_window() -> None:
    cfg = current_app.config
    window = TimeWindow.parse(cfg.get("AUDIO_UPLOAD_WINDOW"), clock.get_tz(cfg["APP_TIMEZONE"]))
    now = clock.now_utc()
    if window is not None and not window.contains(now):
        raise Forbidden(f"Audio tweets are allowed only between {window.describe(now, joiner='and')}.")


@audio_bp.route("/request-otp", methods=["POST"])
def request_otp():
    email = _clean_email(json_body().get("email"))
    if not email:
        raise ValidationError("Email is required")

    if not request_email_otp(email):
        # Don't block the composer; the code is stored and the failure is logged
        return jsonify(message="OTP generated. Please check server logs if email is not received."), 200
    return jsonify(message="OTP sent successfully"), 200


@audio_bp.route("/verify-otp", methods=["POST"])
def verify_otp():
    data = json_body()
    email = _clean_email(data.get("email"))
    code = str_field(data, "code", allow_number=True)
    if not email or not code:
        raise ValidationError("Email and code are required")

    if not verify_email_otp(email, code):
        raise ValidationError("Invalid or expired OTP")
    return jsonify(message="OTP verified successfully"), 200


@audio_bp.route("/upload-audio", methods=["POST"])
def upload_audio():
    _enforce_upload_window()

    email = _clean_email(request.form.get("email"))
    if not email or not has_verified_otp(email):
        raise Forbidden("Please verify OTP before uploading.")

    try:
        duration = float(request.form.get("duration") or 0)
    except ValueError:
        raise ValidationError("duration must be a number of seconds")
    # float() also accepts "nan" and "inf"
    if not math.isfinite(duration) or duration < 0:
        raise ValidationError("duration must be a number of seconds")
    max_seconds = current_app.config["AUDIO_MAX_SECONDS"]
    if duration > max_seconds:
        raise ValidationError(f"Audio duration exceeds {max_seconds // 60} minutes limit.")

    audio = request.files.get("audio")
    if not audio or not getattr(audio, "filename", None):
        raise ValidationError("audio file is required")

    audio_url = _save_audio(audio)
    consume_email_otp(email)
    current_app.logger.info("[audio] stored upload for %s -> %s", mask_email(email), audio_url)
    return jsonify(audioUrl=audio_url), 200
