# utils/codes.py
from __future__ import annotations

import hashlib
import secrets
import string

from flask import current_app

__all__ = ["gen_otp_code", "hash_code", "code_matches", "gen_alpha_password", "mask_email"]

_ALPHABET = string.ascii_letters


def gen_otp_code() -> str:
    """Six digits, leading zeros kept."""
    return f"{secrets.randbelow(1_000_000):06d}"


def hash_code(code: str) -> str:
    pepper = current_app.config["OTP_PEPPER"]
    return hashlib.sha256((pepper + code).encode("utf-8")).hexdigest()


def code_matches(stored_hash: str | None, code: str) -> bool:
    if not stored_hash:
        return False
    return secrets.compare_digest(stored_hash, hash_code((code or "").strip()))


def gen_alpha_password(length: int = 12) -> str:
    """Letters only (A-Z, a-z); no digits or symbols."""
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def mask_email(addr: str | None) -> str:
    if not addr:
        return ""
    try:
        local, domain = addr.split("@", 1)
    except ValueError:
        return addr
    local_mask = local[0] + "***" if len(local) > 1 else "*"
    # keep domain TLD visible
    dot = domain.rfind(".")
    if dot > 0:
        dom_mask = domain[0] + "***" + domain[dot:]
    else:
        dom_mask = domain[0] + "***"
    return f"{local_mask}@{dom_mask}"
