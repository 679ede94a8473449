from datetime import datetime, timedelta

from conftest import CHROME_DESKTOP, EDGE_DESKTOP, PASSWORD, last_code
from db import db
from models.login_history import LoginHistory
from models.user import User
from utils import clock, mail
from utils.mail import MailError


def _register(client, ua=EDGE_DESKTOP, **body):
    payload = {"email": "new@example.com", "mobile": "9123456789", "username": "newbie", "displayName": "New"}
    payload.update(body)
    return client.post("/register", json=payload, headers={"User-Agent": ua})


# -------------------------------------------------------------------
# /register
# -------------------------------------------------------------------
def test_register_creates_user(client, outbox, frozen_clock):
    resp = _register(client, password="pw-123456")
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["email"] == "new@example.com"
    assert body["subscriptionPlan"] == "Free"
    assert "password" not in body and "passwordHash" not in body

    u = User.query.filter_by(email="new@example.com").one()
    assert u.check_password("pw-123456")
    assert LoginHistory.query.count() == 0


def test_register_validation(client, frozen_clock):
    assert client.post("/register", json={"mobile": "9123456789"}).status_code == 400
    assert _register(client, mobile="12345").status_code == 400
    assert _register(client, mobile="98765abcde").status_code == 400


def test_register_rejects_non_string_fields(client, frozen_clock):
    resp = _register(client, username=42)
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "username must be a string"}
    assert _register(client, password=123456).status_code == 400
    assert _register(client, displayName={"x": 1}).status_code == 400
    assert User.query.count() == 0


def test_register_accepts_numeric_mobile(client, frozen_clock):
    resp = _register(client, mobile=9123456789)
    assert resp.status_code == 201
    assert resp.get_json()["mobile"] == "9123456789"


def test_register_existing_returns_user(client, user, frozen_clock):
    resp = _register(client, email="a@example.com")
    assert resp.status_code == 200
    assert resp.get_json()["id"] == user.id
    assert User.query.count() == 1


def test_register_with_login_runs_gate(client, user, outbox, frozen_clock):
    resp = _register(client, ua=CHROME_DESKTOP, email="a@example.com", isLogin=True)
    assert resp.status_code == 200
    assert resp.get_json()["otpRequired"] is True
    assert len(outbox) == 1

    resp = _register(client, ua=EDGE_DESKTOP, email="fresh@example.com", isLogin=True)
    assert resp.status_code == 201
    assert LoginHistory.query.count() == 1


# -------------------------------------------------------------------
# /loggedinuser
# -------------------------------------------------------------------
def test_loggedinuser_downgrades_expired_plan(client, user, frozen_clock):
    user.subscription_plan = "Gold"
    user.subscription_expires_at = clock.to_db(frozen_clock() - timedelta(days=1))
    db.session.commit()

    resp = client.get("/loggedinuser", query_string={"email": "a@example.com"})
    assert resp.status_code == 200
    assert resp.get_json()["subscriptionPlan"] == "Free"


def test_loggedinuser_keeps_active_plan(client, user, frozen_clock):
    user.subscription_plan = "Silver"
    user.subscription_expires_at = clock.to_db(frozen_clock() + timedelta(days=3))
    db.session.commit()
    resp = client.get("/loggedinuser", query_string={"email": "a@example.com"})
    assert resp.get_json()["subscriptionPlan"] == "Silver"


def test_loggedinuser_with_login(client, user, outbox, frozen_clock):
    resp = client.get(
        "/loggedinuser",
        query_string={"email": "a@example.com", "isLogin": "true"},
        headers={"User-Agent": CHROME_DESKTOP},
    )
    assert resp.get_json()["otpRequired"] is True


def test_loggedinuser_errors(client, frozen_clock):
    assert client.get("/loggedinuser").status_code == 400
    assert client.get("/loggedinuser", query_string={"email": "x@example.com"}).status_code == 404


# -------------------------------------------------------------------
# /login-history
# -------------------------------------------------------------------
def test_login_history_newest_first_and_capped(app, client, user, frozen_clock):
    app.config["LOGIN_HISTORY_LIMIT"] = 3
    base = datetime(2026, 3, 1, 12, 0)
    for i in range(5):
        db.session.add(LoginHistory(
            user_id=user.id, browser=f"B{i}", os="Windows", device="desktop", ip="1.1.1.1",
            login_time=base + timedelta(hours=i),
        ))
    db.session.commit()

    resp = client.get("/login-history", query_string={"userId": user.id})
    assert resp.status_code == 200
    rows = resp.get_json()
    assert [r["browser"] for r in rows] == ["B4", "B3", "B2"]
    assert set(rows[0]) >= {"browser", "os", "device", "ip", "loginTime"}


def test_login_history_requires_user_id(client):
    assert client.get("/login-history").status_code == 400


# -------------------------------------------------------------------
# /userupdate
# -------------------------------------------------------------------
def test_userupdate_only_touches_profile_fields(client, user):
    resp = client.patch(
        "/userupdate/A@example.com",
        json={"bio": "hello", "displayName": "Al", "subscriptionPlan": "Gold", "tweetCount": -5},
    )
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["bio"] == "hello"
    assert body["displayName"] == "Al"
    assert body["subscriptionPlan"] == "Free"
    assert body["tweetCount"] == 0


def test_userupdate_errors(client, user):
    assert client.patch("/userupdate/nobody@example.com", json={"bio": "x"}).status_code == 404
    assert client.patch("/userupdate/a@example.com", json={"mobile": "12"}).status_code == 400
    assert client.patch("/userupdate/a@example.com", json={"bio": ["x"]}).status_code == 400
    assert client.patch("/userupdate/a@example.com", json=["bio"]).status_code == 400


# -------------------------------------------------------------------
# /forgot-password
# -------------------------------------------------------------------
def test_forgot_password_once_per_day(client, user, outbox, frozen_clock):
    resp = client.post("/forgot-password", json={"identity": "a@example.com"})
    assert resp.status_code == 200
    assert resp.get_json()["identity"] == "a@example.com"

    new_pw = outbox[-1]["text"].rsplit(" ", 1)[-1]
    assert len(new_pw) == 12 and new_pw.isalpha()
    db.session.expire_all()
    u = db.session.get(User, user.id)
    assert u.check_password(new_pw)
    assert not u.check_password(PASSWORD)

    frozen_clock.advance(hours=2)
    resp = client.post("/forgot-password", json={"identity": "9876543210"})
    assert resp.status_code == 403
    assert len(outbox) == 1

    frozen_clock.advance(days=1)
    assert client.post("/forgot-password", json={"identity": "a@example.com"}).status_code == 200


def test_forgot_password_unknown_identity(client, outbox, frozen_clock):
    resp = client.post("/forgot-password", json={"identity": "ghost@example.com"})
    assert resp.status_code == 200
    assert "identity" not in resp.get_json()
    assert outbox == []
    assert client.post("/forgot-password", json={}).status_code == 400


def test_forgot_password_mail_failure_keeps_old_password(client, user, broken_mail, frozen_clock):
    resp = client.post("/forgot-password", json={"identity": "a@example.com"})
    assert resp.status_code == 500
    db.session.expire_all()
    u = db.session.get(User, user.id)
    assert u.check_password(PASSWORD)
    assert u.last_reset_at is None


# -------------------------------------------------------------------
# Language change
# -------------------------------------------------------------------
def test_language_change_flow(client, user, outbox, frozen_clock):
    resp = client.post("/request-language-change", json={"email": "a@example.com", "language": "fr"})
    assert resp.status_code == 200
    code = last_code(outbox)

    resp = client.post("/verify-language-change", json={"email": "a@example.com", "code": code})
    assert resp.status_code == 200
    assert resp.get_json()["preferredLanguage"] == "fr"

    resp = client.post("/verify-language-change", json={"email": "a@example.com", "code": code})
    assert resp.status_code == 400


def test_language_change_cooldown_and_expiry(client, user, outbox, frozen_clock):
    body = {"email": "a@example.com", "language": "hi"}
    assert client.post("/request-language-change", json=body).status_code == 200
    frozen_clock.advance(seconds=30)
    assert client.post("/request-language-change", json=body).status_code == 429

    frozen_clock.advance(seconds=31)
    assert client.post("/request-language-change", json=body).status_code == 200
    code = last_code(outbox)

    frozen_clock.advance(minutes=6)
    resp = client.post("/verify-language-change", json={"email": "a@example.com", "code": code})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "OTP has expired"


def test_language_change_requires_mobile(client, user, outbox, frozen_clock):
    user.mobile = None
    db.session.commit()
    resp = client.post("/request-language-change", json={"email": "a@example.com", "language": "fr"})
    assert resp.status_code == 403
    assert outbox == []


def test_language_change_wrong_code(client, user, outbox, frozen_clock):
    client.post("/request-language-change", json={"email": "a@example.com", "language": "es"})
    code = last_code(outbox)
    wrong = "000000" if code != "000000" else "111111"
    resp = client.post("/verify-language-change", json={"email": "a@example.com", "code": wrong})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Invalid OTP"


def test_language_change_mail_failure_allows_retry(client, user, frozen_clock, monkeypatch):
    body = {"email": "a@example.com", "language": "fr"}
    with monkeypatch.context() as m:
        def fail(**_):
            raise MailError("smtp down")
        m.setattr(mail, "send_email", fail)
        assert client.post("/request-language-change", json=body).status_code == 500

    db.session.expire_all()
    u = db.session.get(User, user.id)
    assert u.language_otp_expires_at is None and u.pending_language is None

    sent = []
    monkeypatch.setattr(mail, "send_email", lambda **kw: sent.append(kw))
    frozen_clock.advance(seconds=5)
    assert client.post("/request-language-change", json=body).status_code == 200
    assert len(sent) == 1
