import re
from datetime import datetime, timedelta, timezone

import pytest

from app import create_app
from config import TestingConfig
from db import db
from models.user import User
from utils import clock, mail
from utils.mail import MailError

CHROME_DESKTOP = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36"
)
EDGE_DESKTOP = CHROME_DESKTOP + " Edg/119.0.2151.58"
CHROME_ANDROID = (
    "Mozilla/5.0 (Linux; Android 10; K) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/119.0.0.0 Mobile Safari/537.36"
)
EDGE_ANDROID = CHROME_ANDROID + " EdgA/119.0.2151.78"
SAFARI_IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_1 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.1 Mobile/15E148 Safari/604.1"
)
SAFARI_IPAD = (
    "Mozilla/5.0 (iPad; CPU OS 17_1 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.1 Mobile/15E148 Safari/604.1"
)

# 06:00 UTC == 11:30 IST, inside the default mobile window
MORNING_IST = datetime(2026, 3, 2, 6, 0, tzinfo=timezone.utc)
# 08:30 UTC == 14:00 IST, outside the mobile window, start of the audio window
AFTERNOON_IST = datetime(2026, 3, 2, 8, 30, tzinfo=timezone.utc)

PASSWORD = "s3cret-pass"


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, now: datetime) -> None:
        self.now = now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def app(tmp_path):
    app = create_app(TestingConfig)
    app.static_folder = str(tmp_path / "static")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def frozen_clock(monkeypatch):
    fc = FrozenClock(MORNING_IST)
    monkeypatch.setattr(clock, "now_utc", fc)
    return fc


@pytest.fixture
def outbox(monkeypatch):
    sent = []

    def fake_send(*, to, subject, html="", text=""):
        sent.append({"to": to, "subject": subject, "html": html, "text": text})

    monkeypatch.setattr(mail, "send_email", fake_send)
    return sent


@pytest.fixture
def broken_mail(monkeypatch):
    def fail(**_):
        raise MailError("smtp down")

    monkeypatch.setattr(mail, "send_email", fail)


@pytest.fixture
def user(app):
    u = User(
        email="a@example.com",
        username="alice",
        display_name="Alice",
        avatar="",
        mobile="9876543210",
    )
    u.set_password(PASSWORD)
    db.session.add(u)
    db.session.commit()
    return u


def last_code(outbox) -> str:
    m = re.search(r"\b(\d{6})\b", outbox[-1]["text"])
    assert m, outbox[-1]["text"]
    return m.group(1)
