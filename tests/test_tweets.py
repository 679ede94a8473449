from datetime import timedelta

import pytest

from db import db
from models.user import User
from realtime import socketio
from utils import clock


@pytest.fixture
def broadcasts(monkeypatch):
    sent = []
    monkeypatch.setattr(socketio, "emit", lambda event, payload, **kw: sent.append((event, payload)))
    return sent


def _post(client, author, content="hello world"):
    return client.post("/post", json={"author": author, "content": content})


def test_free_plan_allows_one_tweet(client, user, broadcasts, frozen_clock):
    resp = _post(client, user.id)
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["content"] == "hello world"
    assert body["author"]["id"] == user.id
    assert "passwordHash" not in body["author"]
    assert broadcasts == [("new-tweet", body)]

    resp = _post(client, user.id, "second")
    assert resp.status_code == 403
    assert resp.get_json()["error"].startswith("Free plan allows only 1 tweet.")


def test_paid_plan_limits(client, user, broadcasts, frozen_clock):
    user.subscription_plan = "Bronze"
    user.subscription_expires_at = clock.to_db(frozen_clock() + timedelta(days=30))
    db.session.commit()

    for i in range(3):
        assert _post(client, user.id, f"t{i}").status_code == 201
    resp = _post(client, user.id, "t3")
    assert resp.status_code == 403
    assert "3 tweets" in resp.get_json()["error"]


def test_gold_is_unlimited(client, user, broadcasts, frozen_clock):
    user.subscription_plan = "Gold"
    user.subscription_expires_at = clock.to_db(frozen_clock() + timedelta(days=30))
    user.tweet_count = 500
    db.session.commit()
    assert _post(client, user.id).status_code == 201


def test_expired_plan_falls_back_to_free_quota(client, user, broadcasts, frozen_clock):
    user.subscription_plan = "Silver"
    user.subscription_expires_at = clock.to_db(frozen_clock() - timedelta(minutes=1))
    user.tweet_count = 2
    db.session.commit()
    assert _post(client, user.id).status_code == 403
    db.session.expire_all()
    assert db.session.get(User, user.id).subscription_plan == "Free"


def test_unknown_author(client, broadcasts, frozen_clock):
    assert _post(client, 999).status_code == 404
    assert _post(client, "not-an-id").status_code == 404


def test_list_newest_first(client, user, broadcasts, frozen_clock):
    user.subscription_plan = "Gold"
    user.subscription_expires_at = clock.to_db(frozen_clock() + timedelta(days=30))
    db.session.commit()
    _post(client, user.id, "first")
    frozen_clock.advance(minutes=1)
    _post(client, user.id, "second")

    resp = client.get("/post")
    assert [t["content"] for t in resp.get_json()] == ["second", "first"]


def test_like_and_retweet_once_per_user(client, user, broadcasts, frozen_clock):
    tweet_id = _post(client, user.id).get_json()["id"]

    for _ in range(2):
        resp = client.post(f"/like/{tweet_id}", json={"userId": user.id})
        assert resp.status_code == 200
    assert resp.get_json()["likes"] == 1
    assert resp.get_json()["likedBy"] == [user.id]

    for _ in range(2):
        resp = client.post(f"/retweet/{tweet_id}", json={"userId": user.id})
    assert resp.get_json()["retweets"] == 1


def test_like_errors(client, user, broadcasts, frozen_clock):
    assert client.post("/like/42", json={"userId": user.id}).status_code == 404
    tweet_id = _post(client, user.id).get_json()["id"]
    assert client.post(f"/like/{tweet_id}", json={}).status_code == 404
