# routes/tweets.py
from __future__ import annotations

from flask import Blueprint, jsonify, current_app

from db import db
from errors import NotFound
from models.tweet import Tweet
from models.user import User
from realtime import emit_new_tweet
from routes.auth import json_body, str_field
from services.subscriptions import check_subscription_expiry, ensure_can_post
from utils import clock

tweets_bp = Blueprint("tweets", __name__)


def _as_id(value) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@tweets_bp.route("/post", methods=["POST"])
def create_tweet():
    data = json_body()
    author_id = _as_id(data.get("author"))
    user = db.session.get(User, author_id) if author_id is not None else None
    if not user:
        raise NotFound("Author not found")

    check_subscription_expiry(user)
    ensure_can_post(user)

    tweet = Tweet(
        author_id=user.id,
        content=str_field(data, "content", strip=False),
        image=str_field(data, "image") or None,
        audio_url=str_field(data, "audioUrl") or None,
        created_at=clock.to_db(clock.now_utc()),
    )
    db.session.add(tweet)
    user.tweet_count = (user.tweet_count or 0) + 1
    db.session.commit()

    payload = tweet.to_dict()
    try:
        emit_new_tweet(payload)
    except Exception:
        # The tweet is stored; realtime fan-out is best effort
        current_app.logger.exception("[tweets] new-tweet broadcast failed id=%s", tweet.id)

    return jsonify(payload), 201


@tweets_bp.route("/post", methods=["GET"])
def list_tweets():
    rows = Tweet.query.order_by(Tweet.created_at.desc(), Tweet.id.desc()).all()
    return jsonify([t.to_dict() for t in rows]), 200


def _toggle_once(tweet_id: int, relation: str, counter: str):
    data = json_body()
    tweet = db.session.get(Tweet, tweet_id)
    if not tweet:
        raise NotFound("Tweet not found")

    user_id = _as_id(data.get("userId"))
    user = db.session.get(User, user_id) if user_id is not None else None
    if not user:
        raise NotFound("User not found")

    members = getattr(tweet, relation)
    if user not in members:
        members.append(user)
        setattr(tweet, counter, (getattr(tweet, counter) or 0) + 1)
        db.session.commit()
    return jsonify(tweet.to_dict()), 200


@tweets_bp.route("/like/<int:tweet_id>", methods=["POST"])
def like(tweet_id: int):
    return _toggle_once(tweet_id, "liked_by", "likes")


@tweets_bp.route("/retweet/<int:tweet_id>", methods=["POST"])
def retweet(tweet_id: int):
    return _toggle_once(tweet_id, "retweeted_by", "retweets")
