# services/subscriptions.py
from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Optional

from flask import current_app

from db import db
from errors import Forbidden, ValidationError
from models.user import User
from utils import clock

__all__ = [
    "SUBSCRIPTION_PLANS",
    "plan_for",
    "limit_label",
    "check_subscription_expiry",
    "ensure_can_post",
    "paid_plan",
    "activate_plan",
]

FREE = "Free"

# price in INR, limit = tweets per billing period
SUBSCRIPTION_PLANS = {
    "Free":   {"price": 0,    "limit": 1},
    "Bronze": {"price": 100,  "limit": 3},
    "Silver": {"price": 300,  "limit": 5},
    "Gold":   {"price": 1000, "limit": math.inf},
}


def plan_for(user: User) -> dict:
    return SUBSCRIPTION_PLANS.get(user.subscription_plan or FREE, SUBSCRIPTION_PLANS[FREE])


def limit_label(plan_name: str) -> str:
    limit = SUBSCRIPTION_PLANS[plan_name]["limit"]
    return "Unlimited" if limit == math.inf else str(limit)


def check_subscription_expiry(user: User, *, now: Optional[datetime] = None) -> User:
    """Downgrade an expired paid plan to Free. tweet_count is left as is."""
    now = now or clock.now_utc()
    if (user.subscription_plan or FREE) != FREE and user.subscription_expires_at:
        if now > clock.as_utc(user.subscription_expires_at):
            current_app.logger.info(
                "[plans] uid=%s %s expired; downgrading to Free", user.id, user.subscription_plan
            )
            user.subscription_plan = FREE
            db.session.commit()
    return user


def ensure_can_post(user: User) -> None:
    limit = plan_for(user)["limit"]
    if (user.tweet_count or 0) >= limit:
        plural = "s" if limit > 1 else ""
        raise Forbidden(
            f"{user.subscription_plan} plan allows only {limit} tweet{plural}. "
            "Upgrade your plan to post more tweets."
        )


def paid_plan(plan_name: str) -> dict:
    if plan_name not in SUBSCRIPTION_PLANS or plan_name == FREE:
        raise ValidationError("Invalid plan selected")
    return SUBSCRIPTION_PLANS[plan_name]


def activate_plan(user: User, plan_name: str, *, now: Optional[datetime] = None) -> dict:
    """
    Switch ``user`` to a paid plan for one billing period starting ``now``.
    The tweet counter restarts at zero. Returns the invoice fields.
    """
    plan = paid_plan(plan_name)
    now = now or clock.now_utc()
    expires = now + timedelta(days=current_app.config["SUBSCRIPTION_DAYS"])

    user.subscription_plan = plan_name
    user.subscription_started_at = clock.to_db(now)
    user.subscription_expires_at = clock.to_db(expires)
    user.tweet_count = 0
    db.session.commit()
    current_app.logger.info("[plans] uid=%s activated %s until %s", user.id, plan_name, expires.date())

    return {
        "planName": plan_name,
        "amount": plan["price"],
        "invoiceNumber": f"INV-{int(now.timestamp() * 1000)}",
        "paymentDate": now,
        "expiryDate": expires,
        "tweetLimit": limit_label(plan_name),
    }
