# models/tweet.py
from db import db
from sqlalchemy.sql import func


tweet_likes = db.Table(
    "tweet_likes",
    db.Column("tweet_id", db.Integer, db.ForeignKey("tweets.id", ondelete="CASCADE"), primary_key=True),
    db.Column("user_id", db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)

tweet_retweets = db.Table(
    "tweet_retweets",
    db.Column("tweet_id", db.Integer, db.ForeignKey("tweets.id", ondelete="CASCADE"), primary_key=True),
    db.Column("user_id", db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class Tweet(db.Model):
    __tablename__ = "tweets"

    id         = db.Column(db.Integer, primary_key=True)
    author_id  = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    content    = db.Column(db.Text, nullable=False, default="")
    image      = db.Column(db.String(512), nullable=True)
    audio_url  = db.Column(db.String(512), nullable=True)
    likes      = db.Column(db.Integer, nullable=False, default=0)
    retweets   = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, server_default=func.now(), nullable=False, index=True)

    author = db.relationship("User", lazy="joined", backref=db.backref("tweets", lazy=True))
    liked_by = db.relationship("User", secondary=tweet_likes, lazy="selectin")
    retweeted_by = db.relationship("User", secondary=tweet_retweets, lazy="selectin")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "author": self.author.to_dict() if self.author else None,
            "content": self.content,
            "image": self.image,
            "audioUrl": self.audio_url,
            "likes": self.likes,
            "retweets": self.retweets,
            "likedBy": [u.id for u in self.liked_by],
            "retweetedBy": [u.id for u in self.retweeted_by],
            "timestamp": self.created_at.isoformat() + "Z" if self.created_at else None,
        }
