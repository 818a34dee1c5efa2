"""Visitor log model. Append-only."""

from zimshelf.db import db
from zimshelf.utils import now_utc


class Visitor(db.Model):
    __tablename__ = "visitors"

    id = db.Column(db.Integer, primary_key=True)
    ip = db.Column(db.String(64), nullable=False)
    user_agent = db.Column(db.String(512), nullable=False)
    visited_at = db.Column(db.DateTime(timezone=True), default=now_utc, index=True)
