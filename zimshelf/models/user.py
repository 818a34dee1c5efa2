"""
Model: User
Student accounts; created at signup, never mutated afterwards.
"""

from zimshelf.db import db
from zimshelf.utils import now_utc
from flask_login import UserMixin


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(50), unique=True, nullable=False, index=True)
    password = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=now_utc)

    def to_dict(self):
        return {"id": str(self.id), "username": self.username}
