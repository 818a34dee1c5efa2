"""
Model: Admin
Seeded once at startup from configuration when absent.
"""

from zimshelf.db import db
from zimshelf.utils import now_utc


class Admin(db.Model):
    __tablename__ = "admins"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(100), unique=True, nullable=False)
    password = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=now_utc)
