"""
Model: SiteMaintenance
Singleton row toggling the site lockout.
"""

from zimshelf.db import db
from zimshelf.utils import now_utc, isoformat_utc


class SiteMaintenance(db.Model):
    __tablename__ = "maintenance"

    SINGLETON_ID = 1

    id = db.Column(db.Integer, primary_key=True)
    is_locked = db.Column(db.Boolean, nullable=False, default=False)
    message = db.Column(db.Text, nullable=False, default="")
    updated_at = db.Column(db.DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    def to_dict(self):
        return {
            "isLocked": bool(self.is_locked),
            "message": self.message or "",
            "updatedAt": isoformat_utc(self.updated_at),
        }
