"""
Repository for the SiteMaintenance singleton
"""

from sqlalchemy.exc import SQLAlchemyError
from zimshelf.db import db
from zimshelf.models.sitemaintenance import SiteMaintenance


class MaintenanceRepository:
    """Repository for SiteMaintenance database operations"""

    @staticmethod
    def get():
        """Current maintenance state, unlocked when never set"""
        item = db.session.get(SiteMaintenance, SiteMaintenance.SINGLETON_ID)
        if not item:
            return {"isLocked": False, "message": "", "updatedAt": None}
        return item.to_dict()

    @staticmethod
    def set(is_locked, message=""):
        """Upsert the singleton row"""
        try:
            item = db.session.get(SiteMaintenance, SiteMaintenance.SINGLETON_ID)
            if not item:
                item = SiteMaintenance(id=SiteMaintenance.SINGLETON_ID)
                db.session.add(item)
            item.is_locked = bool(is_locked)
            item.message = message or ""
            db.session.commit()
            return item.to_dict()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e
