"""
Repository for Admin database operations
"""

from sqlalchemy.exc import SQLAlchemyError
from zimshelf.db import db
from zimshelf.models.admin import Admin


class AdminRepository:
    """Repository for Admin database operations"""

    @staticmethod
    def get_by_id(id):
        return db.session.get(Admin, id)

    @staticmethod
    def get_by_username(username):
        return Admin.query.filter_by(username=username).first()

    @staticmethod
    def create(**kwargs):
        """Create new Admin record"""
        try:
            item = Admin(**kwargs)
            db.session.add(item)
            db.session.commit()
            db.session.refresh(item)
            return item
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e
