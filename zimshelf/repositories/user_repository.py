"""
Repository for User database operations
"""

from sqlalchemy.exc import SQLAlchemyError
from zimshelf.db import db
from zimshelf.models.user import User


class UserRepository:
    """Repository for User database operations"""

    @staticmethod
    def get_all():
        """Get all User records"""
        return User.query.order_by(User.id.asc()).all()

    @staticmethod
    def get_by_id(id):
        """Get User by ID"""
        return db.session.get(User, int(id))

    @staticmethod
    def get_by_username(username):
        return User.query.filter_by(username=username).first()

    @staticmethod
    def create(**kwargs):
        """Create new User record"""
        try:
            item = User(**kwargs)
            db.session.add(item)
            db.session.commit()
            db.session.refresh(item)
            return item
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e

    @staticmethod
    def count():
        """Count total User records"""
        return User.query.count()
