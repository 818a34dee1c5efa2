"""
Repository for Visitor database operations
"""

from sqlalchemy.exc import SQLAlchemyError
from zimshelf.db import db
from zimshelf.models.visitor import Visitor


class VisitorRepository:
    """Repository for Visitor database operations"""

    @staticmethod
    def create(**kwargs):
        """Append a Visitor entry"""
        try:
            item = Visitor(**kwargs)
            db.session.add(item)
            db.session.commit()
            db.session.refresh(item)
            return item
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e

    @staticmethod
    def count_between(start, end=None):
        query = Visitor.query.filter(Visitor.visited_at >= start)
        if end is not None:
            query = query.filter(Visitor.visited_at < end)
        return query.count()

    @staticmethod
    def count():
        """Count total Visitor records"""
        return Visitor.query.count()
