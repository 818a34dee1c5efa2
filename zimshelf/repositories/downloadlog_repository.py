"""
Repository for DownloadLog database operations
"""

from sqlalchemy.exc import SQLAlchemyError
from zimshelf.db import db
from zimshelf.models.downloadlog import DownloadLog


class DownloadLogRepository:
    """Repository for DownloadLog database operations"""

    @staticmethod
    def create(**kwargs):
        """Append a DownloadLog entry"""
        try:
            item = DownloadLog(**kwargs)
            db.session.add(item)
            db.session.commit()
            db.session.refresh(item)
            return item
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e

    @staticmethod
    def count_between(start, end=None):
        query = DownloadLog.query.filter(DownloadLog.downloaded_at >= start)
        if end is not None:
            query = query.filter(DownloadLog.downloaded_at < end)
        return query.count()
