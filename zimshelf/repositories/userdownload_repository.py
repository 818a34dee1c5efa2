"""
Repository for UserDownload database operations
"""

from sqlalchemy.exc import SQLAlchemyError
from zimshelf.db import db
from zimshelf.models.userdownload import UserDownload


class UserDownloadRepository:
    """Repository for UserDownload database operations"""

    @staticmethod
    def create(**kwargs):
        try:
            item = UserDownload(**kwargs)
            db.session.add(item)
            db.session.commit()
            db.session.refresh(item)
            return item
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e

    @staticmethod
    def get_recent_for_user(user_id, limit=50):
        """Latest downloads of a user, newest first"""
        return (
            UserDownload.query.filter_by(user_id=user_id)
            .order_by(UserDownload.downloaded_at.desc(), UserDownload.id.desc())
            .limit(limit)
            .all()
        )
