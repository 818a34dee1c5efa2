"""
Repository for Book database operations
"""

from datetime import timedelta
from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from zimshelf.db import db
from zimshelf.models.book import Book
from zimshelf.repositories.downloadlog_repository import DownloadLogRepository
from zimshelf.utils import now_utc

SORT_NEWEST = "newest"
SORT_DOWNLOADS = "downloads"


def parse_book_id(book_id):
    """Path ids arrive as strings; anything non-numeric can never match a row."""
    try:
        return int(book_id)
    except (TypeError, ValueError):
        return None


class BookRepository:
    """Repository for Book database operations"""

    @staticmethod
    def _newest_first(query):
        return query.order_by(Book.uploaded_at.desc(), Book.id.asc())

    @staticmethod
    def _most_downloaded_first(query):
        return query.order_by(Book.downloads.desc(), Book.id.asc())

    @staticmethod
    def get_all(level=None, curriculum=None, book_type=None, uploaded_by=None, search=None, sort=SORT_NEWEST):
        """Get books matching the optional filters"""
        query = Book.query
        if level:
            query = query.filter(Book.level == level)
        if curriculum:
            query = query.filter(Book.curriculum == curriculum)
        if book_type:
            query = query.filter(Book.book_type == book_type)
        if uploaded_by:
            query = query.filter(Book.uploaded_by == uploaded_by)
        if search:
            query = query.filter(
                or_(Book.title.icontains(search, autoescape=True), Book.author.icontains(search, autoescape=True))
            )

        if sort == SORT_DOWNLOADS:
            query = BookRepository._most_downloaded_first(query)
        else:
            query = BookRepository._newest_first(query)
        return query.all()

    @staticmethod
    def get_by_id(id):
        """Get Book by ID, None for unknown or malformed ids"""
        book_id = parse_book_id(id)
        if book_id is None:
            return None
        return db.session.get(Book, book_id)

    @staticmethod
    def get_by_level(level):
        return BookRepository._newest_first(Book.query.filter(Book.level == level)).all()

    @staticmethod
    def get_by_uploader(username):
        return BookRepository._newest_first(Book.query.filter(Book.uploaded_by == username)).all()

    @staticmethod
    def get_trending(limit=8, days=7, now=None):
        """Books uploaded within the last `days` days, most downloaded first"""
        since = (now or now_utc()) - timedelta(days=days)
        query = Book.query.filter(Book.uploaded_at >= since)
        return BookRepository._most_downloaded_first(query).limit(limit).all()

    @staticmethod
    def get_most_downloaded(limit=8):
        return BookRepository._most_downloaded_first(Book.query).limit(limit).all()

    @staticmethod
    def get_recent(limit=10):
        return BookRepository._newest_first(Book.query).limit(limit).all()

    @staticmethod
    def get_top_uploaders(limit=10):
        """Upload counts grouped by uploader, highest first"""
        upload_count = func.count(Book.id).label("upload_count")
        rows = (
            db.session.query(Book.uploaded_by, upload_count)
            .group_by(Book.uploaded_by)
            .order_by(upload_count.desc(), func.min(Book.id).asc())
            .limit(limit)
            .all()
        )
        return [{"username": row.uploaded_by, "uploadCount": row.upload_count} for row in rows]

    @staticmethod
    def get_distribution(column):
        """Count books per value of `column`; missing values are bucketed as Unknown"""
        rows = db.session.query(column, func.count(Book.id)).group_by(column).all()
        distribution = {}
        for value, count in rows:
            key = value or "Unknown"
            distribution[key] = distribution.get(key, 0) + count
        return distribution

    @staticmethod
    def total_downloads():
        return db.session.query(func.coalesce(func.sum(Book.downloads), 0)).scalar()

    @staticmethod
    def create(**kwargs):
        """Create new Book record"""
        try:
            item = Book(**kwargs)
            db.session.add(item)
            db.session.commit()
            db.session.refresh(item)
            return item
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e

    @staticmethod
    def increment_downloads(id):
        """
        Bump the download counter and append a download log entry.

        The counter update and the log insert are two separate commits.
        Returns the new counter value, or None when the book does not exist.
        """
        book_id = parse_book_id(id)
        if book_id is None:
            return None

        try:
            updated = Book.query.filter(Book.id == book_id).update(
                {Book.downloads: Book.downloads + 1}, synchronize_session=False
            )
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e

        if not updated:
            return None

        DownloadLogRepository.create(book_id=book_id)
        return db.session.query(Book.downloads).filter(Book.id == book_id).scalar()

    @staticmethod
    def backfill_cover_urls(fallback_url, legacy_hosts=()):
        """Point empty or legacy-host cover URLs at the fallback. Returns rows changed."""
        conditions = [Book.cover_url.is_(None), Book.cover_url == ""]
        conditions.extend(Book.cover_url.contains(host) for host in legacy_hosts)
        try:
            changed = Book.query.filter(or_(*conditions)).update(
                {Book.cover_url: fallback_url}, synchronize_session=False
            )
            db.session.commit()
            return changed
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e

    @staticmethod
    def delete(id):
        """Delete Book record"""
        item = BookRepository.get_by_id(id)
        if not item:
            return False

        db.session.delete(item)
        db.session.commit()
        return True

    @staticmethod
    def count():
        """Count total Book records"""
        return Book.query.count()
