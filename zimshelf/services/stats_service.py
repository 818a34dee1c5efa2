"""Admin dashboard aggregates.

Computed on every request straight from the tables; all day boundaries are
UTC midnights.
"""

from datetime import timedelta

from zimshelf.models.book import Book
from zimshelf.repositories.book_repository import BookRepository
from zimshelf.repositories.downloadlog_repository import DownloadLogRepository
from zimshelf.repositories.visitor_repository import VisitorRepository
from zimshelf.utils import now_utc

DAILY_WINDOW_DAYS = 7
TOP_BOOKS_LIMIT = 10


def _daily_buckets(counter, today, label):
    buckets = []
    for days_ago in range(DAILY_WINDOW_DAYS - 1, -1, -1):
        day_start = today - timedelta(days=days_ago)
        day_end = day_start + timedelta(days=1)
        buckets.append({"date": day_start.date().isoformat(), label: counter(day_start, day_end)})
    return buckets


def get_site_stats(serialize_book, now=None):
    """
    Build the admin stats payload.

    `serialize_book` turns a Book into its JSON dict (cover sanitizing lives
    with the caller).
    """
    now = now or now_utc()
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    this_week = now - timedelta(days=7)
    this_month = today.replace(day=1)

    return {
        "totalBooks": BookRepository.count(),
        "totalDownloads": BookRepository.total_downloads(),
        "totalVisitors": VisitorRepository.count(),
        "todayVisitors": VisitorRepository.count_between(today),
        "weekVisitors": VisitorRepository.count_between(this_week),
        "monthVisitors": VisitorRepository.count_between(this_month),
        "todayDownloads": DownloadLogRepository.count_between(today),
        "mostDownloadedBooks": [serialize_book(b) for b in BookRepository.get_most_downloaded(TOP_BOOKS_LIMIT)],
        "recentUploads": [serialize_book(b) for b in BookRepository.get_recent(TOP_BOOKS_LIMIT)],
        "bookTypeDistribution": BookRepository.get_distribution(Book.book_type),
        "levelDistribution": BookRepository.get_distribution(Book.level),
        "curriculumDistribution": BookRepository.get_distribution(Book.curriculum),
        "dailyVisitors": _daily_buckets(VisitorRepository.count_between, today, "visitors"),
        "dailyDownloads": _daily_buckets(DownloadLogRepository.count_between, today, "downloads"),
    }
