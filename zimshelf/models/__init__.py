"""
Models package

One module per table:
- user.py, admin.py
- book.py
- visitor.py, downloadlog.py, userdownload.py
- sitemaintenance.py

Usage:
    from zimshelf.models import Book, User
"""

from .user import User
from .admin import Admin
from .book import Book
from .visitor import Visitor
from .downloadlog import DownloadLog
from .userdownload import UserDownload
from .sitemaintenance import SiteMaintenance

__all__ = [
    "User",
    "Admin",
    "Book",
    "Visitor",
    "DownloadLog",
    "UserDownload",
    "SiteMaintenance",
]
