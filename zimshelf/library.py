"""
Book catalogue helpers shared by the route modules.
"""
from flask import current_app

from zimshelf.repositories.book_repository import BookRepository
from zimshelf.repositories.user_repository import UserRepository
from zimshelf.settings import load_settings
from zimshelf.utils import isoformat_utc


def current_settings():
    """Settings of the running app, falling back to the cached settings file."""
    settings = current_app.config.get("ZIMSHELF_SETTINGS")
    if settings is None:
        settings = load_settings()
    return settings


def book_payload(book):
    """Book JSON with the cover URL sanitized against the configured fallback."""
    storage = current_settings()["storage"]
    return book.to_dict(
        cover_fallback=storage.get("fallback_cover_url"),
        legacy_hosts=tuple(storage.get("legacy_cover_hosts") or ()),
    )


def get_users_with_uploads():
    """Every registered user with their uploads, most prolific first."""
    users = []
    for user in UserRepository.get_all():
        books = BookRepository.get_by_uploader(user.username)
        users.append({
            **user.to_dict(),
            "createdAt": isoformat_utc(user.created_at),
            "uploadCount": len(books),
            "books": [book_payload(book) for book in books],
        })
    # sorted() is stable, registration order breaks ties
    return sorted(users, key=lambda u: u["uploadCount"], reverse=True)
