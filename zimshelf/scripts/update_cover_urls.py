"""
Backfill cover URLs.

Points every book whose coverUrl is empty, null or hosted on a retired CDN at
the fallback cover image.

    python -m zimshelf.scripts.update_cover_urls [--fallback-url URL] [--legacy-host HOST ...]
"""
import argparse
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from zimshelf.app import create_app
from zimshelf.repositories.book_repository import BookRepository

logger = logging.getLogger(__name__)


def update_cover_urls(app, fallback_url=None, legacy_hosts=None):
    """Run the backfill inside `app`; returns the number of books changed."""
    storage = app.config["ZIMSHELF_SETTINGS"]["storage"]
    fallback_url = fallback_url or storage["fallback_cover_url"]
    if legacy_hosts is None:
        legacy_hosts = storage.get("legacy_cover_hosts") or []

    with app.app_context():
        changed = BookRepository.backfill_cover_urls(fallback_url, tuple(legacy_hosts))

    logger.info(f"Updated {changed} books to cover {fallback_url}")
    return changed


def main(argv=None):
    parser = argparse.ArgumentParser(description="Replace missing or legacy book cover URLs with the fallback cover")
    parser.add_argument("--fallback-url", help="Cover URL to write (defaults to storage.fallback_cover_url)")
    parser.add_argument(
        "--legacy-host",
        action="append",
        dest="legacy_hosts",
        help="CDN host whose covers are replaced; repeatable (defaults to storage.legacy_cover_hosts)",
    )
    args = parser.parse_args(argv)

    app = create_app()
    try:
        changed = update_cover_urls(app, args.fallback_url, args.legacy_hosts)
    except SQLAlchemyError as e:
        logger.error(f"Failed to update cover URLs: {e}")
        print("FAILURE")
        return 1

    print(f"SUCCESS: {changed} books updated")
    return 0


if __name__ == "__main__":
    sys.exit(main())
