"""Download log model.

One row per download, used for the daily analytics. Kept apart from
`Book.downloads` and written in its own commit; rows outlive deleted books.
"""

from zimshelf.db import db
from zimshelf.utils import now_utc


class DownloadLog(db.Model):
    __tablename__ = "downloads"

    id = db.Column(db.Integer, primary_key=True)
    book_id = db.Column(db.Integer, nullable=False, index=True)
    downloaded_at = db.Column(db.DateTime(timezone=True), default=now_utc, index=True)
