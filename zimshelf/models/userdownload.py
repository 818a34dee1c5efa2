"""Per-user download history, written only for logged-in downloads."""

from zimshelf.db import db
from zimshelf.utils import now_utc, isoformat_utc


class UserDownload(db.Model):
    __tablename__ = "user_downloads"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    username = db.Column(db.String(50), nullable=False)
    book_id = db.Column(db.Integer, nullable=False)
    book_title = db.Column(db.String(500))
    downloaded_at = db.Column(db.DateTime(timezone=True), default=now_utc)

    __table_args__ = (db.Index("idx_user_downloads_user_time", "user_id", "downloaded_at"),)

    def to_dict(self):
        return {
            "_id": str(self.id),
            "userId": str(self.user_id),
            "username": self.username,
            "bookId": str(self.book_id),
            "bookTitle": self.book_title,
            "downloadedAt": isoformat_utc(self.downloaded_at),
        }
