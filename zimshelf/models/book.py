"""
Model: Book
Metadata of an uploaded ebook. The file itself lives on the CDN.
"""

from zimshelf.db import db
from zimshelf.utils import now_utc, isoformat_utc, sanitize_cover_url


class Book(db.Model):
    __tablename__ = "books"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(500), nullable=False)
    author = db.Column(db.String(300))
    book_type = db.Column(db.String(50), index=True)
    curriculum = db.Column(db.String(50), index=True)
    level = db.Column(db.String(20), index=True)
    form = db.Column(db.String(50))
    year = db.Column(db.String(10))
    exam_session = db.Column(db.String(20))
    description = db.Column(db.Text)
    tags = db.Column(db.JSON, default=list)

    # Set once by the upload pipeline
    file_url = db.Column(db.String(1000), nullable=False)
    file_name = db.Column(db.String(500), nullable=False)
    file_size = db.Column(db.BigInteger, nullable=False)

    cover_url = db.Column(db.String(1000))
    downloads = db.Column(db.Integer, nullable=False, default=0)
    uploaded_by = db.Column(db.String(100), nullable=False, index=True)
    uploaded_at = db.Column(db.DateTime(timezone=True), nullable=False, default=now_utc, index=True)

    __table_args__ = (
        db.CheckConstraint("downloads >= 0", name="ck_books_downloads_non_negative"),
        # Trending and most-downloaded listings
        db.Index("idx_books_uploaded_downloads", "uploaded_at", "downloads"),
    )

    def to_dict(self, cover_fallback=None, legacy_hosts=()):
        cover_url = self.cover_url
        if cover_fallback:
            cover_url = sanitize_cover_url(cover_url, cover_fallback, legacy_hosts)
        return {
            "_id": str(self.id),
            "title": self.title,
            "author": self.author,
            "bookType": self.book_type,
            "curriculum": self.curriculum,
            "level": self.level,
            "form": self.form,
            "year": self.year,
            "examSession": self.exam_session,
            "description": self.description,
            "tags": list(self.tags or []),
            "fileUrl": self.file_url,
            "fileName": self.file_name,
            "fileSize": self.file_size,
            "coverUrl": cover_url,
            "downloads": self.downloads,
            "uploadedBy": self.uploaded_by,
            "uploadedAt": isoformat_utc(self.uploaded_at),
        }

    def __repr__(self):
        return f"<Book {self.title}>"
