"""Book ingestion pipeline.

validate -> derive storage name -> upload to CDN -> optional placeholder
cover -> persist metadata. Metadata is written last, so a failed upload never
leaves a Book row behind.
"""

import json

import structlog
from sqlalchemy.exc import SQLAlchemyError

from zimshelf.constants import ALLOWED_MIME_TYPES, BOOK_TYPES, CURRICULA, EXAM_SESSIONS, LEVELS, MIME_PDF
from zimshelf.exceptions import DatabaseException, StorageException, ThumbnailException, ValidationException, ZimShelfException
from zimshelf.metrics import thumbnail_fallbacks_total, uploads_total
from zimshelf.repositories.book_repository import BookRepository
from zimshelf.thumbnails import generate_pdf_thumbnail
from zimshelf.utils import build_storage_filename, file_extension, format_size_py

logger = structlog.get_logger('upload')

# form field -> (model attribute, allowed values or None)
OPTIONAL_FIELDS = {
    'author': ('author', None),
    'bookType': ('book_type', BOOK_TYPES),
    'curriculum': ('curriculum', CURRICULA),
    'level': ('level', LEVELS),
    'form': ('form', None),
    'year': ('year', None),
    'examSession': ('exam_session', EXAM_SESSIONS),
    'description': ('description', None),
    'coverUrl': ('cover_url', None),
}


def parse_tags(raw):
    """Tags arrive as a JSON array of strings in a multipart field."""
    if raw is None or raw == '':
        return []
    try:
        tags = json.loads(raw)
    except (TypeError, ValueError):
        raise ValidationException("Tags must be a JSON array of strings")
    if not isinstance(tags, list) or not all(isinstance(tag, str) for tag in tags):
        raise ValidationException("Tags must be a JSON array of strings")
    return tags


def parse_book_metadata(form):
    """Validate descriptive fields; empty strings count as absent."""
    title = (form.get('title') or '').strip()
    if not title:
        raise ValidationException("Book title is required")

    metadata = {'title': title, 'tags': parse_tags(form.get('tags'))}
    for field, (attribute, allowed) in OPTIONAL_FIELDS.items():
        value = form.get(field)
        value = value.strip() if isinstance(value, str) else value
        if not value:
            continue
        if allowed is not None and value not in allowed:
            raise ValidationException(f"Invalid {field}: {value}. Expected one of: {', '.join(allowed)}")
        metadata[attribute] = value
    return metadata


class UploadService:
    def __init__(self, provider, upload_settings, storage_settings):
        self.provider = provider
        self.max_size = int(upload_settings['max_size'])
        self.allowed_mime_types = set(upload_settings.get('allowed_mime_types') or ALLOWED_MIME_TYPES)
        self.thumbnail_fallback_url = storage_settings['thumbnail_fallback_url']

    def read_file(self, file):
        """Check presence, type and size of the uploaded file; returns its bytes."""
        if file is None or not file.filename:
            raise ValidationException("No file uploaded")

        if file.mimetype not in self.allowed_mime_types:
            raise ValidationException(
                "Invalid file type. Only PDF, EPUB, DOC, DOCX, PPT, and PPTX files are allowed."
            )

        data = file.read()
        if not data:
            raise ValidationException("Uploaded file is empty")
        if len(data) > self.max_size:
            raise ValidationException(f"File too large. Maximum size is {format_size_py(self.max_size)}")
        return data

    def cover_for_pdf(self, data, base_name):
        """Upload a placeholder cover, or return the static fallback on any failure."""
        try:
            thumbnail = generate_pdf_thumbnail(data)
            return self.provider.upload_thumbnail(thumbnail, f"{base_name}_thumb.jpg")
        except (ThumbnailException, StorageException) as e:
            logger.warning("thumbnail_fallback", reason=e.message)
        except Exception as e:
            logger.warning("thumbnail_fallback", reason=str(e), exc_info=True)
        thumbnail_fallbacks_total.inc()
        return self.thumbnail_fallback_url

    def ingest(self, file, form, uploaded_by):
        """Run the whole pipeline and return the persisted Book."""
        try:
            data = self.read_file(file)
            metadata = parse_book_metadata(form)
        except ValidationException:
            uploads_total.labels(status="rejected").inc()
            raise

        try:
            extension = file_extension(file.filename) or ALLOWED_MIME_TYPES.get(file.mimetype, 'bin')
            base_name, file_name = build_storage_filename(metadata['title'], extension)

            file_url = self.provider.upload_file(data, file_name, file.mimetype)

            if not metadata.get('cover_url') and file.mimetype == MIME_PDF:
                metadata['cover_url'] = self.cover_for_pdf(data, base_name)

            book = BookRepository.create(
                **metadata,
                file_url=file_url,
                file_name=file_name,
                file_size=len(data),
                downloads=0,
                uploaded_by=uploaded_by,
            )
        except ZimShelfException:
            uploads_total.labels(status="failed").inc()
            raise
        except SQLAlchemyError as e:
            uploads_total.labels(status="failed").inc()
            raise DatabaseException(f"Could not save book metadata: {e}") from e

        uploads_total.labels(status="success").inc()
        logger.info("book_uploaded", book_id=book.id, title=book.title, uploaded_by=uploaded_by, size=book.file_size)
        return book
