"""
Book Routes - upload, browsing, download tracking and the CDN file proxy
"""

from flask import Blueprint, Response, jsonify, request, stream_with_context
from flask_login import current_user, login_required
import requests
import structlog

from zimshelf.api_responses import ErrorCode, error_response, handle_api_errors, success_response
from zimshelf.cdn import get_storage_provider
from zimshelf.constants import ANONYMOUS_UPLOADER, LEVELS
from zimshelf.exceptions import NotFoundException
from zimshelf.library import book_payload, current_settings
from zimshelf.metrics import downloads_total
from zimshelf.repositories.book_repository import SORT_DOWNLOADS, SORT_NEWEST, BookRepository
from zimshelf.repositories.maintenance_repository import MaintenanceRepository
from zimshelf.repositories.userdownload_repository import UserDownloadRepository
from zimshelf.repositories.visitor_repository import VisitorRepository
from zimshelf.services.upload_service import UploadService
from zimshelf.utils import get_client_ip

logger = structlog.get_logger("books")

books_bp = Blueprint("books", __name__, url_prefix="/api")

# Web routes (non-API)
files_bp = Blueprint("files", __name__)

PROXY_CHUNK_SIZE = 64 * 1024


def _limit_arg(default):
    limit = request.args.get("limit", type=int)
    if limit is None:
        return default
    if limit <= 0:
        raise ValueError("limit must be a positive integer")
    return limit


def _books_json(books):
    return jsonify([book_payload(book) for book in books])


@books_bp.route("/books/upload", methods=["POST"])
@handle_api_errors
def upload_book():
    settings = current_settings()
    uploaded_by = current_user.username if current_user.is_authenticated else ANONYMOUS_UPLOADER

    service = UploadService(get_storage_provider(), settings["uploads"], settings["storage"])
    book = service.ingest(request.files.get("file"), request.form, uploaded_by)
    return jsonify(book_payload(book))


@books_bp.route("/books", methods=["GET"])
@handle_api_errors
def list_books():
    sort = request.args.get("sort", SORT_NEWEST)
    if sort not in (SORT_NEWEST, SORT_DOWNLOADS):
        raise ValueError(f"Invalid sort: {sort}")

    books = BookRepository.get_all(
        level=request.args.get("level"),
        curriculum=request.args.get("curriculum"),
        book_type=request.args.get("bookType"),
        uploaded_by=request.args.get("uploadedBy"),
        search=(request.args.get("search") or "").strip() or None,
        sort=sort,
    )
    return _books_json(books)


@books_bp.route("/books/level/<level>", methods=["GET"])
@handle_api_errors
def books_by_level(level):
    if level not in LEVELS:
        return error_response(ErrorCode.VALIDATION_ERROR, message="Invalid level", status_code=400)
    return _books_json(BookRepository.get_by_level(level))


@books_bp.route("/books/trending", methods=["GET"])
@handle_api_errors
def trending_books():
    books_settings = current_settings()["books"]
    books = BookRepository.get_trending(
        limit=_limit_arg(books_settings["trending_limit"]),
        days=books_settings["trending_days"],
    )
    return _books_json(books)


@books_bp.route("/books/most-downloaded", methods=["GET"])
@handle_api_errors
def most_downloaded_books():
    limit = _limit_arg(current_settings()["books"]["most_downloaded_limit"])
    return _books_json(BookRepository.get_most_downloaded(limit))


@books_bp.route("/books/my-uploads", methods=["GET"])
@login_required
@handle_api_errors
def my_uploads():
    return _books_json(BookRepository.get_by_uploader(current_user.username))


@books_bp.route("/top-uploaders", methods=["GET"])
@handle_api_errors
def top_uploaders():
    limit = _limit_arg(current_settings()["books"]["top_uploaders_limit"])
    return jsonify(BookRepository.get_top_uploaders(limit))


@books_bp.route("/books/<book_id>", methods=["GET"])
@handle_api_errors
def get_book(book_id):
    book = BookRepository.get_by_id(book_id)
    if not book:
        raise NotFoundException("Book not found")
    return jsonify(book_payload(book))


@books_bp.route("/books/<book_id>/download", methods=["POST"])
@handle_api_errors
def download_book(book_id):
    """Count a download and hand back the CDN URL."""
    book = BookRepository.get_by_id(book_id)
    if not book:
        raise NotFoundException("Book not found")

    downloads = BookRepository.increment_downloads(book.id)
    if downloads is None:
        # Deleted between the lookup and the update
        raise NotFoundException("Book not found")
    downloads_total.inc()

    if current_user.is_authenticated:
        UserDownloadRepository.create(
            user_id=current_user.id,
            username=current_user.username,
            book_id=book.id,
            book_title=book.title,
        )

    logger.info("book_downloaded", book_id=book.id, downloads=downloads)
    return success_response({"fileUrl": book.file_url, "fileName": book.file_name, "downloads": downloads})


@books_bp.route("/track-visit", methods=["POST"])
@handle_api_errors
def track_visit():
    VisitorRepository.create(ip=get_client_ip(request), user_agent=request.headers.get("User-Agent", "")[:512])
    return success_response()


@books_bp.route("/maintenance", methods=["GET"])
@handle_api_errors
def get_maintenance():
    return jsonify(MaintenanceRepository.get())


def _disposition_filename(header):
    if not header or "filename=" not in header:
        return None
    return header.split("filename=", 1)[1].split(";", 1)[0].strip().strip('"') or None


@files_bp.route("/files/<file_id>", methods=["GET"])
def proxy_file(file_id):
    """Stream a CDN file back as an attachment under a friendlier name."""
    storage = current_settings()["storage"]
    upstream_url = f"{storage['proxy_base_url'].rstrip('/')}/{file_id}"
    logger.info("proxy_file", file_id=file_id)

    try:
        upstream = requests.get(upstream_url, stream=True, timeout=int(storage.get("proxy_timeout", 60)))
        upstream.raise_for_status()
    except requests.HTTPError as e:
        upstream.close()
        status = e.response.status_code if e.response is not None else None
        if status == 404:
            return error_response(
                ErrorCode.NOT_FOUND, message="File not found", details="The requested file does not exist", status_code=404
            )
        logger.error("proxy_file_failed", file_id=file_id, status=status)
        return error_response(ErrorCode.INTERNAL_ERROR, message="File retrieval failed", details=str(e), status_code=500)
    except requests.RequestException as e:
        logger.error("proxy_file_failed", file_id=file_id, error=str(e))
        return error_response(ErrorCode.INTERNAL_ERROR, message="File retrieval failed", details=str(e), status_code=500)

    filename = (
        request.args.get("name")
        or _disposition_filename(upstream.headers.get("Content-Disposition"))
        or file_id
    )

    headers = {
        "Content-Disposition": f'attachment; filename="{filename}"',
        "Cache-Control": "public, max-age=31536000",
    }
    if upstream.headers.get("Content-Length"):
        headers["Content-Length"] = upstream.headers["Content-Length"]

    def generate():
        try:
            for chunk in upstream.iter_content(chunk_size=PROXY_CHUNK_SIZE):
                if chunk:
                    yield chunk
        finally:
            upstream.close()

    return Response(
        stream_with_context(generate()),
        headers=headers,
        content_type=upstream.headers.get("Content-Type", "application/octet-stream"),
    )
