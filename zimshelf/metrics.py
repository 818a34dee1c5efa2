from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from flask import Response, request
import logging
import time

logger = logging.getLogger('main')

# Database Metrics
db_books_total = Gauge("zimshelf_books_total", "Total number of books")
db_users_total = Gauge("zimshelf_users_total", "Total number of registered students")
db_visitors_total = Gauge("zimshelf_visitors_total", "Total number of logged visits")

# API Metrics
api_request_duration_seconds = Histogram(
    "zimshelf_api_request_duration_seconds", "API request duration", ["endpoint", "method"]
)

api_requests_total = Counter("zimshelf_api_requests_total", "Total API requests", ["endpoint", "method", "status_code"])

# Upload pipeline Metrics
uploads_total = Counter("zimshelf_uploads_total", "Book upload attempts", ["status"])

cdn_upload_duration_seconds = Histogram(
    "zimshelf_cdn_upload_duration_seconds", "Time spent uploading to the CDN", ["provider", "kind"]
)

thumbnail_fallbacks_total = Counter(
    "zimshelf_thumbnail_fallbacks_total", "PDF uploads that fell back to the default cover"
)

# Download Metrics
downloads_total = Counter("zimshelf_downloads_total", "Book downloads recorded")


def init_metrics(app):
    @app.route("/api/metrics")
    def metrics():
        update_db_metrics()
        return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)

    @app.before_request
    def start_timer():
        request.start_time = time.time()

    @app.after_request
    def record_request(response):
        duration = time.time() - getattr(request, "start_time", time.time())
        api_request_duration_seconds.labels(endpoint=request.endpoint or "unknown", method=request.method).observe(
            duration
        )
        api_requests_total.labels(
            endpoint=request.endpoint or "unknown", method=request.method, status_code=response.status_code
        ).inc()
        return response

    logger.info("Prometheus metrics initialized at /api/metrics")


def update_db_metrics():
    """Refresh table count gauges."""
    from sqlalchemy.exc import SQLAlchemyError
    from zimshelf.repositories.book_repository import BookRepository
    from zimshelf.repositories.user_repository import UserRepository
    from zimshelf.repositories.visitor_repository import VisitorRepository

    try:
        db_books_total.set(BookRepository.count())
        db_users_total.set(UserRepository.count())
        db_visitors_total.set(VisitorRepository.count())
    except SQLAlchemyError as e:
        logger.warning(f"Could not refresh database metrics: {e}")
