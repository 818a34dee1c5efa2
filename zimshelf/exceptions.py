"""
ZimShelf - Custom Exceptions and Exception Handlers
"""
import structlog
from flask import jsonify
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

logger = structlog.get_logger('exceptions')


class ZimShelfException(Exception):
    """Base exception for ZimShelf"""
    status_code = 400

    def __init__(self, message: str, code: str = "ZIMSHELF_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)

    def to_dict(self):
        return {
            'success': False,
            'code': self.code,
            'error': self.message
        }


class DatabaseException(ZimShelfException):
    """Database-related exceptions"""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message, code="DATABASE_ERROR")
        logger.error(f"Database error: {message}")


class StorageException(ZimShelfException):
    """CDN upload or retrieval failures"""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message, code="STORAGE_ERROR")
        logger.error(f"Storage error: {message}")


class ThumbnailException(ZimShelfException):
    """Placeholder cover generation failures"""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message, code="THUMBNAIL_ERROR")
        logger.warning(f"Thumbnail error: {message}")


class ValidationException(ZimShelfException):
    """Validation-related exceptions"""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message, code="VALIDATION_ERROR")
        logger.warning(f"Validation error: {message}")


class AuthenticationException(ZimShelfException):
    """Authentication-related exceptions"""
    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, code="UNAUTHORIZED")
        logger.warning(f"Authentication error: {message}")


class NotFoundException(ZimShelfException):
    """Unknown resource"""
    status_code = 404

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, code="NOT_FOUND")


def register_exception_handlers(app):
    """Register exception handlers with Flask app"""

    @app.errorhandler(RequestEntityTooLarge)
    def handle_request_too_large(e):
        """Oversized uploads are a validation failure for API clients"""
        logger.warning("Rejected oversized request body")
        return jsonify({
            'success': False,
            'code': 'VALIDATION_ERROR',
            'error': 'File too large'
        }), 400

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        """Handle HTTP exceptions"""
        return jsonify({
            'success': False,
            'code': e.name.upper().replace(' ', '_'),
            'error': e.description
        }), e.code

    @app.errorhandler(ZimShelfException)
    def handle_zimshelf_exception(e):
        """Handle ZimShelf custom exceptions raised outside handle_api_errors"""
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(Exception)
    def handle_generic_exception(e):
        """Handle all other exceptions"""
        logger.error(f"Unhandled exception: {e}", exc_info=True)
        return jsonify({
            'success': False,
            'code': 'INTERNAL_ERROR',
            'error': 'An unexpected error occurred'
        }), 500
