"""
API Response Utilities - Standardized error handling and responses

Error bodies always carry an `error` string, which the SPA shows verbatim.
"""

from flask import jsonify
from functools import wraps
from werkzeug.exceptions import HTTPException
import logging

from zimshelf.exceptions import ZimShelfException

logger = logging.getLogger(__name__)


# API Error Codes
class ErrorCode:
    SUCCESS = "SUCCESS"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    MAINTENANCE = "MAINTENANCE"


DEFAULT_MESSAGES = {
    ErrorCode.NOT_FOUND: "Resource not found",
    ErrorCode.VALIDATION_ERROR: "Invalid request parameters",
    ErrorCode.INTERNAL_ERROR: "An unexpected error occurred",
    ErrorCode.UNAUTHORIZED: "Authentication required",
    ErrorCode.MAINTENANCE: "Site is under maintenance",
}


def success_response(data=None, message=None, status_code=200):
    """
    Standard success response for action endpoints: {"success": true, **data}
    """
    response = {"success": True}

    if data is not None:
        response.update(data)

    if message:
        response["message"] = message

    return jsonify(response), status_code


def error_response(error_code=ErrorCode.INTERNAL_ERROR, message=None, details=None, status_code=400, log_error=True, extra=None):
    """
    Standard error response format for API endpoints
    """
    response = {
        "success": False,
        "code": error_code,
        "error": message or DEFAULT_MESSAGES.get(error_code, "Request failed"),
    }

    if details:
        response["details"] = details

    if extra:
        response.update(extra)

    if log_error and error_code == ErrorCode.INTERNAL_ERROR:
        logger.error(f"{error_code}: {message} | Details: {details}")

    return jsonify(response), status_code


def handle_api_errors(f):
    """
    Decorator to standardize error handling for API endpoints
    Each handler catches its own failures and answers with a JSON error body
    """

    @wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except ZimShelfException as e:
            if e.status_code >= 500:
                logger.error(f"{f.__name__} failed: {e.message}")
            return error_response(e.code, message=e.message, status_code=e.status_code, log_error=False)
        except HTTPException:
            raise
        except ValueError as e:
            return error_response(ErrorCode.VALIDATION_ERROR, message=str(e), status_code=400)
        except Exception as e:
            logger.error(f"Unhandled exception in {f.__name__}: {e}", exc_info=True)
            return error_response(
                ErrorCode.INTERNAL_ERROR,
                message="An unexpected error occurred",
                status_code=500,
            )

    return wrapper

