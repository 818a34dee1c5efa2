"""
Admin Routes - dashboard statistics, moderation and maintenance mode
"""

from flask import Blueprint, g, jsonify, request
from werkzeug.security import check_password_hash
import logging

from zimshelf.api_responses import handle_api_errors, success_response
from zimshelf.auth import validate_credentials
from zimshelf.constants import ADMIN_TOKEN_COOKIE, ADMIN_TOKEN_MAX_AGE
from zimshelf.exceptions import AuthenticationException, NotFoundException, ValidationException
from zimshelf.library import book_payload, get_users_with_uploads
from zimshelf.middleware.auth import admin_required, issue_admin_token
from zimshelf.repositories.admin_repository import AdminRepository
from zimshelf.repositories.book_repository import BookRepository
from zimshelf.repositories.maintenance_repository import MaintenanceRepository
from zimshelf.services.stats_service import get_site_stats
from zimshelf.utils import sanitize_sensitive_data

logger = logging.getLogger("main")

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.route("/login", methods=["POST"])
@handle_api_errors
def admin_login():
    data = request.get_json(silent=True)
    logger.debug(f"Admin login attempt: {sanitize_sensitive_data(data)}")
    username, password = validate_credentials(data)

    admin = AdminRepository.get_by_username(username)
    if not admin or not check_password_hash(admin.password, password):
        logger.warning(f"Incorrect admin login for {username}")
        raise AuthenticationException("Invalid credentials")

    token = issue_admin_token(admin)
    response, status = success_response({"token": token})
    response.set_cookie(
        ADMIN_TOKEN_COOKIE,
        token,
        max_age=ADMIN_TOKEN_MAX_AGE,
        httponly=True,
        secure=request.is_secure,
        samesite="Lax",
    )
    logger.info(f"Admin {username} logged in")
    return response, status


@admin_bp.route("/logout", methods=["POST"])
def admin_logout():
    response, status = success_response()
    response.delete_cookie(ADMIN_TOKEN_COOKIE)
    return response, status


@admin_bp.route("/stats", methods=["GET"])
@admin_required
@handle_api_errors
def admin_stats():
    return jsonify(get_site_stats(book_payload))


@admin_bp.route("/users-uploads", methods=["GET"])
@admin_required
@handle_api_errors
def users_uploads():
    return jsonify(get_users_with_uploads())


@admin_bp.route("/books/<book_id>", methods=["DELETE"])
@admin_required
@handle_api_errors
def delete_book(book_id):
    if not BookRepository.delete(book_id):
        raise NotFoundException("Book not found")
    logger.info(f"Book {book_id} deleted by admin {g.admin.username}")
    return success_response()


@admin_bp.route("/maintenance", methods=["PUT"])
@admin_required
@handle_api_errors
def set_maintenance():
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not isinstance(data.get("isLocked"), bool):
        raise ValidationException("isLocked (boolean) is required")

    message = data.get("message") or ""
    if not isinstance(message, str):
        raise ValidationException("message must be a string")

    state = MaintenanceRepository.set(data["isLocked"], message)
    logger.info(f"Maintenance mode {'enabled' if state['isLocked'] else 'disabled'} by {g.admin.username}")
    return success_response(state)
