from flask import Blueprint, request, jsonify
from flask_login import LoginManager, login_user, logout_user, current_user, login_required
from werkzeug.security import generate_password_hash, check_password_hash
from sqlalchemy.exc import IntegrityError
import logging

from zimshelf.api_responses import success_response, error_response, handle_api_errors, ErrorCode
from zimshelf.exceptions import AuthenticationException, ValidationException
from zimshelf.library import book_payload
from zimshelf.repositories.admin_repository import AdminRepository
from zimshelf.repositories.book_repository import BookRepository
from zimshelf.repositories.user_repository import UserRepository
from zimshelf.repositories.userdownload_repository import UserDownloadRepository
from zimshelf.constants import USER_DOWNLOADS_LIMIT
from zimshelf.utils import sanitize_sensitive_data

# Retrieve main logger
logger = logging.getLogger("main")

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 6

auth_blueprint = Blueprint("auth", __name__, url_prefix="/api/auth")

login_manager = LoginManager()


@login_manager.user_loader
def load_user(user_id):
    """Load user for Flask-Login"""
    try:
        return UserRepository.get_by_id(user_id)
    except (TypeError, ValueError):
        return None


@login_manager.unauthorized_handler
def unauthorized_json():
    return error_response(ErrorCode.UNAUTHORIZED, message="Unauthorized. Please login.", status_code=401)


def hash_password(password):
    return generate_password_hash(password, method="pbkdf2:sha256")


def validate_credentials(data):
    """Pull username/password out of a JSON body, raising on anything missing."""
    if not isinstance(data, dict):
        raise ValidationException("Username and password required")
    username = data.get("username")
    password = data.get("password")
    if not isinstance(username, str) or not isinstance(password, str):
        raise ValidationException("Username and password required")
    username = username.strip()
    if not username or not password:
        raise ValidationException("Username and password required")
    return username, password


def create_user(username, password):
    if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
        raise ValidationException(
            f"Username must be between {USERNAME_MIN_LENGTH} and {USERNAME_MAX_LENGTH} characters"
        )
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationException(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    if UserRepository.get_by_username(username):
        raise ValidationException("Username already exists")

    try:
        user = UserRepository.create(username=username, password=hash_password(password))
    except IntegrityError:
        # Lost a race against a concurrent signup with the same name
        raise ValidationException("Username already exists")
    logger.info(f"Created student account {username}")
    return user


def authenticate_user(username, password):
    user = UserRepository.get_by_username(username)
    if not user or not check_password_hash(user.password, password):
        logger.warning(f"Incorrect login for user {username}")
        raise AuthenticationException("Invalid credentials")
    return user


def init_admin(admin_settings):
    """Seed the admin account from configuration if it does not exist yet."""
    username = admin_settings.get("username")
    password = admin_settings.get("password")
    if not username or not password:
        logger.warning("No admin password configured, admin login is disabled.")
        return None

    admin = AdminRepository.get_by_username(username)
    if admin:
        return admin

    admin = AdminRepository.create(username=username, password=hash_password(password))
    logger.info(f"Admin user {username} initialized")
    return admin


def _session_payload(user):
    payload = user.to_dict()
    return {**payload, "user": payload}


@auth_blueprint.route("/signup", methods=["POST"])
@handle_api_errors
def signup():
    username, password = validate_credentials(request.get_json(silent=True))
    user = create_user(username, password)
    login_user(user)
    return success_response(_session_payload(user))


@auth_blueprint.route("/login", methods=["POST"])
@handle_api_errors
def login():
    data = request.get_json(silent=True)
    logger.debug(f"Login attempt: {sanitize_sensitive_data(data or {})}")
    username, password = validate_credentials(data)
    user = authenticate_user(username, password)

    logger.info(f"Successful login for user {username}")
    login_user(user)
    return success_response(_session_payload(user))


@auth_blueprint.route("/logout", methods=["POST"])
def logout():
    logout_user()
    return success_response()


@auth_blueprint.route("/me")
def me():
    if not current_user.is_authenticated:
        return error_response(ErrorCode.UNAUTHORIZED, message="Not authenticated", status_code=401)
    return jsonify(current_user.to_dict())


@auth_blueprint.route("/my-books")
@login_required
@handle_api_errors
def my_books():
    books = BookRepository.get_by_uploader(current_user.username)
    return jsonify([book_payload(book) for book in books])


@auth_blueprint.route("/my-downloads")
@login_required
@handle_api_errors
def my_downloads():
    downloads = UserDownloadRepository.get_recent_for_user(current_user.id, limit=USER_DOWNLOADS_LIMIT)
    return jsonify([download.to_dict() for download in downloads])
