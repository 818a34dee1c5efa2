"""
Authentication Middleware - admin token issuing and checking
"""
from functools import wraps
from flask import request, current_app, g
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired
import logging

from zimshelf.api_responses import error_response, ErrorCode
from zimshelf.constants import ADMIN_TOKEN_COOKIE, ADMIN_TOKEN_MAX_AGE
from zimshelf.repositories.admin_repository import AdminRepository

logger = logging.getLogger('main')

ADMIN_TOKEN_SALT = 'admin-auth'


def _serializer():
    return URLSafeTimedSerializer(current_app.config['SECRET_KEY'], salt=ADMIN_TOKEN_SALT)


def issue_admin_token(admin):
    """Signed token carrying the admin id, valid for ADMIN_TOKEN_MAX_AGE seconds."""
    return _serializer().dumps({'admin_id': admin.id, 'username': admin.username})


def verify_admin_token(token):
    """Return the Admin behind a token, or None if it is invalid, expired or orphaned."""
    if not token:
        return None
    try:
        payload = _serializer().loads(token, max_age=ADMIN_TOKEN_MAX_AGE)
    except SignatureExpired:
        logger.info("Expired admin token presented")
        return None
    except BadSignature:
        logger.warning("Invalid admin token presented")
        return None

    if not isinstance(payload, dict) or 'admin_id' not in payload:
        return None
    return AdminRepository.get_by_id(payload['admin_id'])


def get_request_admin_token():
    """Admin token from the cookie, else from an Authorization: Bearer header."""
    token = request.cookies.get(ADMIN_TOKEN_COOKIE)
    if token:
        return token
    auth_header = request.headers.get('Authorization', '')
    if auth_header.lower().startswith('bearer '):
        return auth_header[7:].strip()
    return None


def admin_required(f):
    """Decorator for admin-only endpoints; sets g.admin for the handler."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        admin = verify_admin_token(get_request_admin_token())
        if admin is None:
            return error_response(ErrorCode.UNAUTHORIZED, message="Admin authentication required", status_code=401)
        g.admin = admin
        return f(*args, **kwargs)
    return decorated_function
