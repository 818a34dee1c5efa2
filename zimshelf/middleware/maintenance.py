"""
Maintenance Middleware - answers API traffic with 503 while the site is locked
"""
from flask import request
from sqlalchemy.exc import SQLAlchemyError
import logging

from zimshelf.api_responses import ErrorCode, error_response
from zimshelf.repositories.maintenance_repository import MaintenanceRepository

logger = logging.getLogger('main')

# Still reachable while locked
EXEMPT_PREFIXES = ('/api/admin/',)
EXEMPT_PATHS = ('/api/maintenance', '/api/health', '/api/health/live', '/api/metrics')


def is_exempt(path):
    if not path.startswith('/api/'):
        return True
    return path in EXEMPT_PATHS or path.startswith(EXEMPT_PREFIXES)


def maintenance_gate():
    """before_request hook; returning a response short-circuits the request."""
    if is_exempt(request.path):
        return None

    try:
        state = MaintenanceRepository.get()
    except SQLAlchemyError as e:
        logger.error(f"Could not read maintenance state: {e}")
        return None

    if not state['isLocked']:
        return None

    return error_response(
        ErrorCode.MAINTENANCE, message=state['message'] or None, status_code=503, extra={'maintenance': True}
    )


def init_maintenance(app):
    app.before_request(maintenance_gate)
