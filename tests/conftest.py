"""
Pytest fixtures and configuration for ZimShelf tests
"""
import io
from datetime import timedelta

import pytest
from PyPDF2 import PdfWriter

from zimshelf.app import create_app
from zimshelf.exceptions import StorageException
from zimshelf.repositories.book_repository import BookRepository
from zimshelf.utils import now_utc

ADMIN_USERNAME = 'admin'
ADMIN_PASSWORD = 'admin-pass'
FALLBACK_COVER = 'https://covers.example.test/pdf_icon.png'
LEGACY_HOST = 'cdn.legacy.example.test'


class FakeCdn:
    """In-memory stand-in for a CDN provider."""

    name = 'fake'

    def __init__(self):
        self.uploads = []
        self.fail_files = False
        self.fail_thumbnails = False

    def upload_file(self, data, file_name, content_type):
        if self.fail_files:
            raise StorageException("Fake file upload error: CDN unreachable")
        self.uploads.append(('file', file_name, content_type, data))
        return f'https://files.example.test/{file_name}'

    def upload_thumbnail(self, data, file_name):
        if self.fail_thumbnails:
            raise StorageException("Fake thumbnail upload error: CDN unreachable")
        self.uploads.append(('thumbnail', file_name, 'image/jpeg', data))
        return f'https://files.example.test/{file_name}'

    def kinds(self):
        return [upload[0] for upload in self.uploads]


def build_pdf(pages=1):
    """Bytes of a valid PDF with `pages` blank pages."""
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=200, height=300)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


@pytest.fixture
def settings():
    """Settings dict handed to the app factory, merged over the defaults"""
    return {
        'database': {'uri': 'sqlite://'},
        'storage': {
            'fallback_cover_url': FALLBACK_COVER,
            'thumbnail_fallback_url': FALLBACK_COVER,
            'legacy_cover_hosts': [LEGACY_HOST],
            'proxy_base_url': 'https://files.example.test',
        },
        'admin': {'username': ADMIN_USERNAME, 'password': ADMIN_PASSWORD},
    }


@pytest.fixture
def fake_cdn():
    return FakeCdn()


@pytest.fixture
def app(settings, fake_cdn):
    _app = create_app(
        config={'TESTING': True, 'SECRET_KEY': 'test-secret-key'},
        settings=settings,
    )
    _app.extensions['zimshelf.cdn'] = fake_cdn
    yield _app

    with _app.app_context():
        from zimshelf.db import db
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def pdf_bytes():
    return build_pdf(pages=3)


@pytest.fixture
def signup(client):
    """Create a student account on `client` and leave it logged in."""
    def _signup(username='alice', password='secret1', test_client=None):
        response = (test_client or client).post(
            '/api/auth/signup', json={'username': username, 'password': password}
        )
        assert response.status_code == 200, response.get_json()
        return response.get_json()
    return _signup


@pytest.fixture
def admin_token(client):
    response = client.post('/api/admin/login', json={'username': ADMIN_USERNAME, 'password': ADMIN_PASSWORD})
    assert response.status_code == 200
    return response.get_json()['token']


@pytest.fixture
def admin_headers(admin_token):
    return {'Authorization': f'Bearer {admin_token}'}


@pytest.fixture
def make_book(app):
    """Insert a Book row directly and return its id as the API exposes it."""
    def _make_book(title='Algebra Notes', age_days=0, **kwargs):
        values = {
            'title': title,
            'file_url': f'https://files.example.test/{title.lower().replace(" ", "_")}.pdf',
            'file_name': f'{title.lower().replace(" ", "_")}.pdf',
            'file_size': 1024,
            'downloads': 0,
            'uploaded_by': 'Anonymous',
            'uploaded_at': now_utc() - timedelta(days=age_days),
            'tags': [],
        }
        values.update(kwargs)
        with app.app_context():
            book = BookRepository.create(**values)
            return str(book.id)
    return _make_book
