"""
Tests for the book upload pipeline
"""
import io
import re

import pytest
from werkzeug.datastructures import FileStorage, MultiDict

from zimshelf.constants import MIME_PDF
from zimshelf.exceptions import StorageException, ValidationException
from zimshelf.repositories.book_repository import BookRepository
from zimshelf.services.upload_service import UploadService, parse_book_metadata, parse_tags
from conftest import FALLBACK_COVER

DOCX = 'application/vnd.openxmlformats-officedocument.wordprocessingml.document'


def file_storage(data, filename='notes.pdf', mimetype=MIME_PDF):
    return FileStorage(stream=io.BytesIO(data), filename=filename, content_type=mimetype)


def upload(client, data, filename='algebra.pdf', mimetype=MIME_PDF, **fields):
    form = {'title': 'Algebra Notes'}
    form.update(fields)
    form['file'] = (io.BytesIO(data), filename, mimetype)
    return client.post('/api/books/upload', data=form, content_type='multipart/form-data')


@pytest.fixture
def service(app, fake_cdn):
    settings = app.config['ZIMSHELF_SETTINGS']
    return UploadService(fake_cdn, settings['uploads'], settings['storage'])


class TestMetadataParsing:
    """Tests for form field validation"""

    def test_title_is_required(self):
        with pytest.raises(ValidationException, match='Book title is required'):
            parse_book_metadata(MultiDict({'title': '   '}))

    def test_optional_fields_may_be_absent_or_empty(self):
        metadata = parse_book_metadata(MultiDict({'title': 'Algebra Notes', 'author': '', 'level': ''}))
        assert metadata == {'title': 'Algebra Notes', 'tags': []}

    def test_fields_map_to_model_attributes(self):
        metadata = parse_book_metadata(MultiDict({
            'title': 'June 2019 Paper 1',
            'bookType': 'Past Exam Paper',
            'curriculum': 'ZIMSEC',
            'level': 'O-Level',
            'examSession': 'June',
            'year': '2019',
            'tags': '["maths", "paper 1"]',
        }))
        assert metadata['book_type'] == 'Past Exam Paper'
        assert metadata['exam_session'] == 'June'
        assert metadata['tags'] == ['maths', 'paper 1']

    @pytest.mark.parametrize('field,value', [
        ('level', 'Grade 7'),
        ('curriculum', 'IB'),
        ('bookType', 'Novel'),
        ('examSession', 'March'),
    ])
    def test_unknown_enum_values_rejected(self, field, value):
        with pytest.raises(ValidationException, match=f'Invalid {field}'):
            parse_book_metadata(MultiDict({'title': 'Algebra Notes', field: value}))

    @pytest.mark.parametrize('raw', ['not json', '{"a": 1}', '[1, 2]'])
    def test_malformed_tags_rejected(self, raw):
        with pytest.raises(ValidationException):
            parse_tags(raw)


class TestUploadService:
    """Tests for UploadService against the in-memory CDN"""

    def test_invalid_mime_rejected_before_cdn(self, app, service, fake_cdn):
        with app.app_context():
            with pytest.raises(ValidationException, match='Invalid file type'):
                service.ingest(file_storage(b'hello', 'notes.txt', 'text/plain'), MultiDict({'title': 'Notes'}), 'alice')
        assert fake_cdn.uploads == []

    def test_missing_file_rejected(self, app, service):
        with app.app_context():
            with pytest.raises(ValidationException, match='No file uploaded'):
                service.ingest(None, MultiDict({'title': 'Notes'}), 'alice')

    def test_oversized_file_rejected(self, app, fake_cdn):
        settings = app.config['ZIMSHELF_SETTINGS']
        small = UploadService(fake_cdn, {'max_size': 10}, settings['storage'])
        with app.app_context():
            with pytest.raises(ValidationException, match='File too large'):
                small.ingest(file_storage(b'x' * 11, 'notes.docx', DOCX), MultiDict({'title': 'Notes'}), 'alice')
        assert fake_cdn.uploads == []

    def test_pdf_gets_generated_cover(self, app, service, fake_cdn, pdf_bytes):
        with app.app_context():
            book = service.ingest(file_storage(pdf_bytes), MultiDict({'title': 'Algebra Notes'}), 'alice')

            assert fake_cdn.kinds() == ['file', 'thumbnail']
            file_name = fake_cdn.uploads[0][1]
            assert re.fullmatch(r'algebra_notes_\d+\.pdf', file_name)
            assert fake_cdn.uploads[1][1] == file_name.replace('.pdf', '_thumb.jpg')
            assert fake_cdn.uploads[1][3][:2] == b'\xff\xd8'

            assert book.file_url == f'https://files.example.test/{file_name}'
            assert book.cover_url.endswith('_thumb.jpg')
            assert book.file_size == len(pdf_bytes)
            assert book.downloads == 0

    def test_thumbnail_upload_failure_falls_back(self, app, service, fake_cdn, pdf_bytes):
        fake_cdn.fail_thumbnails = True
        with app.app_context():
            book = service.ingest(file_storage(pdf_bytes), MultiDict({'title': 'Algebra Notes'}), 'alice')
            assert book.cover_url == FALLBACK_COVER

    def test_unreadable_pdf_falls_back(self, app, service, fake_cdn):
        with app.app_context():
            book = service.ingest(file_storage(b'%PDF-garbage'), MultiDict({'title': 'Broken'}), 'alice')
            assert book.cover_url == FALLBACK_COVER
        assert fake_cdn.kinds() == ['file']

    def test_supplied_cover_skips_thumbnail(self, app, service, fake_cdn, pdf_bytes):
        form = MultiDict({'title': 'Algebra Notes', 'coverUrl': 'https://img.example.test/cover.png'})
        with app.app_context():
            book = service.ingest(file_storage(pdf_bytes), form, 'alice')
            assert book.cover_url == 'https://img.example.test/cover.png'
        assert fake_cdn.kinds() == ['file']

    def test_non_pdf_has_no_thumbnail(self, app, service, fake_cdn):
        with app.app_context():
            book = service.ingest(file_storage(b'docx-bytes', 'notes.docx', DOCX), MultiDict({'title': 'Notes'}), 'alice')
            assert book.cover_url is None
            assert book.file_name.endswith('.docx')
        assert fake_cdn.kinds() == ['file']

    def test_unusable_filename_extension_uses_mime_type(self, app, service, fake_cdn):
        with app.app_context():
            book = service.ingest(file_storage(b'docx-bytes', 'a.docx/../x', DOCX), MultiDict({'title': 'Notes'}), 'alice')
            assert re.fullmatch(r'notes_\d+\.docx', book.file_name)
            book_name = book.file_name
        assert fake_cdn.uploads[0][1] == book_name

    def test_cdn_failure_leaves_no_metadata(self, app, service, fake_cdn, pdf_bytes):
        fake_cdn.fail_files = True
        with app.app_context():
            with pytest.raises(StorageException):
                service.ingest(file_storage(pdf_bytes), MultiDict({'title': 'Algebra Notes'}), 'alice')
            assert BookRepository.count() == 0


class TestUploadEndpoint:
    """Tests for POST /api/books/upload"""

    def test_anonymous_upload(self, client, pdf_bytes):
        response = upload(client, pdf_bytes)
        data = response.get_json()

        assert response.status_code == 200
        assert data['uploadedBy'] == 'Anonymous'
        assert data['downloads'] == 0
        assert data['title'] == 'Algebra Notes'

    def test_upload_attributed_to_session_user(self, client, signup, pdf_bytes):
        signup('alice', 'secret1')
        data = upload(client, pdf_bytes).get_json()
        assert data['uploadedBy'] == 'alice'

    def test_metadata_round_trip(self, client, pdf_bytes):
        created = upload(
            client,
            pdf_bytes,
            title='June 2019 Paper 1',
            author='ZIMSEC',
            bookType='Past Exam Paper',
            curriculum='ZIMSEC',
            level='O-Level',
            form='Form 4',
            year='2019',
            examSession='June',
            description='Mathematics paper 1',
            tags='["maths", "2019"]',
        ).get_json()

        fetched = client.get(f"/api/books/{created['_id']}").get_json()
        assert fetched == created
        assert fetched['tags'] == ['maths', '2019']
        assert fetched['examSession'] == 'June'
        assert fetched['form'] == 'Form 4'

    def test_invalid_file_type_is_400(self, client, fake_cdn):
        response = upload(client, b'plain text', filename='notes.txt', mimetype='text/plain')

        assert response.status_code == 400
        assert response.get_json()['error'].startswith('Invalid file type')
        assert fake_cdn.uploads == []

    def test_missing_file_is_400(self, client):
        response = client.post('/api/books/upload', data={'title': 'Algebra Notes'}, content_type='multipart/form-data')
        assert response.status_code == 400
        assert response.get_json()['error'] == 'No file uploaded'

    def test_missing_title_is_400(self, client, pdf_bytes):
        response = upload(client, pdf_bytes, title='')
        assert response.status_code == 400
        assert response.get_json()['error'] == 'Book title is required'

    def test_oversized_body_is_400(self, app, client, pdf_bytes):
        app.config['MAX_CONTENT_LENGTH'] = 64
        response = upload(client, pdf_bytes)

        assert response.status_code == 400
        assert response.get_json()['error'] == 'File too large'

    def test_cdn_failure_is_500(self, app, client, fake_cdn, pdf_bytes):
        fake_cdn.fail_files = True
        response = upload(client, pdf_bytes)

        assert response.status_code == 500
        assert 'CDN unreachable' in response.get_json()['error']
        with app.app_context():
            assert BookRepository.count() == 0

    def test_no_storage_provider_is_500(self, app, client, pdf_bytes):
        app.extensions['zimshelf.cdn'] = None
        response = upload(client, pdf_bytes)

        assert response.status_code == 500
        assert response.get_json()['error'] == 'No storage provider configured'
