"""
Tests for student accounts and sessions
"""
import pytest
from werkzeug.security import check_password_hash

from zimshelf.models import User


class TestSignup:
    """Tests for POST /api/auth/signup"""

    def test_signup_returns_user_and_logs_in(self, client):
        response = client.post('/api/auth/signup', json={'username': 'alice', 'password': 'secret1'})
        data = response.get_json()

        assert response.status_code == 200
        assert data['success'] is True
        assert data['username'] == 'alice'
        assert data['user'] == {'id': data['id'], 'username': 'alice'}

        me = client.get('/api/auth/me')
        assert me.status_code == 200
        assert me.get_json() == {'id': data['id'], 'username': 'alice'}

    def test_password_is_stored_hashed(self, app, signup):
        signup('alice', 'secret1')
        with app.app_context():
            user = User.query.filter_by(username='alice').one()
            assert user.password != 'secret1'
            assert check_password_hash(user.password, 'secret1')

    def test_duplicate_username_rejected(self, app, signup):
        signup('alice', 'secret1')
        response = app.test_client().post('/api/auth/signup', json={'username': 'alice', 'password': 'other-secret'})

        assert response.status_code == 400
        assert response.get_json()['error'] == 'Username already exists'

    def test_missing_fields_rejected(self, client):
        response = client.post('/api/auth/signup', json={'username': 'alice'})
        assert response.status_code == 400
        assert response.get_json()['success'] is False

    def test_non_json_body_rejected(self, client):
        response = client.post('/api/auth/signup', data='username=alice')
        assert response.status_code == 400

    @pytest.mark.parametrize('body', [
        {'username': 12345, 'password': 'secret1'},
        {'username': 'alice', 'password': 123456},
        ['alice', 'secret1'],
    ])
    def test_malformed_body_rejected(self, client, body):
        response = client.post('/api/auth/signup', json=body)
        assert response.status_code == 400
        assert response.get_json()['code'] == 'VALIDATION_ERROR'

    def test_short_username_rejected(self, client):
        response = client.post('/api/auth/signup', json={'username': 'al', 'password': 'secret1'})
        assert response.status_code == 400
        assert 'Username' in response.get_json()['error']

    def test_short_password_rejected(self, client):
        response = client.post('/api/auth/signup', json={'username': 'alice', 'password': '12345'})
        assert response.status_code == 400
        assert 'Password' in response.get_json()['error']


class TestLogin:
    """Tests for login, logout and the current user"""

    def test_login_with_valid_credentials(self, app, signup):
        signup('alice', 'secret1')
        other = app.test_client()

        response = other.post('/api/auth/login', json={'username': 'alice', 'password': 'secret1'})
        assert response.status_code == 200
        assert response.get_json()['username'] == 'alice'
        assert other.get('/api/auth/me').status_code == 200

    def test_wrong_password_is_unauthorized(self, app, signup):
        signup('alice', 'secret1')
        response = app.test_client().post('/api/auth/login', json={'username': 'alice', 'password': 'wrong-one'})

        assert response.status_code == 401
        assert response.get_json()['error'] == 'Invalid credentials'

    def test_unknown_user_is_unauthorized(self, client):
        response = client.post('/api/auth/login', json={'username': 'nobody', 'password': 'secret1'})
        assert response.status_code == 401

    def test_login_requires_both_fields(self, client):
        response = client.post('/api/auth/login', json={'username': 'alice'})
        assert response.status_code == 400
        assert response.get_json()['error'] == 'Username and password required'

    @pytest.mark.parametrize('body', [
        {'username': 12345, 'password': 'secret1'},
        {'username': 'alice', 'password': 123456},
        ['alice', 'secret1'],
    ])
    def test_non_string_credentials_are_400(self, app, signup, body):
        signup('alice', 'secret1')
        response = app.test_client().post('/api/auth/login', json=body)
        assert response.status_code == 400
        assert response.get_json()['error'] == 'Username and password required'

    def test_logout_clears_session(self, client, signup):
        signup()
        assert client.post('/api/auth/logout').get_json() == {'success': True}

        response = client.get('/api/auth/me')
        assert response.status_code == 401
        assert response.get_json()['error'] == 'Not authenticated'


class TestProtectedRoutes:
    """Session-only endpoints answer 401 JSON without a session"""

    def test_my_books_requires_session(self, client):
        response = client.get('/api/auth/my-books')
        assert response.status_code == 401
        assert response.get_json()['error'] == 'Unauthorized. Please login.'

    def test_my_downloads_requires_session(self, client):
        assert client.get('/api/auth/my-downloads').status_code == 401

    def test_my_uploads_requires_session(self, client):
        assert client.get('/api/books/my-uploads').status_code == 401

    def test_my_books_lists_only_own_uploads(self, client, signup, make_book):
        signup('alice', 'secret1')
        own = make_book('Algebra Notes', uploaded_by='alice')
        make_book('Physics Paper', uploaded_by='bob')

        books = client.get('/api/auth/my-books').get_json()
        assert [book['_id'] for book in books] == [own]
        assert client.get('/api/books/my-uploads').get_json() == books

    def test_my_downloads_lists_newest_first(self, client, signup, make_book):
        signup('alice', 'secret1')
        first = make_book('Algebra Notes')
        second = make_book('Physics Paper')

        client.post(f'/api/books/{first}/download')
        client.post(f'/api/books/{second}/download')

        downloads = client.get('/api/auth/my-downloads').get_json()
        assert [d['bookId'] for d in downloads] == [second, first]
        assert downloads[0]['bookTitle'] == 'Physics Paper'
        assert downloads[0]['username'] == 'alice'
