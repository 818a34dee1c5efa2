"""WSGI entry point, e.g. gunicorn zimshelf.wsgi:app"""
from zimshelf.app import create_app

app = create_app()
