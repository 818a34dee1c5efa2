"""
Repositories package

Each repository encapsulates database operations for a model:
- book_repository.py
- user_repository.py
- etc.

Usage:
    from zimshelf.repositories.book_repository import BookRepository
    books = BookRepository.get_trending(limit=8)
"""
