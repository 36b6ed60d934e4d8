"""
Repositories Package

Data access classes. Services receive a repository in their constructor
instead of building queries themselves.
"""

from book_service.repositories.book import BookRepository

__all__ = ["BookRepository"]
