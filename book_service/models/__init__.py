"""
SQLAlchemy Models Package

Import all models here so they are registered on ``Base.metadata``.
"""

from book_service.models.book import Book

__all__ = ["Book"]
