"""
API Routers Package

- books.py: /api/books/* endpoints
"""

from book_service.routers.books import router as books_router

__all__ = ["books_router"]
