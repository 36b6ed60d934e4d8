"""
Book Service

Catalog microservice: books and copy availability.

Package Structure:
==================
- config.py: Settings (env prefix BOOK_SERVICE_)
- database.py: SQLAlchemy engine, session and Base
- exceptions.py: Catalog errors and the common error body
- models/: Book
- schemas/: Request/response models (camelCase JSON)
- repositories/: Data access with atomic copy-count updates
- services/: Catalog coordinator, User Service client, discovery, rate limiting
- routers/: /api/books endpoints
- main.py: Application factory

Run with:
    uvicorn book_service.main:app --port 8080
"""

__version__ = "1.0.0"
