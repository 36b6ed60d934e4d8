"""
User Service Application Package

The User Ledger of the library system: members, membership state and
borrowed-book counts.

Package Structure:
- config.py: Settings (env prefix USER_SERVICE_)
- database.py: SQLAlchemy engine, session factory and Base
- exceptions.py: Ledger errors and the common error body
- main.py: FastAPI application factory
- dependencies.py: Request-scoped wiring (session → repository → ledger)
- models/: SQLAlchemy ORM models
- schemas/: Pydantic request/response schemas
- repositories/: Data access
- routers/: API route handlers
- services/: Business logic
- utils/: Helper functions
"""

__version__ = "1.0.0"
