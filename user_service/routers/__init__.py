"""
API Routers Package

- users.py: /api/users/* endpoints
"""

from user_service.routers.users import router as users_router

__all__ = ["users_router"]
