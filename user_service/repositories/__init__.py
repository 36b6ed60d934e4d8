"""
Repositories Package

Data access classes. Services receive a repository in their constructor
instead of building queries themselves.
"""

from user_service.repositories.user import UserRepository

__all__ = ["UserRepository"]
