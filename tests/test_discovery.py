"""
Tests for service address resolution.
"""

import pytest

from book_service.config import Settings
from book_service.services import StaticAddressResolver, UnknownServiceError


class TestStaticAddressResolver:
    def test_resolve_known_service(self):
        resolver = StaticAddressResolver({"user-service": "http://users:8081"})

        assert resolver.resolve("user-service") == "http://users:8081"

    def test_trailing_slash_removed(self):
        resolver = StaticAddressResolver({"user-service": "http://users:8081/"})

        assert resolver.resolve("user-service") == "http://users:8081"

    def test_unknown_service(self):
        resolver = StaticAddressResolver({})

        with pytest.raises(UnknownServiceError) as exc_info:
            resolver.resolve("user-service")

        assert exc_info.value.name == "user-service"
        assert isinstance(exc_info.value, LookupError)


class TestServiceAddressSettings:
    """The resolver's map comes from BOOK_SERVICE_SERVICE_ADDRESSES."""

    def test_default_points_at_local_user_service(self):
        settings = Settings()

        assert settings.service_addresses == {"user-service": "http://localhost:8081"}
        assert settings.user_service_timeout == 3.0

    def test_addresses_from_environment(self, monkeypatch):
        monkeypatch.setenv(
            "BOOK_SERVICE_SERVICE_ADDRESSES",
            '{"user-service": "http://users.internal:9000/"}',
        )

        settings = Settings()

        assert settings.service_addresses == {"user-service": "http://users.internal:9000"}

    def test_invalid_log_level(self):
        with pytest.raises(ValueError):
            Settings(log_level="LOUD")
