"""
Service Discovery

The catalog never hard-codes where the user service lives. It asks an
``AddressResolver`` for the base URL of a logical service name right
before each call:

    resolver.resolve("user-service")  # -> "http://localhost:8081"

``StaticAddressResolver`` is backed by the ``service_addresses`` setting.
A registry-backed resolver only has to implement ``resolve()``.
"""

import logging
from collections.abc import Mapping
from typing import Protocol

logger = logging.getLogger(__name__)


class UnknownServiceError(LookupError):
    """No address is registered for the requested service name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"No address registered for service '{name}'")
        self.name = name


class AddressResolver(Protocol):
    def resolve(self, name: str) -> str:
        """Return the base URL for ``name`` or raise ``UnknownServiceError``."""
        ...


class StaticAddressResolver:
    """
    Resolver over a fixed name -> base URL map.

    Args:
        addresses: Logical service names mapped to base URLs
    """

    def __init__(self, addresses: Mapping[str, str]) -> None:
        self._addresses = {name: url.rstrip("/") for name, url in addresses.items()}

    def resolve(self, name: str) -> str:
        try:
            address = self._addresses[name]
        except KeyError:
            logger.error(f"Service '{name}' is not registered")
            raise UnknownServiceError(name) from None
        logger.debug(f"Resolved service '{name}' to {address}")
        return address

    def __repr__(self) -> str:
        return f"StaticAddressResolver({self._addresses!r})"
