"""
User Service Client

Synchronous HTTP client for the three ledger endpoints the catalog needs:

- GET /api/users/{id}/can-borrow → {"canBorrow": bool}
- PUT /api/users/{id}/borrow     → increment borrowed count
- PUT /api/users/{id}/return     → decrement borrowed count

Error Mapping
=============
Every failure becomes one of the catalog's own exceptions, so the
coordinator and the exception handlers never see httpx types:

| Situation                                  | Raised                        |
|--------------------------------------------|-------------------------------|
| unknown service name                       | RemoteServiceUnavailableError |
| connection refused, timeout, transport err | RemoteServiceUnavailableError |
| 404                                        | NotFoundError                 |
| 409                                        | ConflictError                 |
| 400 / 422                                  | ValidationFailedError         |
| 5xx or any other unexpected status         | RemoteServiceUnavailableError |
| 2xx with an unreadable body                | RemoteServiceUnavailableError |

The ledger's own ``message`` is carried over when its body has one.
Calls are never retried.
"""

import logging

import httpx

from book_service.exceptions import (
    ConflictError,
    NotFoundError,
    RemoteServiceUnavailableError,
    ServiceError,
    ValidationFailedError,
)
from book_service.services.discovery import AddressResolver, UnknownServiceError

logger = logging.getLogger(__name__)

STATUS_ERRORS: dict[int, type[ServiceError]] = {
    400: ValidationFailedError,
    404: NotFoundError,
    409: ConflictError,
    422: ValidationFailedError,
}


class UserServiceClient:
    """
    Calls the user ledger over HTTP.

    Args:
        resolver: Turns ``service_name`` into a base URL on every call
        http_client: Shared ``httpx.Client`` (one per process)
        service_name: Logical name of the ledger
        timeout: Seconds before a call is abandoned
    """

    def __init__(
        self,
        resolver: AddressResolver,
        http_client: httpx.Client,
        service_name: str = "user-service",
        timeout: float = 3.0,
    ) -> None:
        self.resolver = resolver
        self.http_client = http_client
        self.service_name = service_name
        self.timeout = timeout

    # -------------------------------------------------------------------------
    # Ledger Operations
    # -------------------------------------------------------------------------
    def can_borrow(self, user_id: int) -> bool:
        """Ask the ledger whether the user may borrow one more book."""
        response = self._request("GET", f"/api/users/{user_id}/can-borrow")
        try:
            can_borrow = response.json()["canBorrow"]
        except (ValueError, KeyError, TypeError) as exc:
            logger.error(f"Unexpected can-borrow response for user {user_id}: {exc}")
            raise RemoteServiceUnavailableError(
                "User Service returned an invalid eligibility response"
            ) from exc
        return can_borrow is True

    def increment_borrowed(self, user_id: int) -> dict:
        """Record one more borrowed book. Returns the updated user body."""
        response = self._request("PUT", f"/api/users/{user_id}/borrow")
        return self._user_body(response, user_id)

    def decrement_borrowed(self, user_id: int) -> dict:
        """Record one returned book. Returns the updated user body."""
        response = self._request("PUT", f"/api/users/{user_id}/return")
        return self._user_body(response, user_id)

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------
    def _request(self, method: str, path: str) -> httpx.Response:
        try:
            base_url = self.resolver.resolve(self.service_name)
        except UnknownServiceError as exc:
            raise RemoteServiceUnavailableError(
                f"User Service is unavailable: {exc}"
            ) from exc

        url = f"{base_url}{path}"
        logger.info(f"Calling User Service: {method} {url}")

        try:
            response = self.http_client.request(method, url, timeout=self.timeout)
        except httpx.TimeoutException as exc:
            logger.error(f"User Service timed out after {self.timeout}s: {method} {url}")
            raise RemoteServiceUnavailableError(
                f"User Service did not respond within {self.timeout} seconds"
            ) from exc
        except httpx.TransportError as exc:
            logger.error(f"User Service unreachable: {method} {url} - {exc}")
            raise RemoteServiceUnavailableError(
                "Unable to reach User Service. It may be down."
            ) from exc

        if response.is_success:
            return response

        message = self._error_message(response)
        error_cls = STATUS_ERRORS.get(response.status_code)
        if error_cls is None:
            logger.error(
                f"User Service error {response.status_code}: {method} {url} - {message}"
            )
            raise RemoteServiceUnavailableError(
                f"User Service failed with status {response.status_code}: {message}"
            )

        logger.warning(
            f"User Service rejected {method} {url} "
            f"({response.status_code}): {message}"
        )
        raise error_cls(message)

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        """Prefer the ledger's ``message`` field, fall back to the raw body."""
        try:
            body = response.json()
        except ValueError:
            return response.text or response.reason_phrase
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return response.text or response.reason_phrase

    @staticmethod
    def _user_body(response: httpx.Response, user_id: int) -> dict:
        """Decode the user returned by borrow/return; anything else is a ledger fault."""
        try:
            body = response.json()
        except ValueError as exc:
            logger.error(f"Unexpected ledger response for user {user_id}: {exc}")
            raise RemoteServiceUnavailableError(
                "User Service returned an invalid user response"
            ) from exc
        if not isinstance(body, dict):
            logger.error(f"Unexpected ledger response for user {user_id}: {body!r}")
            raise RemoteServiceUnavailableError(
                "User Service returned an invalid user response"
            )
        return body
