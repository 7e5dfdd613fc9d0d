"""Shared HTTP plumbing for the remote clients.

Each client owns one ``LockedSession``: an ``httpx.Client`` that is only
used while its lock is held. The CAR stream producer runs on another
thread, so ownership of the connection has to be explicit.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

import httpx

from artifactsync.core.remote import RemoteServiceError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class ApiError(RemoteServiceError):
    """A remote API answered with an unexpected status."""

    def __init__(
        self,
        method: str,
        url: str,
        status: int,
        reason: str,
        details: str | None = None,
    ) -> None:
        self.method = method
        self.url = url
        self.status = status
        self.reason = reason
        self.details = details
        description = reason if details is None else f"{reason}\n{details}"
        super().__init__(f"{method} {url} returned {status}: {description}")


def normalize_endpoint(endpoint: str) -> str:
    """Default a scheme-less endpoint to https and drop a trailing slash."""
    endpoint = endpoint.strip()
    if "://" not in endpoint:
        endpoint = f"https://{endpoint}"
    return endpoint.rstrip("/")


def check_response(response: httpx.Response, *ok_statuses: int) -> httpx.Response:
    """Raise ApiError unless *response* has one of *ok_statuses*.

    Understands the ``{"error": {"reason", "details"}}`` body of the Pinning
    Service API and falls back to the raw body text.
    """
    if response.status_code in ok_statuses:
        return response

    request = response.request
    reason = response.reason_phrase or "unexpected status"
    details: str | None = None
    response.read()
    try:
        body = response.json()
    except ValueError:
        body = None
        details = response.text.strip() or None
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        reason = str(body["error"].get("reason") or reason)
        raw_details = body["error"].get("details")
        details = str(raw_details) if raw_details is not None else None
    elif isinstance(body, dict):
        # Kubo RPC and Web3.Storage report errors as {"Message"} / {"message"}.
        message = body.get("Message") or body.get("message")
        details = str(message) if message else None

    raise ApiError(request.method, str(request.url), response.status_code, reason, details)


class LockedSession:
    """An ``httpx.Client`` guarded by a lock.

    Parameters
    ----------
    base_url:
        Prefix for every request path.
    token:
        Bearer token sent as ``Authorization``; omitted when None.
    timeout:
        Per-request timeout in seconds.
    transport:
        Replaces the network transport (tests pass ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.Client(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )
        self._lock = threading.Lock()

    @property
    def base_url(self) -> str:
        return str(self._client.base_url)

    @contextmanager
    def acquire(self) -> Iterator[httpx.Client]:
        """Hold the session for the duration of the block.

        ``httpx.HTTPError`` raised inside the block becomes
        ``RemoteServiceError``.
        """
        with self._lock:
            try:
                yield self._client
            except httpx.HTTPError as exc:
                raise RemoteServiceError(f"request to {self.base_url} failed: {exc}") from exc

    def close(self) -> None:
        with self._lock:
            self._client.close()

    def __enter__(self) -> LockedSession:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
