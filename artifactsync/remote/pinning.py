"""IPFS Pinning Service API destination.

Paging in the Pinning Service API is unreliable across implementations, so
the listing here is only the bulk half of reconciliation; every CID it
misses is confirmed with a targeted ``cid=`` query. Both queries filter on
this tool's provenance metadata so pins created by other tools sharing the
account are never taken for ours.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import httpx
from multiformats import CID
from pydantic import ValidationError

from artifactsync.core.content_identity import (
    MalformedContentIDError,
    canonical_key,
    serializations,
)
from artifactsync.core.provenance import Provenance
from artifactsync.core.remote import RemoteServiceError
from artifactsync.models.jobs import PinJob, RemoteEntry
from artifactsync.remote.http import (
    DEFAULT_TIMEOUT,
    LockedSession,
    check_response,
    normalize_endpoint,
)

logger = logging.getLogger(__name__)

PIN_STATUSES = "queued,pinning,pinned"

# The API caps a cid= filter at 10 values.
MAX_CID_FILTER = 10


def format_timestamp(value: datetime) -> str:
    """ISO 8601 in UTC with millisecond precision, as the API expects."""
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class PinningServiceDestination:
    """A remote pinning service addressed by endpoint and bearer token."""

    verb = "Pinning"

    def __init__(
        self,
        endpoint: str,
        token: str,
        *,
        provenance: Provenance | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.endpoint = normalize_endpoint(endpoint)
        self._provenance = provenance or Provenance()
        self._session = LockedSession(
            self.endpoint, token=token, timeout=timeout, transport=transport
        )

    @property
    def name(self) -> str:
        return f"pinning service {httpx.URL(self.endpoint).host}"

    def _get_pins(self, params: dict[str, str]) -> list[dict]:
        with self._session.acquire() as http:
            response = http.get("/pins", params=params)
            if response.status_code == 404:
                return []
            check_response(response, 200)
            try:
                payload = response.json()
            except ValueError as exc:
                raise RemoteServiceError("GET /pins: response is not JSON") from exc

        results = payload.get("results") if isinstance(payload, dict) else None
        if not isinstance(results, list):
            raise RemoteServiceError(f"GET /pins: unexpected response {payload!r}")
        return [item for item in results if isinstance(item, dict)]

    def list_present(self, before: datetime, limit: int) -> list[RemoteEntry]:
        results = self._get_pins({
            "status": PIN_STATUSES,
            "limit": str(limit),
            "before": format_timestamp(before),
            "meta": self._provenance.encoded_filter(),
        })

        entries: list[RemoteEntry] = []
        for item in results:
            pin = item.get("pin") if isinstance(item.get("pin"), dict) else {}
            try:
                entries.append(RemoteEntry(
                    cid=str(pin.get("cid", "")),
                    created=item.get("created"),
                    name=pin.get("name"),
                ))
            except ValidationError as exc:
                raise RemoteServiceError(f"GET /pins: malformed pin status: {exc}") from exc
        return entries

    def confirm_present(self, cid: CID) -> bool:
        forms = serializations(cid)[:MAX_CID_FILTER]
        results = self._get_pins({
            "cid": ",".join(forms),
            "status": PIN_STATUSES,
            "meta": self._provenance.encoded_filter(),
        })

        wanted = canonical_key(cid)
        for item in results:
            pin = item.get("pin")
            if not isinstance(pin, dict):
                continue
            try:
                if canonical_key(str(pin.get("cid", ""))) == wanted:
                    return True
            except MalformedContentIDError:
                continue
        return False

    def submit(self, job: PinJob) -> None:
        body = {
            "cid": str(job.cid),
            "name": self._provenance.name_for(job.cid, job.role),
            "meta": self._provenance.meta_for(job.role),
        }
        with self._session.acquire() as http:
            check_response(http.post("/pins", json=body), 202)

    def close(self) -> None:
        self._session.close()
