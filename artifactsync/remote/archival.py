"""Web3.Storage-style archival destination.

Content is uploaded as CAR files exported from the node service. The
upload listing is paged backwards by creation time; confirmation looks up
a single upload and only counts it when its name carries this tool's
provenance tag.
"""

from __future__ import annotations

import logging
from datetime import datetime

import httpx
from multiformats import CID
from pydantic import ValidationError

from artifactsync.core.provenance import Provenance
from artifactsync.core.remote import RemoteServiceError
from artifactsync.models.jobs import PinJob, RemoteEntry
from artifactsync.remote.car_stream import CarStream, CarStreamError
from artifactsync.remote.http import (
    DEFAULT_TIMEOUT,
    LockedSession,
    check_response,
    normalize_endpoint,
)
from artifactsync.remote.kubo import KuboNodeService
from artifactsync.remote.pinning import format_timestamp

logger = logging.getLogger(__name__)

DEFAULT_W3S_ENDPOINT = "https://api.web3.storage"


class ArchivalDestination:
    """Upload-only archival service addressed by an API token.

    Parameters
    ----------
    token:
        API token.
    nodes:
        Node service the CARs are exported from.
    endpoint:
        API base URL.
    """

    verb = "Uploading"

    def __init__(
        self,
        token: str,
        nodes: KuboNodeService,
        *,
        endpoint: str = DEFAULT_W3S_ENDPOINT,
        provenance: Provenance | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.endpoint = normalize_endpoint(endpoint)
        self._nodes = nodes
        self._provenance = provenance or Provenance()
        self._session = LockedSession(
            self.endpoint, token=token, timeout=timeout, transport=transport
        )

    @property
    def name(self) -> str:
        return f"archival service {httpx.URL(self.endpoint).host}"

    def list_present(self, before: datetime, limit: int) -> list[RemoteEntry]:
        params = {"before": format_timestamp(before), "size": str(limit)}
        with self._session.acquire() as http:
            response = check_response(http.get("/user/uploads", params=params), 200)
            try:
                payload = response.json()
            except ValueError as exc:
                raise RemoteServiceError("GET /user/uploads: response is not JSON") from exc

        if not isinstance(payload, list):
            raise RemoteServiceError(f"GET /user/uploads: unexpected response {payload!r}")

        entries: list[RemoteEntry] = []
        for item in payload:
            if not isinstance(item, dict):
                continue
            try:
                entries.append(RemoteEntry(
                    cid=str(item.get("cid", "")),
                    created=item.get("created"),
                    name=item.get("name"),
                ))
            except ValidationError as exc:
                raise RemoteServiceError(f"GET /user/uploads: malformed upload: {exc}") from exc
        return entries

    def confirm_present(self, cid: CID) -> bool:
        with self._session.acquire() as http:
            response = http.get(f"/user/uploads/{cid}")
            if response.status_code == 404:
                return False
            check_response(response, 200)
            try:
                payload = response.json()
            except ValueError as exc:
                raise RemoteServiceError(f"GET /user/uploads/{cid}: response is not JSON") from exc

        name = payload.get("name") if isinstance(payload, dict) else None
        return self._provenance.owns_name(name)

    def submit(self, job: PinJob) -> None:
        headers = {
            "Content-Type": "application/car",
            "X-Name": self._provenance.name_for(job.cid, job.role),
        }
        stream = CarStream(
            lambda write: self._nodes.export_car(job.cid, write),
            name=f"car-{job.cid}",
        )
        with stream:
            try:
                with self._session.acquire() as http:
                    check_response(http.post("/car", content=iter(stream), headers=headers), 200)
            except CarStreamError as exc:
                raise RemoteServiceError(f"could not export {job.cid}: {exc}") from exc

    def close(self) -> None:
        self._session.close()
