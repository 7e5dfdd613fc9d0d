"""Kubo RPC client, used as the content-addressed node service.

Only the handful of RPC calls the tree builder and the archival uploads
need are implemented. Kubo's RPC API takes POST for every call.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence

import httpx
from multiformats import CID

from artifactsync.core.content_identity import MalformedContentIDError, parse_cid
from artifactsync.core.remote import RemoteServiceError
from artifactsync.models.jobs import DirectoryLink, RemoteNode
from artifactsync.remote.car_stream import Writer
from artifactsync.remote.http import DEFAULT_TIMEOUT, LockedSession, check_response

logger = logging.getLogger(__name__)

DEFAULT_IPFS_API = "http://127.0.0.1:5001"

# UnixFS Data protobuf for an empty directory (Type = Directory).
_UNIXFS_DIRECTORY_DATA = "CAE"

_EXPORT_CHUNK_SIZE = 64 * 1024


def directory_document(links: Sequence[DirectoryLink]) -> dict:
    """The dag-json form of a dag-pb UnixFS directory over *links*.

    dag-pb requires links sorted by name.
    """
    return {
        "Data": {"/": {"bytes": _UNIXFS_DIRECTORY_DATA}},
        "Links": [
            {"Hash": {"/": str(link.cid)}, "Name": link.name, "Tsize": link.size}
            for link in sorted(links, key=lambda link: link.name.encode("utf-8"))
        ],
    }


class KuboNodeService:
    """Node service backed by a Kubo daemon's RPC API.

    Parameters
    ----------
    api_url:
        Base URL of the RPC API, e.g. ``http://127.0.0.1:5001``.
    timeout:
        Per-request timeout in seconds.
    transport:
        Replaces the network transport (tests only).
    """

    def __init__(
        self,
        api_url: str = DEFAULT_IPFS_API,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._session = LockedSession(
            f"{api_url.rstrip('/')}/api/v0",
            timeout=timeout,
            transport=transport,
        )

    def _post_json(self, path: str, **kwargs) -> dict:
        with self._session.acquire() as http:
            response = check_response(http.post(path, **kwargs), 200)
            try:
                payload = response.json()
            except ValueError as exc:
                raise RemoteServiceError(f"{path}: response is not JSON") from exc
        if not isinstance(payload, dict):
            raise RemoteServiceError(f"{path}: unexpected response {payload!r}")
        return payload

    def resolve_node(self, cid: CID) -> RemoteNode:
        payload = self._post_json("/files/stat", params={"arg": f"/ipfs/{cid}"})
        size = payload.get("CumulativeSize", 0)
        if not isinstance(size, int):
            raise RemoteServiceError(f"files/stat {cid}: invalid CumulativeSize {size!r}")
        return RemoteNode(cid=cid, size=size)

    def put_directory(
        self, links: Sequence[DirectoryLink], *, pin: bool = False
    ) -> RemoteNode:
        document = json.dumps(directory_document(links), separators=(",", ":"))
        payload = self._post_json(
            "/dag/put",
            params={
                "store-codec": "dag-pb",
                "input-codec": "dag-json",
                "pin": "true" if pin else "false",
            },
            files={"file": ("node.json", document.encode("utf-8"), "application/json")},
        )

        cid_value = payload.get("Cid")
        if isinstance(cid_value, dict):
            cid_value = cid_value.get("/")
        try:
            cid = parse_cid(cid_value if isinstance(cid_value, str) else "")
        except MalformedContentIDError as exc:
            raise RemoteServiceError(f"dag/put returned an invalid CID: {exc}") from exc

        # The node's own size covers its block as well as its links.
        node = self.resolve_node(cid)
        logger.debug("Stored directory %s (%d links)", cid, len(links))
        return node

    def export_car(self, cid: CID, write: Writer) -> None:
        """Stream the CAR of the whole DAG under *cid* into *write*."""
        with self._session.acquire() as http:
            with http.stream("POST", "/dag/export", params={"arg": str(cid)}) as response:
                check_response(response, 200)
                for chunk in response.iter_bytes(_EXPORT_CHUNK_SIZE):
                    write(chunk)

    def close(self) -> None:
        self._session.close()
