"""Tests for the archival (Web3.Storage-style) destination."""

from __future__ import annotations

from datetime import datetime, timezone

import httpx
import pytest

from artifactsync.core.provenance import Provenance
from artifactsync.core.remote import RemoteServiceError
from artifactsync.models.jobs import JobRole, PinJob
from artifactsync.remote.archival import ArchivalDestination
from artifactsync.remote.http import ApiError
from artifactsync.remote.kubo import KuboNodeService

BEFORE = datetime(2024, 5, 1, tzinfo=timezone.utc)
CAR_BYTES = b"\x3a\xa2car" * 5000


def _kubo(status: int = 200) -> KuboNodeService:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/v0/dag/export"
        if status != 200:
            return httpx.Response(status, json={"Message": "block not found"})
        return httpx.Response(200, content=CAR_BYTES)

    return KuboNodeService("http://kubo.test:5001", transport=httpx.MockTransport(handler))


def _destination(handler, nodes: KuboNodeService | None = None) -> ArchivalDestination:
    return ArchivalDestination(
        "secret",
        nodes or _kubo(),
        endpoint="https://w3s.test",
        provenance=Provenance("org.test"),
        transport=httpx.MockTransport(handler),
    )


class TestListPresent:
    def test_query_and_parse(self, make_cid):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[
                {"cid": str(make_cid("a")), "created": "2024-04-02T00:00:00.000Z", "name": "x"},
                {"cid": str(make_cid("b")), "created": "2024-04-01T00:00:00+00:00"},
            ])

        entries = _destination(handler).list_present(BEFORE, 25)
        assert [entry.cid for entry in entries] == [str(make_cid("a")), str(make_cid("b"))]
        assert seen[0].url.path == "/user/uploads"
        assert seen[0].url.params["size"] == "25"
        assert seen[0].url.params["before"] == "2024-05-01T00:00:00.000Z"
        assert seen[0].headers["Authorization"] == "Bearer secret"

    def test_not_a_list(self):
        def handler(request):
            return httpx.Response(200, json={"results": []})

        with pytest.raises(RemoteServiceError):
            _destination(handler).list_present(BEFORE, 25)

    def test_server_error(self):
        def handler(request):
            return httpx.Response(503, text="down")

        with pytest.raises(ApiError) as exc_info:
            _destination(handler).list_present(BEFORE, 25)
        assert exc_info.value.details == "down"


class TestConfirmPresent:
    def test_owned_upload(self, make_cid):
        cid = make_cid("a")

        def handler(request):
            assert request.url.path == f"/user/uploads/{cid}"
            return httpx.Response(200, json={"cid": str(cid), "name": f"org.test/files/{cid}"})

        assert _destination(handler).confirm_present(cid) is True

    def test_foreign_upload_is_not_ours(self, make_cid):
        def handler(request):
            return httpx.Response(200, json={"cid": str(make_cid("a")), "name": "somebody-else"})

        assert _destination(handler).confirm_present(make_cid("a")) is False

    def test_absent(self, make_cid):
        def handler(request):
            return httpx.Response(404, json={"message": "not found"})

        assert _destination(handler).confirm_present(make_cid("a")) is False


class TestSubmit:
    def test_uploads_exported_car(self, make_cid):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            body = request.read()
            seen.append((request, body))
            return httpx.Response(200, json={"cid": str(make_cid("a"))})

        _destination(handler).submit(PinJob(cid=make_cid("a"), role=JobRole.FILE))

        request, body = seen[0]
        assert request.method == "POST"
        assert request.url.path == "/car"
        assert request.headers["Content-Type"] == "application/car"
        assert request.headers["X-Name"] == f"org.test/files/{make_cid('a')}"
        assert body == CAR_BYTES

    def test_export_failure_fails_the_job(self, make_cid):
        def handler(request: httpx.Request) -> httpx.Response:
            request.read()
            return httpx.Response(200, json={})

        with pytest.raises(RemoteServiceError):
            _destination(handler, _kubo(status=500)).submit(PinJob(cid=make_cid("a")))

    def test_upload_rejected(self, make_cid):
        def handler(request: httpx.Request) -> httpx.Response:
            request.read()
            return httpx.Response(400, json={"message": "invalid CAR"})

        with pytest.raises(ApiError):
            _destination(handler).submit(PinJob(cid=make_cid("a")))
