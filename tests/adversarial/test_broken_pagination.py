"""Adversarial tests — destinations whose listings can not be trusted.

These tests verify that:
1. A listing that silently drops entries never causes a duplicate submission
2. A cursor that does not advance ends the sweep instead of looping
3. A 404 on the listing endpoint reads as an empty page
4. A destination whose listing fails is reported without stopping the others
"""

from __future__ import annotations

from datetime import datetime

import httpx

from artifactsync.core.content_identity import canonical_key
from artifactsync.core.engine import SyncEngine
from artifactsync.core.reconciler import RemoteReconciler
from artifactsync.remote.pinning import PinningServiceDestination


class TestTruncatedListing:
    def test_unlisted_entries_are_confirmed_not_resubmitted(
        self, fake_destination_cls, make_cid, make_entry
    ):
        cids = [make_cid(f"file-{i}") for i in range(6)]
        destination = fake_destination_cls(
            entries=[make_entry(cid, minutes=i) for i, cid in enumerate(cids)],
            listable=2,
        )
        result = RemoteReconciler(destination, page_size=2).reconcile(cids)

        assert result.swept_count == 2
        assert len(result.gaps) == 4
        assert len(result.confirmed) == 4
        assert result.missing == []

    def test_listing_that_returns_nothing(self, fake_destination_cls, make_cid, make_entry):
        cids = [make_cid("a"), make_cid("b")]
        destination = fake_destination_cls(
            entries=[make_entry(cids[0])],
            listable=0,
        )
        result = RemoteReconciler(destination).reconcile(cids)

        assert result.swept_count == 0
        assert [canonical_key(c) for c in result.missing] == [canonical_key(cids[1])]
        assert len(destination.list_calls) == 1

    def test_engine_skips_everything_already_present(
        self, fake_source_cls, fake_destination_cls, node_service, make_revision, make_cid
    ):
        revisions = [
            make_revision("zine", {f"page-{i}.png": make_cid(f"page-{i}") for i in range(5)}),
        ]
        destination = fake_destination_cls("psa")
        SyncEngine(
            fake_source_cls(revisions), nodes=node_service, destinations=[destination]
        ).run()
        submitted = len(destination.submitted)
        assert submitted == 6

        # Second run against a listing that only ever shows one entry.
        destination._listable = 1
        report = SyncEngine(
            fake_source_cls(revisions),
            nodes=node_service,
            destinations=[destination],
            page_size=1,
        ).run()
        assert len(destination.submitted) == submitted
        assert report.destinations[0].jobs == []


class CursorIgnoringDestination:
    """A listing that returns the same full page whatever the cursor."""

    verb = "Pinning"
    name = "stuck"

    def __init__(self, entries):
        self.entries = entries
        self.list_calls = 0

    def list_present(self, before: datetime, limit: int):
        self.list_calls += 1
        return self.entries[:limit]

    def confirm_present(self, cid):
        return any(canonical_key(e.cid) == canonical_key(cid) for e in self.entries)

    def submit(self, job):
        raise AssertionError("nothing should be submitted")


class TestStalledCursor:
    def test_sweep_terminates(self, make_cid, make_entry):
        entries = [make_entry(make_cid(f"x{i}"), minutes=i) for i in range(3)]
        destination = CursorIgnoringDestination(entries)

        present = RemoteReconciler(destination, page_size=3).sweep()
        assert len(present) == 3
        assert destination.list_calls == 2

    def test_entries_sharing_one_timestamp(self, fake_destination_cls, make_cid, make_entry):
        cids = [make_cid(f"same-{i}") for i in range(5)]
        destination = fake_destination_cls(
            entries=[make_entry(cid, minutes=0) for cid in cids],
        )
        result = RemoteReconciler(destination, page_size=2).reconcile(cids)

        # Only the first page is reachable; confirmation covers the rest.
        assert result.swept_count == 2
        assert len(result.confirmed) == 3
        assert result.missing == []


class TestNotFoundPages:
    def test_404_listing_is_empty(self, make_cid):
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if request.method == "GET":
                return httpx.Response(404, json={"error": {"reason": "NOT_FOUND"}})
            return httpx.Response(202, json={})

        destination = PinningServiceDestination(
            "pins.test", "token", transport=httpx.MockTransport(handler)
        )
        cid = make_cid("lonely")
        result = RemoteReconciler(destination).reconcile([cid])

        assert result.swept_count == 0
        assert [canonical_key(c) for c in result.missing] == [canonical_key(cid)]
        # one listing page plus one confirmation query
        assert [r.method for r in requests] == ["GET", "GET"]


class TestFailingListing:
    def test_other_destinations_still_sync(
        self, fake_source_cls, fake_destination_cls, node_service, make_revision, make_cid
    ):
        broken = fake_destination_cls("broken", fail_listing=True)
        healthy = fake_destination_cls("healthy")
        report = SyncEngine(
            fake_source_cls([make_revision("a", {"a.txt": make_cid("a")})]),
            nodes=node_service,
            destinations=[broken, healthy],
        ).run()

        assert report.failed
        assert report.destinations[0].failed
        assert "listing unavailable" in report.destinations[0].error
        assert not report.destinations[1].failed
        assert broken.submitted == []
        assert len(healthy.submitted) == 2
