"""Tests for the revision resolver — per-filename merge across history."""

from __future__ import annotations

from datetime import datetime, timezone

from artifactsync.core.revision_resolver import resolve_all, resolve_latest
from artifactsync.models.artifacts import ArtifactRevision, FileDescriptor
from artifactsync.models.report import SkipKind


class TestResolveLatest:
    def test_newest_revision_wins(self, make_cid, make_revision):
        old = make_revision(files={"a.pdf": make_cid("v1")}, hours=1)
        new = make_revision(files={"a.pdf": make_cid("v2")}, hours=2)
        state = resolve_latest("artifact", [old, new])
        assert state.files == {"a.pdf": make_cid("v2")}

    def test_input_order_does_not_matter(self, make_cid, make_revision):
        old = make_revision(files={"a.pdf": make_cid("v1")}, hours=1)
        new = make_revision(files={"a.pdf": make_cid("v2")}, hours=2)
        assert resolve_latest("artifact", [new, old]) == resolve_latest("artifact", [old, new])

    def test_per_filename_merge(self, make_cid, make_revision):
        r1 = make_revision(files={"a.pdf": make_cid("a1"), "b.pdf": make_cid("b1")}, hours=1)
        r2 = make_revision(files={"a.pdf": make_cid("a2")}, hours=2)
        state = resolve_latest("artifact", [r1, r2])
        assert state.files == {"a.pdf": make_cid("a2"), "b.pdf": make_cid("b1")}

    def test_removed_file_survives_from_older_revision(self, make_cid, make_revision):
        # A file dropped from the newest revision is still resolved from history.
        r1 = make_revision(files={"a.pdf": make_cid("a"), "b.pdf": make_cid("b")}, hours=1)
        r2 = make_revision(files={"b.pdf": make_cid("b")}, hours=2)
        assert set(resolve_latest("artifact", [r1, r2]).files) == {"a.pdf", "b.pdf"}

    def test_empty_history(self):
        state = resolve_latest("artifact", [])
        assert state.is_empty

    def test_blank_filename_is_skipped(self, make_cid, make_revision):
        revision = make_revision(files={"  ": make_cid("a"), "b.pdf": make_cid("b")})
        skipped = []
        state = resolve_latest("artifact", [revision], skipped)
        assert list(state.files) == ["b.pdf"]
        assert [entry.kind for entry in skipped] == [SkipKind.EMPTY_FILENAME]

    def test_missing_filename_is_skipped(self, make_cid):
        revision = ArtifactRevision(
            slug="artifact",
            path="artifacts/artifact.md",
            timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
            files=(FileDescriptor(name="Scan", cid=str(make_cid("a"))),),
        )
        assert resolve_latest("artifact", [revision]).is_empty

    def test_malformed_cid_falls_back_to_older_entry(self, make_cid, make_revision):
        old = make_revision(files={"a.pdf": make_cid("good")}, hours=1)
        new = make_revision(files={"a.pdf": "garbage"}, hours=2, revision_id="abc123")
        skipped = []
        state = resolve_latest("artifact", [old, new], skipped)
        assert state.files == {"a.pdf": make_cid("good")}
        assert skipped[0].kind == SkipKind.MALFORMED_CID
        assert skipped[0].revision_id == "abc123"

    def test_malformed_only_entry_drops_file(self, make_revision):
        state = resolve_latest("artifact", [make_revision(files={"a.pdf": ""})])
        assert state.is_empty

    def test_first_seen_wins_within_revision(self, make_cid):
        revision = ArtifactRevision(
            slug="artifact",
            path="artifacts/artifact.md",
            timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
            files=(
                FileDescriptor(name="one", filename="a.pdf", cid=str(make_cid("first"))),
                FileDescriptor(name="two", filename="a.pdf", cid=str(make_cid("second"))),
            ),
        )
        assert resolve_latest("artifact", [revision]).files["a.pdf"] == make_cid("first")


class TestResolveAll:
    def test_groups_by_slug_sorted(self, make_cid, make_revision):
        revisions = [
            make_revision("zeta", {"z.pdf": make_cid("z")}),
            make_revision("alpha", {"a.pdf": make_cid("a")}),
        ]
        states = resolve_all(revisions)
        assert [state.slug for state in states] == ["alpha", "zeta"]

    def test_skipped_are_collected(self, make_revision):
        skipped = []
        resolve_all([make_revision("a", {"a.pdf": "bad"})], skipped)
        assert len(skipped) == 1
        assert skipped[0].slug == "a"
