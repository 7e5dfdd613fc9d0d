"""Shared test fixtures for artifactsync."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
from multiformats import CID, multihash

from artifactsync.core.content_identity import canonical_key
from artifactsync.core.provenance import Provenance
from artifactsync.core.remote import RemoteServiceError
from artifactsync.models.artifacts import ArtifactRevision, FileDescriptor
from artifactsync.models.jobs import DirectoryLink, PinJob, RemoteEntry, RemoteNode

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def cid_for(data: bytes, *, version: int = 1) -> CID:
    digest = multihash.digest(data, "sha2-256")
    if version == 0:
        return CID("base58btc", 0, "dag-pb", digest)
    return CID("base32", 1, "raw", digest)


# ---------------------------------------------------------------------------
# In-memory node service and destinations
# ---------------------------------------------------------------------------


class FakeNodeService:
    """Node service that derives directory CIDs from their links."""

    def __init__(self, *, fail_on: set[str] | None = None) -> None:
        self.directories: list[tuple[list[DirectoryLink], bool]] = []
        self.resolved: list[CID] = []
        self._fail_on = fail_on or set()

    def resolve_node(self, cid: CID) -> RemoteNode:
        if canonical_key(cid) in self._fail_on:
            raise RemoteServiceError(f"node not found: {cid}")
        self.resolved.append(cid)
        return RemoteNode(cid=cid, size=100)

    def put_directory(self, links: Sequence[DirectoryLink], *, pin: bool = False) -> RemoteNode:
        ordered = sorted(links, key=lambda link: link.name)
        self.directories.append((ordered, pin))
        seed = "|".join(f"{link.name}={canonical_key(link.cid)}" for link in ordered)
        digest = multihash.digest(seed.encode("utf-8"), "sha2-256")
        return RemoteNode(
            cid=CID("base32", 1, "dag-pb", digest),
            size=sum(link.size for link in ordered),
        )


class FakeDestination:
    """Destination backed by a list of remote entries.

    ``listable`` limits what the bulk listing returns (to simulate broken
    pagination); ``present`` is the ground truth used by confirmation.
    """

    verb = "Pinning"

    def __init__(
        self,
        name: str = "fake",
        *,
        entries: Sequence[RemoteEntry] = (),
        listable: int | None = None,
        foreign: Sequence[str] = (),
        fail_listing: bool = False,
        fail_submit_after: int | None = None,
        provenance: Provenance | None = None,
    ) -> None:
        self._name = name
        self.provenance = provenance or Provenance()
        self.entries: list[RemoteEntry] = sorted(entries, key=lambda e: e.created, reverse=True)
        self._listable = listable
        self._foreign = set(foreign)
        self._fail_listing = fail_listing
        self._fail_submit_after = fail_submit_after
        self.list_calls: list[tuple[datetime, int]] = []
        self.confirm_calls: list[CID] = []
        self.submitted: list[PinJob] = []
        self._clock = BASE_TIME + timedelta(days=365)

    @property
    def name(self) -> str:
        return self._name

    def list_present(self, before: datetime, limit: int) -> list[RemoteEntry]:
        self.list_calls.append((before, limit))
        if self._fail_listing:
            raise RemoteServiceError("listing unavailable")
        visible = self.entries if self._listable is None else self.entries[: self._listable]
        return [entry for entry in visible if entry.created < before][:limit]

    def confirm_present(self, cid: CID) -> bool:
        self.confirm_calls.append(cid)
        key = canonical_key(cid)
        for entry in self.entries:
            if entry.cid in self._foreign:
                continue
            if canonical_key(entry.cid) == key:
                return True
        return False

    def submit(self, job: PinJob) -> None:
        if self._fail_submit_after is not None and len(self.submitted) >= self._fail_submit_after:
            raise RemoteServiceError("service unavailable")
        self.submitted.append(job)
        self._clock += timedelta(seconds=1)
        self.entries.insert(0, RemoteEntry(
            cid=str(job.cid),
            created=self._clock,
            name=self.provenance.name_for(job.cid, job.role),
        ))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def make_cid() -> Callable[..., CID]:
    """Factory fixture: a deterministic CID for a label."""

    def _factory(label: str, *, version: int = 1) -> CID:
        return cid_for(label.encode("utf-8"), version=version)

    return _factory


@pytest.fixture
def make_revision() -> Callable[..., ArtifactRevision]:
    """Factory fixture: an ArtifactRevision from ``{filename: cid}``."""

    def _factory(
        slug: str = "artifact",
        files: dict[str, Any] | None = None,
        *,
        hours: int = 0,
        revision_id: str | None = None,
    ) -> ArtifactRevision:
        descriptors = tuple(
            FileDescriptor(name=filename, filename=filename, cid=str(cid))
            for filename, cid in (files or {}).items()
        )
        return ArtifactRevision(
            slug=slug,
            path=f"artifacts/{slug}.md",
            revision_id=revision_id,
            timestamp=BASE_TIME + timedelta(hours=hours),
            files=descriptors,
        )

    return _factory


@pytest.fixture
def make_entry() -> Callable[..., RemoteEntry]:
    """Factory fixture: a RemoteEntry listed at a destination."""

    def _factory(cid: Any, *, minutes: int = 0, name: str | None = None) -> RemoteEntry:
        return RemoteEntry(
            cid=str(cid),
            created=BASE_TIME + timedelta(minutes=minutes),
            name=name,
        )

    return _factory


@pytest.fixture
def node_service() -> FakeNodeService:
    return FakeNodeService()


@pytest.fixture
def fake_destination_cls() -> type[FakeDestination]:
    return FakeDestination


@pytest.fixture
def fake_node_service_cls() -> type[FakeNodeService]:
    return FakeNodeService


class FakeSource:
    """MetadataSource over a fixed list of revisions."""

    def __init__(self, revisions: Sequence[ArtifactRevision]) -> None:
        self.skipped = []
        self._revisions = list(revisions)

    def slugs(self) -> list[str]:
        return sorted({rev.slug for rev in self._revisions})

    def history(self, slug: str) -> list[ArtifactRevision]:
        return [rev for rev in self._revisions if rev.slug == slug]


@pytest.fixture
def fake_source_cls() -> type[FakeSource]:
    return FakeSource


@pytest.fixture(autouse=True)
def _restore_package_logger():
    """The CLI installs its own handler; undo it so caplog keeps working."""
    logger = logging.getLogger("artifactsync")
    handlers, propagate, level = list(logger.handlers), logger.propagate, logger.level
    yield
    logger.handlers[:] = handlers
    logger.propagate = propagate
    logger.setLevel(level)
