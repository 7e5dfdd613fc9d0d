"""Capability interfaces the engine calls into.

Remote implementations live in ``artifactsync.remote`` and metadata sources
in ``artifactsync.metadata``; tests supply in-memory ones. Every transport or
protocol failure raised by a remote implementation must be a
``RemoteServiceError``.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol, runtime_checkable

from multiformats import CID

from artifactsync.models.artifacts import ArtifactRevision
from artifactsync.models.jobs import DirectoryLink, PinJob, RemoteEntry, RemoteNode
from artifactsync.models.report import SkippedEntry


class RemoteServiceError(RuntimeError):
    """A remote service call failed (network, status or payload)."""


@runtime_checkable
class MetadataSource(Protocol):
    """Supplies the revision history of every artifact."""

    skipped: list[SkippedEntry]

    def slugs(self) -> list[str]:
        ...

    def history(self, slug: str) -> list[ArtifactRevision]:
        """Every readable revision of *slug*, in any order."""
        ...


@runtime_checkable
class NodeService(Protocol):
    """Content-addressed node service used to build directory trees."""

    def resolve_node(self, cid: CID) -> RemoteNode:
        """Look up an existing node without fetching its bytes."""
        ...

    def put_directory(
        self, links: Sequence[DirectoryLink], *, pin: bool = False
    ) -> RemoteNode:
        """Store a new directory node linking to existing nodes."""
        ...


@runtime_checkable
class Destination(Protocol):
    """A remote store this tool synchronizes content to."""

    @property
    def name(self) -> str:
        ...

    @property
    def verb(self) -> str:
        """Progress word for mutations ("Pinning", "Uploading")."""
        ...

    def list_present(self, before: datetime, limit: int) -> list[RemoteEntry]:
        """One page of entries created strictly before *before*, newest first."""
        ...

    def confirm_present(self, cid: CID) -> bool:
        """Targeted existence query scoped to this tool's provenance tag."""
        ...

    def submit(self, job: PinJob) -> None:
        """Pin or upload one CID. Must be idempotent at the destination."""
        ...
