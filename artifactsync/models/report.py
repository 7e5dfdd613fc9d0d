"""Run report models — what happened, rendered once at the end of a run."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from artifactsync.models.content import ContentID
from artifactsync.models.jobs import PinJob


class SkipKind(str, Enum):
    """Locally recovered problems; none of them abort a run."""

    MALFORMED_CID = "malformed_cid"
    EMPTY_FILENAME = "empty_filename"
    REVISION_READ_FAILURE = "revision_read_failure"


class SkippedEntry(BaseModel):
    """An entry or revision dropped during loading or resolution."""

    model_config = ConfigDict(frozen=True)

    kind: SkipKind
    slug: str
    revision_id: str | None = None
    detail: str = ""

    def describe(self) -> str:
        where = self.slug if self.revision_id is None else f"{self.slug}@{self.revision_id[:12]}"
        return f"{where}: {self.kind.value.replace('_', ' ')}: {self.detail}"


class DestinationReport(BaseModel):
    """Reconciliation and mutation summary for one destination.

    The content is identical in dry-run and live runs except for the
    ``dry_run`` flag itself.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    destination: str
    dry_run: bool = False
    local_count: int = 0
    swept_count: int = 0
    gap_count: int = 0
    confirmed_count: int = 0
    jobs: list[PinJob] = Field(default_factory=list)
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def already_present(self) -> int:
        return self.local_count - len(self.jobs)


class SyncReport(BaseModel):
    """Whole-run summary."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    artifact_count: int = 0
    unique_cid_count: int = 0
    root: ContentID | None = None
    skipped: list[SkippedEntry] = Field(default_factory=list)
    destinations: list[DestinationReport] = Field(default_factory=list)

    @property
    def failed(self) -> bool:
        return any(d.failed for d in self.destinations)
