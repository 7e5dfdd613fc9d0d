"""Artifact revision models (immutable once constructed)."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from artifactsync.models.content import ContentID


class FileDescriptor(BaseModel):
    """A single file entry of an artifact revision.

    ``cid`` is kept exactly as it appeared in the artifact file. Parsing
    happens during resolution so that one unparseable entry only drops
    itself.
    """

    model_config = ConfigDict(frozen=True)

    name: str = ""
    media_type: str | None = None
    filename: str | None = None
    cid: str = ""


class ArtifactRevision(BaseModel):
    """One historical version of an artifact's descriptor file.

    ``revision_id`` is the commit hash in history mode and ``None`` for the
    working tree.
    """

    model_config = ConfigDict(frozen=True)

    slug: str
    path: str
    revision_id: str | None = None
    timestamp: datetime
    files: tuple[FileDescriptor, ...] = ()


class ArtifactLatestState(BaseModel):
    """The resolved current state of one artifact: filename -> ContentID.

    Recomputed every run, never persisted.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    slug: str
    files: dict[str, ContentID] = Field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.files
