"""Remote-side models: listing entries, DAG nodes and mutation jobs."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from artifactsync.models.content import ContentID


class JobRole(str, Enum):
    """What a mutated CID is to this tool; selects the provenance tag."""

    FILE = "file"
    ROOT = "root"


class PinJob(BaseModel):
    """The unit of remote mutation (a pin or an upload)."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    cid: ContentID
    role: JobRole = JobRole.FILE


class RemoteEntry(BaseModel):
    """One row of a destination's "already present" listing.

    ``cid`` is the raw string the destination returned; it is parsed by the
    reconciler, never compared as a string.
    """

    model_config = ConfigDict(frozen=True)

    cid: str
    created: datetime
    name: str | None = None

    @field_validator("created")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # Cursor arithmetic compares against an aware "now".
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class RemoteNode(BaseModel):
    """An existing node in the content-addressed node service."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    cid: ContentID
    size: int = 0  # cumulative size of the DAG below this node


class DirectoryLink(BaseModel):
    """A named link from a directory node to an existing node."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    cid: ContentID
    size: int = 0


class DirectoryTree(BaseModel):
    """Result of a tree build: root CID plus the CID of each artifact dir."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    root: ContentID
    artifacts: dict[str, ContentID] = Field(default_factory=dict)
