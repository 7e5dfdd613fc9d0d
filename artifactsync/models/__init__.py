"""artifactsync data models — all Pydantic v2, all frozen (immutable)."""

from artifactsync.models.artifacts import (
    ArtifactLatestState,
    ArtifactRevision,
    FileDescriptor,
)
from artifactsync.models.content import ContentID, ContentKey
from artifactsync.models.entry import ArtifactEntry, ArtifactEntryFile, ArtifactEntryLink
from artifactsync.models.jobs import (
    DirectoryLink,
    DirectoryTree,
    JobRole,
    PinJob,
    RemoteEntry,
    RemoteNode,
)
from artifactsync.models.report import (
    DestinationReport,
    SkipKind,
    SkippedEntry,
    SyncReport,
)

__all__ = [
    # content
    "ContentID",
    "ContentKey",
    # artifacts
    "FileDescriptor",
    "ArtifactRevision",
    "ArtifactLatestState",
    # schema
    "ArtifactEntry",
    "ArtifactEntryFile",
    "ArtifactEntryLink",
    # remote
    "JobRole",
    "PinJob",
    "RemoteEntry",
    "RemoteNode",
    "DirectoryLink",
    "DirectoryTree",
    # report
    "SkipKind",
    "SkippedEntry",
    "DestinationReport",
    "SyncReport",
]
