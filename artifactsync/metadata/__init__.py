"""Metadata sources — where artifact revisions come from."""

from artifactsync.metadata.frontmatter import (
    FrontMatterError,
    extract_front_matter,
    parse_front_matter,
    project_files,
)
from artifactsync.metadata.git_history import GitHistorySource, RevisionReadError
from artifactsync.metadata.tree import MetadataSourceError, WorkingTreeSource
from artifactsync.metadata.validation import InvalidArtifactError, validate_entry

__all__ = [
    "FrontMatterError",
    "extract_front_matter",
    "parse_front_matter",
    "project_files",
    "GitHistorySource",
    "RevisionReadError",
    "MetadataSourceError",
    "WorkingTreeSource",
    "InvalidArtifactError",
    "validate_entry",
]
