"""Working-tree metadata source.

Reads the artifact files currently checked out and validates each of them.
Every artifact yields exactly one revision, stamped with the load time.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from artifactsync.metadata.frontmatter import (
    ARTIFACT_FILE_EXTENSION,
    FrontMatterError,
    parse_front_matter,
    project_files,
)
from artifactsync.metadata.validation import (
    InvalidArtifactError,
    InvalidArtifactReason,
    validate_entry,
)
from artifactsync.models.artifacts import ArtifactRevision
from artifactsync.models.report import SkippedEntry

logger = logging.getLogger(__name__)


class MetadataSourceError(RuntimeError):
    """The repository or its artifact files could not be read at all."""


class WorkingTreeSource:
    """Artifact files under ``<repo>/<path>/*.md`` as they are on disk.

    Files that fail to parse or validate are collected in ``invalid``; the
    caller decides whether that aborts the run.
    """

    def __init__(self, repo: Path, path: str) -> None:
        self.repo = Path(repo)
        self.path = path
        self.skipped: list[SkippedEntry] = []
        self.invalid: list[InvalidArtifactError] = []
        self._revisions: dict[str, ArtifactRevision] | None = None

    def _load(self) -> dict[str, ArtifactRevision]:
        if self._revisions is not None:
            return self._revisions

        directory = self.repo / self.path
        if not directory.is_dir():
            raise MetadataSourceError(f"artifact directory not found: {directory}")

        files = sorted(directory.glob(f"*{ARTIFACT_FILE_EXTENSION}"))
        logger.info("Found %d artifact files in the tree", len(files))

        loaded_at = datetime.now(timezone.utc)
        revisions: dict[str, ArtifactRevision] = {}

        for file_path in files:
            relative = file_path.relative_to(self.repo).as_posix()
            try:
                text = file_path.read_text(encoding="utf-8")
            except UnicodeDecodeError as exc:
                self.invalid.append(
                    InvalidArtifactError(relative, [InvalidArtifactReason("<file>", f"is not valid UTF-8: {exc.reason}")])
                )
                continue
            except OSError as exc:
                raise MetadataSourceError(f"could not read {relative}: {exc}") from exc

            try:
                document = parse_front_matter(text)
            except FrontMatterError as exc:
                self.invalid.append(
                    InvalidArtifactError(relative, [InvalidArtifactReason("<front matter>", str(exc))])
                )
                continue

            try:
                validate_entry(document, relative)
            except InvalidArtifactError as exc:
                self.invalid.append(exc)

            slug = file_path.name[: -len(ARTIFACT_FILE_EXTENSION)]
            revisions[slug] = ArtifactRevision(
                slug=slug,
                path=relative,
                revision_id=None,
                timestamp=loaded_at,
                files=project_files(document),
            )

        if self.invalid:
            logger.error("%d artifact files are invalid", len(self.invalid))
        else:
            logger.info("All artifact files in the tree are valid")

        self._revisions = revisions
        return revisions

    def slugs(self) -> list[str]:
        return sorted(self._load())

    def history(self, slug: str) -> list[ArtifactRevision]:
        revision = self._load().get(slug)
        return [revision] if revision is not None else []
