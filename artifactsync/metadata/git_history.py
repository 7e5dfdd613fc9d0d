"""Git-history metadata source.

Produces one revision per (commit, artifact file) for every commit reachable
from ``HEAD`` that added or modified an artifact file. This only understands
the artifact file layout; it is not a general history walker.

Revisions are read with the ``git`` binary. A revision that can not be read
or has no parseable front matter is skipped and recorded; failing to run
``git log`` at all is fatal.
"""

from __future__ import annotations

import logging
import subprocess
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath

from artifactsync.metadata.frontmatter import (
    ARTIFACT_FILE_EXTENSION,
    FrontMatterError,
    parse_front_matter,
    project_files,
)
from artifactsync.metadata.tree import MetadataSourceError
from artifactsync.models.artifacts import ArtifactRevision
from artifactsync.models.report import SkipKind, SkippedEntry

logger = logging.getLogger(__name__)

# git emits this for the %x00 placeholder; argv itself can not carry a NUL.
_COMMIT_MARKER = "\x00"
_GIT_TIMEOUT = 120


def _describe(exc: Exception) -> str:
    stderr = getattr(exc, "stderr", None)
    if isinstance(stderr, bytes):
        stderr = stderr.decode("utf-8", errors="replace")
    return (stderr or str(exc)).strip()


class RevisionReadError(RuntimeError):
    """One historical revision of an artifact file could not be read."""

    def __init__(self, path: str, revision_id: str, reason: str) -> None:
        self.path = path
        self.revision_id = revision_id
        self.reason = reason
        super().__init__(f"{path}@{revision_id[:12]}: {reason}")


class GitHistorySource:
    """Every committed revision of ``<repo>/<path>/*.md``."""

    def __init__(self, repo: Path, path: str, *, git: str = "git") -> None:
        self.repo = Path(repo)
        self.path = path.strip("/")
        self.skipped: list[SkippedEntry] = []
        self._git = git
        self._revisions: dict[str, list[ArtifactRevision]] | None = None

    # ------------------------------------------------------------------
    # git plumbing
    # ------------------------------------------------------------------

    def _run(self, *args: str) -> bytes:
        # Paths come back as raw UTF-8 rather than C-quoted.
        result = subprocess.run(
            [self._git, "-C", str(self.repo), "-c", "core.quotePath=false", *args],
            capture_output=True,
            timeout=_GIT_TIMEOUT,
        )
        if result.returncode != 0:
            raise subprocess.CalledProcessError(
                result.returncode, result.args, result.stdout, result.stderr
            )
        return result.stdout

    def _pathspec(self) -> str:
        pattern = f"*{ARTIFACT_FILE_EXTENSION}"
        if self.path:
            pattern = f"{self.path}/{pattern}"
        return f":(glob){pattern}"

    def _log(self) -> list[tuple[str, datetime, list[str]]]:
        """(commit, committer time, touched artifact paths), newest first."""
        try:
            output = self._run(
                "log",
                "--date-order",
                "--diff-filter=d",
                "--name-only",
                "--format=%x00%H %ct",
                "--",
                self._pathspec(),
            ).decode("utf-8")
        except (subprocess.SubprocessError, OSError, UnicodeDecodeError) as exc:
            raise MetadataSourceError(
                f"could not read the git history of {self.repo}: {_describe(exc)}"
            ) from exc

        commits: list[tuple[str, datetime, list[str]]] = []
        for block in output.split(_COMMIT_MARKER):
            lines = [line for line in block.splitlines() if line.strip()]
            if not lines:
                continue
            commit, timestamp = lines[0].split()
            committed = datetime.fromtimestamp(int(timestamp), tz=timezone.utc)
            commits.append((commit, committed, lines[1:]))
        return commits

    def _show(self, commit: str, path: str) -> str:
        try:
            return self._run("show", f"{commit}:{path}").decode("utf-8")
        except UnicodeDecodeError as exc:
            raise RevisionReadError(path, commit, f"not valid UTF-8: {exc.reason}") from exc
        except (subprocess.SubprocessError, OSError) as exc:
            raise RevisionReadError(path, commit, _describe(exc)) from exc

    # ------------------------------------------------------------------
    # MetadataSource
    # ------------------------------------------------------------------

    def _read_revision(self, commit: str, committed: datetime, path: str) -> ArtifactRevision:
        text = self._show(commit, path)
        try:
            document = parse_front_matter(text)
        except FrontMatterError as exc:
            raise RevisionReadError(path, commit, str(exc)) from exc

        return ArtifactRevision(
            slug=PurePosixPath(path).stem,
            path=path,
            revision_id=commit,
            timestamp=committed,
            files=project_files(document),
        )

    def _load(self) -> dict[str, list[ArtifactRevision]]:
        if self._revisions is not None:
            return self._revisions

        revisions: dict[str, list[ArtifactRevision]] = {}
        count = 0

        for commit, committed, paths in self._log():
            for path in paths:
                if PurePosixPath(path).parent != PurePosixPath(self.path):
                    continue
                try:
                    revision = self._read_revision(commit, committed, path)
                except RevisionReadError as exc:
                    logger.warning("Skipping revision: %s", exc)
                    self.skipped.append(SkippedEntry(
                        kind=SkipKind.REVISION_READ_FAILURE,
                        slug=PurePosixPath(path).stem,
                        revision_id=commit,
                        detail=exc.reason,
                    ))
                    continue
                revisions.setdefault(revision.slug, []).append(revision)
                count += 1

        logger.info("Found %d artifact files in the history", count)
        self._revisions = revisions
        return revisions

    def slugs(self) -> list[str]:
        return sorted(self._load())

    def history(self, slug: str) -> list[ArtifactRevision]:
        return list(self._load().get(slug, []))
