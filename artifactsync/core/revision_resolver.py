"""Revision resolver — latest known state of each artifact from its history.

Resolution is a per-filename merge, not a whole-revision override. Revisions
are walked newest to oldest and the first ContentID seen for a filename wins,
so a commit that touched only some of an artifact's files leaves the older
entries for the other filenames in place.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from multiformats import CID

from artifactsync.core.content_identity import MalformedContentIDError, parse_cid
from artifactsync.models.artifacts import ArtifactLatestState, ArtifactRevision
from artifactsync.models.report import SkipKind, SkippedEntry

logger = logging.getLogger(__name__)


def resolve_latest(
    slug: str,
    revisions: Sequence[ArtifactRevision],
    skipped: list[SkippedEntry] | None = None,
) -> ArtifactLatestState:
    """Resolve one artifact's latest state from its full revision list.

    Entries with a blank filename or an unparseable CID are dropped and, if
    *skipped* is given, recorded there. They never abort the artifact.
    """
    files: dict[str, CID] = {}

    ordered = sorted(revisions, key=lambda rev: rev.timestamp, reverse=True)

    for revision in ordered:
        for entry in revision.files:
            filename = entry.filename or ""
            if not filename.strip():
                if skipped is not None:
                    skipped.append(SkippedEntry(
                        kind=SkipKind.EMPTY_FILENAME,
                        slug=slug,
                        revision_id=revision.revision_id,
                        detail=f"file {entry.name!r} has no filename",
                    ))
                continue

            if filename in files:
                continue

            try:
                files[filename] = parse_cid(entry.cid)
            except MalformedContentIDError as exc:
                if skipped is not None:
                    skipped.append(SkippedEntry(
                        kind=SkipKind.MALFORMED_CID,
                        slug=slug,
                        revision_id=revision.revision_id,
                        detail=f"{filename}: {exc}",
                    ))

    return ArtifactLatestState(slug=slug, files=files)


def resolve_all(
    revisions: Iterable[ArtifactRevision],
    skipped: list[SkippedEntry] | None = None,
) -> list[ArtifactLatestState]:
    """Group revisions by slug and resolve each group.

    Output is ordered by slug so runs are reproducible.
    """
    by_slug: dict[str, list[ArtifactRevision]] = {}
    for revision in revisions:
        by_slug.setdefault(revision.slug, []).append(revision)

    states = [
        resolve_latest(slug, by_slug[slug], skipped)
        for slug in sorted(by_slug)
    ]

    logger.debug(
        "Resolved %d artifacts from %d revisions",
        len(states),
        sum(len(revs) for revs in by_slug.values()),
    )
    return states
