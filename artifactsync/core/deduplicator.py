"""Content deduplication over resolved artifacts."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from multiformats import CID

from artifactsync.core.content_identity import ContentSet, canonical_key
from artifactsync.models.artifacts import ArtifactLatestState

logger = logging.getLogger(__name__)


def collect(artifacts: Iterable[ArtifactLatestState]) -> list[CID]:
    """Return the unique CIDs across all artifacts in first-seen order.

    When two CIDs share a ContentKey the first one encountered is kept, so
    the serialization that appears in the output is deterministic.
    """
    seen = ContentSet()
    unique: list[CID] = []

    for artifact in artifacts:
        for cid in artifact.files.values():
            if cid in seen:
                continue
            seen.add(cid)
            unique.append(cid)

    logger.info("Found %d unique CIDs in artifact files", len(unique))
    return unique


def difference(remote: ContentSet, local: Sequence[CID]) -> list[CID]:
    """Return the entries of *local* whose ContentKey is absent from *remote*."""
    return [cid for cid in local if canonical_key(cid) not in remote]
