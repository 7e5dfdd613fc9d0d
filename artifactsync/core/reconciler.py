"""Remote reconciler — which local CIDs are not yet known to be present.

Destination listing APIs cannot be trusted to paginate completely, so
reconciliation runs in two phases:

1. **Bulk sweep.** Page backwards in time through the destination's
   "already present" listing, collecting ContentKeys. A short page is taken
   as exhaustion. This is a heuristic, not a guarantee.
2. **Per-item confirmation.** Every local CID the sweep did not see gets one
   targeted existence query, scoped to this tool's provenance tag.

The output is a conservative superset of what truly needs mutation: content
may be re-submitted needlessly (mutation is idempotent) but is never
declared present when it is absent. Any remote failure aborts the whole
reconciliation; partial sweep results are discarded.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime, timezone

from multiformats import CID
from pydantic import BaseModel, ConfigDict, Field

from artifactsync.core.content_identity import (
    ContentSet,
    MalformedContentIDError,
    canonical_key,
)
from artifactsync.core.deduplicator import difference
from artifactsync.core.remote import Destination, RemoteServiceError
from artifactsync.models.content import ContentID

logger = logging.getLogger(__name__)

# Pinning Service API implementations reject limits above 1000.
MAX_PAGE_SIZE = 1000
DEFAULT_PAGE_SIZE = 200


class ReconciliationError(RuntimeError):
    """Raised when a destination cannot be reconciled."""

    def __init__(self, destination: str, message: str) -> None:
        self.destination = destination
        super().__init__(f"{destination}: {message}")


class ReconcileResult(BaseModel):
    """Outcome of reconciling a local CID list against one destination."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    destination: str
    local: list[ContentID] = Field(default_factory=list)
    swept_count: int = 0
    gaps: list[ContentID] = Field(default_factory=list)
    confirmed: list[ContentID] = Field(default_factory=list)
    missing: list[ContentID] = Field(default_factory=list)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RemoteReconciler:
    """Two-phase presence reconciliation against a single destination.

    Parameters
    ----------
    destination:
        The destination to query. Only its read-side operations are used.
    page_size:
        Number of entries requested per sweep page.
    clock:
        Source of the initial sweep cursor.
    """

    def __init__(
        self,
        destination: Destination,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}")
        self._destination = destination
        self._page_size = page_size
        self._clock = clock

    # ------------------------------------------------------------------
    # Phase 1: bulk sweep
    # ------------------------------------------------------------------

    def sweep(self) -> ContentSet:
        """Collect the ContentKeys of every entry the listing yields."""
        present = ContentSet()
        cursor = self._clock()
        pages = 0

        while True:
            page = self._destination.list_present(cursor, self._page_size)
            pages += 1

            oldest = cursor
            for entry in page:
                oldest = min(oldest, entry.created)
                try:
                    present.add(canonical_key(entry.cid))
                except MalformedContentIDError:
                    # Unknown to us, so it can not confirm anything.
                    logger.warning(
                        "%s: ignoring listed entry with invalid CID %r",
                        self._destination.name,
                        entry.cid,
                    )

            if len(page) < self._page_size:
                break

            if oldest >= cursor:
                # Every entry in a full page shares the cursor timestamp; the
                # listing can not be advanced. Whatever was missed is left to
                # per-item confirmation.
                logger.warning(
                    "%s: listing cursor stalled at %s; ending sweep",
                    self._destination.name,
                    cursor.isoformat(),
                )
                break

            cursor = oldest

        logger.info(
            "Found %d entries at %s (%d pages)",
            len(present),
            self._destination.name,
            pages,
        )
        return present

    # ------------------------------------------------------------------
    # Phase 2: per-item confirmation
    # ------------------------------------------------------------------

    def confirm(self, gaps: Sequence[CID]) -> tuple[list[CID], list[CID]]:
        """Split *gaps* into (confirmed present, genuinely missing)."""
        confirmed: list[CID] = []
        missing: list[CID] = []

        for cid in gaps:
            if self._destination.confirm_present(cid):
                logger.debug("%s: confirmed %s", self._destination.name, cid)
                confirmed.append(cid)
            else:
                missing.append(cid)

        return confirmed, missing

    # ------------------------------------------------------------------
    # Both phases
    # ------------------------------------------------------------------

    def reconcile(self, local: Sequence[CID]) -> ReconcileResult:
        """Return the ordered list of local CIDs that must be mutated."""
        name = self._destination.name
        try:
            present = self.sweep()
            gaps = difference(present, local)
            confirmed, missing = self.confirm(gaps)
        except RemoteServiceError as exc:
            raise ReconciliationError(name, str(exc)) from exc

        logger.info(
            "Skipping %d of %d CIDs already present at %s",
            len(local) - len(missing),
            len(local),
            name,
        )
        return ReconcileResult(
            destination=name,
            local=list(local),
            swept_count=len(present),
            gaps=gaps,
            confirmed=confirmed,
            missing=missing,
        )
