"""Sync engine — the central coordinator for a synchronization run.

The engine wires the revision resolver, deduplicator, tree builder,
reconciler and executor into one pipeline:

    metadata source -> latest states -> unique CIDs -> directory tree
        -> (per destination) sweep -> gaps -> confirm -> mutate

Each destination is processed sequentially and independently: a failure at
one destination is recorded in its report and does not stop the others.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from multiformats import CID
from pydantic import BaseModel, ConfigDict, Field

from artifactsync.core.content_identity import ContentSet
from artifactsync.core.deduplicator import collect
from artifactsync.core.executor import MutationError, MutationExecutor, plan_jobs
from artifactsync.core.reconciler import (
    DEFAULT_PAGE_SIZE,
    ReconciliationError,
    RemoteReconciler,
)
from artifactsync.core.remote import Destination, MetadataSource, NodeService
from artifactsync.core.revision_resolver import resolve_all
from artifactsync.core.tree_builder import DirectoryTreeBuilder
from artifactsync.models.artifacts import ArtifactLatestState, ArtifactRevision
from artifactsync.models.content import ContentID
from artifactsync.models.jobs import DirectoryTree
from artifactsync.models.report import DestinationReport, SkippedEntry, SyncReport

logger = logging.getLogger(__name__)


class LocalSnapshot(BaseModel):
    """Everything known locally before any remote is contacted."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    revisions: list[ArtifactRevision] = Field(default_factory=list)
    states: list[ArtifactLatestState] = Field(default_factory=list)
    cids: list[ContentID] = Field(default_factory=list)
    skipped: list[SkippedEntry] = Field(default_factory=list)


class SyncEngine:
    """Runs one synchronization of local artifacts to remote destinations.

    Parameters
    ----------
    source:
        Supplies artifact revision histories.
    nodes:
        Node service for the directory tree. Required when any destination
        is configured.
    destinations:
        Remote stores to synchronize to.
    dry_run:
        Reconcile fully but submit nothing.
    page_size:
        Bulk sweep page size.
    """

    def __init__(
        self,
        source: MetadataSource,
        *,
        nodes: NodeService | None = None,
        destinations: Sequence[Destination] = (),
        dry_run: bool = False,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        if destinations and nodes is None:
            raise ValueError("a node service is required to synchronize destinations")
        self._source = source
        self._nodes = nodes
        self._destinations = list(destinations)
        self._dry_run = dry_run
        self._page_size = page_size

    # ------------------------------------------------------------------
    # Local side
    # ------------------------------------------------------------------

    def prepare(self) -> LocalSnapshot:
        """Load every revision, resolve latest states, collect unique CIDs."""
        revisions: list[ArtifactRevision] = []
        for slug in self._source.slugs():
            revisions.extend(self._source.history(slug))

        skipped: list[SkippedEntry] = list(self._source.skipped)
        states = resolve_all(revisions, skipped)
        cids = collect(states)

        if skipped:
            logger.warning("Skipped %d entries while loading artifacts", len(skipped))

        return LocalSnapshot(
            revisions=revisions,
            states=states,
            cids=cids,
            skipped=skipped,
        )

    # ------------------------------------------------------------------
    # Remote side
    # ------------------------------------------------------------------

    def build_tree(self, snapshot: LocalSnapshot) -> DirectoryTree:
        """Build the directory tree. Raises TreeBuildError on any failure."""
        if self._nodes is None:
            raise ValueError("no node service configured")
        return DirectoryTreeBuilder(self._nodes).build(snapshot.states)

    def synchronize(self, snapshot: LocalSnapshot) -> SyncReport:
        """Build the tree and synchronize every destination.

        TreeBuildError propagates: without a root nothing can be synced.
        Destination failures are recorded in the report.
        """
        root: CID | None = None
        reports: list[DestinationReport] = []

        if self._destinations:
            tree = self.build_tree(snapshot)
            root = tree.root
            for destination in self._destinations:
                reports.append(self.sync_destination(destination, snapshot.cids, root))

        return SyncReport(
            artifact_count=sum(1 for state in snapshot.states if not state.is_empty),
            unique_cid_count=len(snapshot.cids),
            root=root,
            skipped=snapshot.skipped,
            destinations=reports,
        )

    def run(self) -> SyncReport:
        """prepare() then synchronize()."""
        return self.synchronize(self.prepare())

    def sync_destination(
        self,
        destination: Destination,
        cids: Sequence[CID],
        root: CID,
    ) -> DestinationReport:
        """Reconcile then mutate one destination; never raises for it."""
        local = list(cids)
        if root not in ContentSet(local):
            local.append(root)

        reconciler = RemoteReconciler(destination, page_size=self._page_size)
        executor = MutationExecutor(destination, dry_run=self._dry_run)

        try:
            result = reconciler.reconcile(local)
        except ReconciliationError as exc:
            logger.error("Reconciliation failed: %s", exc)
            return DestinationReport(
                destination=destination.name,
                dry_run=self._dry_run,
                local_count=len(local),
                error=str(exc),
            )

        jobs = plan_jobs(result.missing, root)
        report = DestinationReport(
            destination=destination.name,
            dry_run=self._dry_run,
            local_count=len(local),
            swept_count=result.swept_count,
            gap_count=len(result.gaps),
            confirmed_count=len(result.confirmed),
            jobs=jobs,
        )

        try:
            executor.execute(jobs)
        except MutationError as exc:
            logger.error("Mutation failed: %s", exc)
            return report.model_copy(update={"error": str(exc)})

        return report
