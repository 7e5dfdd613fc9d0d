"""Mutation executor — pins or uploads the reconciler's "missing" set.

File-role content is always submitted before the root directory, so a root
is never marked present at a destination before its children have been
submitted. In dry-run mode jobs are planned and logged but never issued.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from multiformats import CID

from artifactsync.core.content_identity import canonical_key
from artifactsync.core.remote import Destination, RemoteServiceError
from artifactsync.models.jobs import JobRole, PinJob

logger = logging.getLogger(__name__)


class MutationError(RuntimeError):
    """Raised when a pin or upload fails.

    Jobs submitted before the failure stay in effect; ``completed`` counts
    them.
    """

    def __init__(self, destination: str, job: PinJob, completed: int, message: str) -> None:
        self.destination = destination
        self.job = job
        self.completed = completed
        super().__init__(
            f"{destination}: failed to submit {job.role.value} {job.cid} "
            f"after {completed} successful submissions: {message}"
        )


def plan_jobs(missing: Sequence[CID], root: CID | None) -> list[PinJob]:
    """Turn the missing CIDs into jobs, the root (if missing) last."""
    root_key = canonical_key(root) if root is not None else None

    jobs = [
        PinJob(cid=cid, role=JobRole.FILE)
        for cid in missing
        if canonical_key(cid) != root_key
    ]
    root_jobs = [
        PinJob(cid=cid, role=JobRole.ROOT)
        for cid in missing
        if canonical_key(cid) == root_key
    ]
    return jobs + root_jobs[:1]


class MutationExecutor:
    """Issues planned jobs against one destination.

    Parameters
    ----------
    destination:
        Where jobs are submitted.
    dry_run:
        When True, nothing is submitted.
    """

    def __init__(
        self,
        destination: Destination,
        *,
        dry_run: bool = False,
    ) -> None:
        self._destination = destination
        self._dry_run = dry_run
        self._verb = destination.verb

    @property
    def dry_run(self) -> bool:
        return self._dry_run

    def execute(self, jobs: Sequence[PinJob]) -> int:
        """Submit *jobs* in order. Returns the number actually submitted."""
        name = self._destination.name
        ordered = sorted(jobs, key=lambda job: job.role == JobRole.ROOT)
        file_total = sum(1 for job in ordered if job.role == JobRole.FILE)

        logger.info("%s %d files at %s", self._verb, file_total, name)

        prefix = "Dry run: " if self._dry_run else ""
        submitted = 0
        for index, job in enumerate(ordered, start=1):
            if job.role == JobRole.ROOT:
                logger.info("%s%s the root directory: /ipfs/%s", prefix, self._verb, job.cid)
            else:
                logger.info("%s%s (%d/%d): %s", prefix, self._verb, index, file_total, job.cid)

            if self._dry_run:
                continue

            try:
                self._destination.submit(job)
            except RemoteServiceError as exc:
                raise MutationError(name, job, submitted, str(exc)) from exc
            submitted += 1

        if self._dry_run:
            logger.info("Dry run: %d submissions to %s skipped", len(ordered), name)
        return submitted
