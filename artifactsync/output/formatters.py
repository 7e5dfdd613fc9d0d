"""Machine-readable output: JSON documents and GitHub Action step outputs."""

from __future__ import annotations

import json
import os
from collections.abc import Mapping, Sequence
from typing import IO, Any

from multiformats import CID

from artifactsync.models.artifacts import ArtifactRevision

_PRETTY_INDENT = 2


def _dumps(value: Any, pretty: bool) -> str:
    if pretty:
        return json.dumps(value, indent=_PRETTY_INDENT)
    return json.dumps(value, separators=(",", ":"))


def artifact_document(revision: ArtifactRevision) -> dict[str, Any]:
    return {
        "slug": revision.slug,
        "path": revision.path,
        "rev": revision.revision_id,
        "timestamp": revision.timestamp.isoformat(),
        "files": [
            {
                "name": entry.name,
                "mediaType": entry.media_type,
                "filename": entry.filename,
                "cid": entry.cid,
            }
            for entry in revision.files
        ],
    }


def format_artifacts(revisions: Sequence[ArtifactRevision], *, pretty: bool = True) -> str:
    """``{"artifacts": [...]}`` with one object per revision."""
    return _dumps({"artifacts": [artifact_document(rev) for rev in revisions]}, pretty)


def format_cids(cids: Sequence[CID], *, pretty: bool = True) -> str:
    return _dumps([str(cid) for cid in cids], pretty)


def write_action_outputs(
    outputs: Mapping[str, str],
    *,
    stream: IO[str],
    environ: Mapping[str, str] | None = None,
) -> None:
    """Publish step outputs for a GitHub Actions workflow.

    Appends to the ``$GITHUB_OUTPUT`` file when the runner provides one and
    falls back to the legacy ``::set-output`` command otherwise.
    """
    environ = os.environ if environ is None else environ
    output_file = environ.get("GITHUB_OUTPUT")

    if output_file:
        with open(output_file, "a", encoding="utf-8") as handle:
            for name, value in outputs.items():
                handle.write(f"{name}={value}\n")
        return

    for name, value in outputs.items():
        stream.write(f"::set-output name={name}::{value}\n")
