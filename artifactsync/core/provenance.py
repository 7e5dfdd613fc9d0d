"""Provenance tags attached to every remote mutation.

Pins carry metadata ``{tag: "", "<tag>.kind": "file"|"root"}`` and a name
``<tag>/files/<cid>`` or ``<tag>/roots/<cid>``. Listing and confirmation
queries filter on the tag so content pinned by other tools sharing the same
account is never mistaken for ours.
"""

from __future__ import annotations

import json

from multiformats import CID

from artifactsync.models.jobs import JobRole

DEFAULT_PROVENANCE_TAG = "io.artifactsync"

_ROLE_SEGMENTS: dict[JobRole, str] = {
    JobRole.FILE: "files",
    JobRole.ROOT: "roots",
}


class Provenance:
    """Builds the metadata and names that mark content as ours."""

    def __init__(self, tag: str = DEFAULT_PROVENANCE_TAG) -> None:
        if not tag.strip():
            raise ValueError("provenance tag can not be empty")
        self.tag = tag

    @property
    def kind_key(self) -> str:
        return f"{self.tag}.kind"

    def meta_for(self, role: JobRole) -> dict[str, str]:
        return {self.tag: "", self.kind_key: role.value}

    def filter_meta(self) -> dict[str, str]:
        """Metadata subset shared by every pin this tool creates."""
        return {self.tag: ""}

    def encoded_filter(self) -> str:
        return json.dumps(self.filter_meta(), separators=(",", ":"))

    def name_for(self, cid: CID, role: JobRole) -> str:
        return f"{self.tag}/{_ROLE_SEGMENTS[role]}/{cid}"

    def owns_name(self, name: str | None) -> bool:
        return bool(name) and name.startswith(f"{self.tag}/")

    def __repr__(self) -> str:
        return f"Provenance(tag={self.tag!r})"
