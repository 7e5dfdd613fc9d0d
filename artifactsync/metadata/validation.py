"""Field-level validation of artifact files in the working tree.

Every rule reports a field path and a reason, and all violations of a file
are gathered into one ``InvalidArtifactError`` so an author can fix them in
a single pass.
"""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass

from pydantic import ValidationError

from artifactsync.core.content_identity import MalformedContentIDError, parse_cid
from artifactsync.models.entry import ArtifactEntry

_TOKEN = r"[A-Za-z0-9!#$%&'*+.^_`|~-]+"
_MEDIA_TYPE = re.compile(
    rf"^{_TOKEN}/{_TOKEN}"
    rf"(\s*;\s*{_TOKEN}=({_TOKEN}|\"[^\"]*\"))*\s*$"
)


@dataclass(frozen=True)
class InvalidArtifactReason:
    field_path: str
    reason: str

    def __str__(self) -> str:
        return f"`{self.field_path}` {self.reason}"


class InvalidArtifactError(RuntimeError):
    """An artifact file violated one or more schema rules."""

    def __init__(self, path: str, reasons: list[InvalidArtifactReason]) -> None:
        self.path = path
        self.reasons = list(reasons)
        lines = [f"'{path}':"]
        lines.extend(f"    {reason}" for reason in self.reasons)
        super().__init__("\n".join(lines))


def is_media_type(value: str) -> bool:
    return _MEDIA_TYPE.match(value) is not None


def _decade(year: int) -> int:
    return year - (year % 10)


def check_entry(entry: ArtifactEntry) -> list[InvalidArtifactReason]:
    """Return every rule *entry* violates, in field order."""
    reasons: list[InvalidArtifactReason] = []

    def register(field_path: str, reason: str) -> None:
        reasons.append(InvalidArtifactReason(field_path, reason))

    if not entry.title:
        register("title", "can not be empty")
    if not entry.description:
        register("description", "can not be empty")
    if entry.from_year == 0:
        register("fromYear", "can not be 0")
    if entry.to_year is not None and entry.to_year == 0:
        register("toYear", "can not be 0")
    if entry.to_year is not None and entry.to_year < entry.from_year:
        register("toYear", "can not come before `fromYear`")

    if not entry.decades:
        register("decades", "can not be empty")

    years_known = entry.from_year != 0 and entry.to_year != 0
    earliest = _decade(entry.from_year)
    latest = _decade(entry.to_year) if entry.to_year is not None else earliest
    remaining = set(range(earliest, latest + 1, 10))

    for index, decade in enumerate(entry.decades):
        path = f"decades[{index}]"
        if decade % 10 != 0:
            register(path, "is not a decade")
            continue
        if not years_known:
            continue
        if decade < earliest:
            register(path, "comes before the decade of `fromYear`")
            continue
        if entry.to_year is not None and decade > latest:
            register(path, "comes after the decade of `toYear`")
            continue
        if decade not in remaining:
            register(path, "is in the list more than once")
            continue
        remaining.discard(decade)

    if years_known:
        for decade in sorted(remaining):
            register("decades", f"should contain '{decade}' but doesn't")

    if not entry.files:
        register("files", "can not be empty")

    for index, file_entry in enumerate(entry.files):
        prefix = f"files[{index}]"
        if not file_entry.name:
            register(f"{prefix}.name", "can not be empty")
        try:
            parse_cid(file_entry.cid)
        except MalformedContentIDError:
            register(f"{prefix}.cid", "is not a valid CID")
        if file_entry.media_type is not None and not is_media_type(file_entry.media_type):
            register(f"{prefix}.mediaType", "is not a valid media type")
        if file_entry.filename is not None and not posixpath.splitext(file_entry.filename)[1]:
            register(f"{prefix}.filename", "does not have a file extension")

    return reasons


def validate_entry(document: dict, path: str) -> ArtifactEntry:
    """Load *document* into the strict schema and apply every rule.

    Raises InvalidArtifactError listing all problems found.
    """
    try:
        entry = ArtifactEntry.model_validate(document)
    except ValidationError as exc:
        raise InvalidArtifactError(
            path,
            [
                InvalidArtifactReason(
                    ".".join(str(part) for part in error["loc"]) or "<root>",
                    error["msg"].lower(),
                )
                for error in exc.errors()
            ],
        ) from exc

    reasons = check_entry(entry)
    if reasons:
        raise InvalidArtifactError(path, reasons)
    return entry
