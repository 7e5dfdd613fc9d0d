"""Front-matter extraction and the minimal projection used by the engine.

An artifact file is Markdown whose YAML front matter describes the artifact.
History mode has to read every schema version ever committed, so it never
validates the document; it only projects ``files[*].{name, mediaType,
filename, cid}`` out of it, tolerating anything else.
"""

from __future__ import annotations

from typing import Any

import yaml

from artifactsync.models.artifacts import FileDescriptor

FRONT_MATTER_DELIMITER = "---"
ARTIFACT_FILE_EXTENSION = ".md"


class FrontMatterError(RuntimeError):
    """Raised when an artifact file has no usable front matter."""


def _is_delimiter(line: str) -> bool:
    return line.startswith(FRONT_MATTER_DELIMITER) and line.strip() == FRONT_MATTER_DELIMITER


def extract_front_matter(text: str) -> str:
    """Return the raw YAML between the opening and closing delimiters."""
    lines = iter(text.splitlines())

    for line in lines:
        if not line.strip():
            continue
        if _is_delimiter(line):
            break
        raise FrontMatterError("this file has no front matter")
    else:
        raise FrontMatterError("this file has no front matter")

    collected: list[str] = []
    for line in lines:
        if _is_delimiter(line):
            return "".join(f"{chunk}\n" for chunk in collected)
        collected.append(line)

    raise FrontMatterError("the front matter is never closed")


def parse_front_matter(text: str) -> dict[str, Any]:
    """Extract and load the front matter of *text* as a mapping."""
    raw = extract_front_matter(text)
    try:
        document = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise FrontMatterError(f"the front matter is not valid YAML: {exc}") from exc

    if document is None:
        return {}
    if not isinstance(document, dict):
        raise FrontMatterError("the front matter is not a mapping")
    return document


def _optional_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def project_files(document: dict[str, Any]) -> tuple[FileDescriptor, ...]:
    """Read only the file list out of a front-matter document."""
    files = document.get("files")
    if not isinstance(files, list):
        return ()

    descriptors: list[FileDescriptor] = []
    for item in files:
        if not isinstance(item, dict):
            continue
        descriptors.append(
            FileDescriptor(
                name=_optional_str(item.get("name")) or "",
                media_type=_optional_str(item.get("mediaType")),
                filename=_optional_str(item.get("filename")),
                cid=_optional_str(item.get("cid")) or "",
            )
        )
    return tuple(descriptors)
