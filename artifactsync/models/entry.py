"""The current artifact file schema.

Only the working-tree mode validates against this model. History mode must
keep reading every past schema version, so it never uses it (see
``artifactsync.metadata.frontmatter.project_files``).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

CURRENT_ARTIFACT_VERSION = 1


class ArtifactEntryFile(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    name: str
    media_type: str | None = Field(default=None, alias="mediaType")
    filename: str | None = None
    cid: str


class ArtifactEntryLink(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    url: str


class ArtifactEntry(BaseModel):
    """Front matter of an artifact file, strictly typed."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    version: int
    title: str
    description: str
    long_description: str | None = Field(default=None, alias="longDescription")
    files: list[ArtifactEntryFile] = []
    links: list[ArtifactEntryLink] = []
    people: list[str] = []
    identities: list[str] = []
    from_year: int = Field(alias="fromYear")
    to_year: int | None = Field(default=None, alias="toYear")
    decades: list[int] = []
