"""Content identifier types shared by every model.

A ``ContentID`` is a parsed CID. Its string form is not canonical: a CIDv0
and a CIDv1 (in any multibase) can name the same bytes. A ``ContentKey`` is
the hex-encoded multihash of a CID and is the only value used for identity.
"""

from __future__ import annotations

from typing import Annotated, Any, NewType

from multiformats import CID
from pydantic import BeforeValidator, PlainSerializer

ContentKey = NewType("ContentKey", str)


def _coerce_cid(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return CID.decode(value.strip())
        except Exception as exc:  # multiformats raises several error types
            raise ValueError(f"not a valid CID: {value!r}") from exc
    return value


# Pydantic field type: accepts a CID or its string form, dumps as a string.
ContentID = Annotated[
    CID,
    BeforeValidator(_coerce_cid),
    PlainSerializer(lambda cid: str(cid), return_type=str, when_used="json"),
]
