"""Content identity — canonical deduplication keys for CIDs.

Two CIDs are content-equivalent iff their multihash is identical, whatever
their version, multibase or codec. Every presence and dedup decision goes
through ``canonical_key``; CID strings are never compared directly.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator

from multiformats import CID

from artifactsync.models.content import ContentKey

_HEX_KEY = re.compile(r"[0-9a-f]+")


class MalformedContentIDError(RuntimeError):
    """Raised when a string cannot be parsed as a CID."""

    def __init__(self, value: str, reason: str = "") -> None:
        self.value = value
        self.reason = reason
        message = f"not a valid CID: {value!r}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


def parse_cid(value: str) -> CID:
    """Parse the external string form of a CID.

    Raises MalformedContentIDError for empty or unparseable input.
    """
    if not isinstance(value, str) or not value.strip():
        raise MalformedContentIDError(str(value), "empty")
    try:
        return CID.decode(value.strip())
    except Exception as exc:  # multiformats raises several error types
        raise MalformedContentIDError(value, str(exc)) from exc


def canonical_key(cid: CID | str) -> ContentKey:
    """Return the version-independent key for a CID (hex multihash)."""
    if isinstance(cid, str):
        cid = parse_cid(cid)
    return ContentKey(bytes(cid.digest).hex())


def serializations(cid: CID) -> list[str]:
    """All string forms a remote may have recorded for the same content.

    The given form first, then CIDv1 in base32, then CIDv0 when the CID is
    representable as one (dag-pb + sha2-256).
    """
    forms = [str(cid)]
    forms.append(str(cid.set(base="base32", version=1)))
    if cid.codec.name == "dag-pb" and cid.hashfun.name == "sha2-256":
        forms.append(str(cid.set(base="base58btc", version=0)))
    return list(dict.fromkeys(forms))


def is_content_key(value: str) -> bool:
    """True for a hex multihash as produced by ``canonical_key``.

    Keys have even length; base16 CID strings carry an odd ``f`` prefix.
    """
    return len(value) % 2 == 0 and _HEX_KEY.fullmatch(value) is not None


class ContentSet:
    """A set of ContentKeys. Insertion is idempotent, membership exact."""

    def __init__(self, items: Iterable[CID | ContentKey] = ()) -> None:
        self._keys: set[ContentKey] = set()
        self.update(items)

    @staticmethod
    def _key(item: CID | ContentKey | str) -> ContentKey:
        """A CID, a ContentKey, or a CID string (parsed, may raise)."""
        if isinstance(item, CID):
            return canonical_key(item)
        if is_content_key(item):
            return ContentKey(item)
        return canonical_key(item)

    def add(self, item: CID | ContentKey) -> None:
        self._keys.add(self._key(item))

    def update(self, items: Iterable[CID | ContentKey]) -> None:
        for item in items:
            self.add(item)

    def __contains__(self, item: object) -> bool:
        if isinstance(item, (CID, str)):
            return self._key(item) in self._keys
        return False

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[ContentKey]:
        return iter(self._keys)

    def __repr__(self) -> str:
        return f"ContentSet({len(self._keys)} keys)"
