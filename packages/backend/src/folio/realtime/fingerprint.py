"""Collection fingerprints for change detection.

Learn: A fingerprint only looks at (identity, version) per record — never
the full payload — so hashing stays cheap however large the records are.
The digest is order-preserving: reordering records changes it.

None means "never fetched" and is deliberately different from
EMPTY_FINGERPRINT, so the first successful fetch of an empty collection
still emits once.
"""

import hashlib
from typing import Any, Callable, Hashable, Iterable, Mapping

RecordKey = Callable[[Mapping[str, Any]], tuple[Hashable, ...]]

_SEPARATOR = b"\x1e"


def _digest(parts: Iterable[bytes]) -> str:
    h = hashlib.blake2b(digest_size=16)
    for part in parts:
        h.update(part)
        h.update(_SEPARATOR)
    return h.hexdigest()


EMPTY_FINGERPRINT = _digest(())


def as_records(snapshot: Any) -> list[Mapping[str, Any]]:
    """A snapshot is either a list of records or one record."""
    if snapshot is None:
        return []
    if isinstance(snapshot, list):
        return snapshot
    return [snapshot]


def fingerprint(snapshot: Any, key: RecordKey) -> str:
    return _digest(repr(key(record)).encode() for record in as_records(snapshot))
