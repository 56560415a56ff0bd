"""Content hashes over the caller's original image bytes."""

from __future__ import annotations

import hashlib
from collections.abc import Callable, Sequence
from typing import Any

from classifier_sdk.proto.classifier_pb2 import HashType
from classifier_sdk.types import ImageHashResult

_ALGORITHMS: dict[HashType, Callable[..., Any]] = {
    HashType.MD5: hashlib.md5,
    HashType.SHA1: hashlib.sha1,
}


def supported_hash_types() -> list[HashType]:
    """Return the hash types this module can compute."""
    return sorted(_ALGORITHMS)


def compute_hashes(data: bytes, hash_types: Sequence[HashType]) -> tuple[ImageHashResult, ...]:
    """Hash *data* with each requested algorithm.

    Duplicate requests are computed once. Types with no local algorithm
    (``HashType.UNKNOWN``) produce a blank digest and are dropped, so the
    result only ever carries non-blank values.

    Args:
        data: The original image bytes.
        hash_types: Algorithms to apply, in the order results should appear.

    Returns:
        One result per distinct supported type.
    """
    results: list[ImageHashResult] = []
    seen: set[HashType] = set()
    for hash_type in hash_types:
        if hash_type in seen:
            continue
        seen.add(hash_type)
        algorithm = _ALGORITHMS.get(hash_type)
        value = algorithm(data).hexdigest() if algorithm is not None else ""
        if value.strip():
            results.append(ImageHashResult(type=HashType(hash_type), value=value))
    return tuple(results)
