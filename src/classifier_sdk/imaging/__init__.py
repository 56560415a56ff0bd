"""Image payload preparation for classifier-sdk.

Re-exports the ABC, the Pillow implementation and the hash helpers::

    from classifier_sdk.imaging import ImagePayloadPreparer, compute_hashes
"""

from classifier_sdk.imaging.base import PayloadPreparer
from classifier_sdk.imaging.hashing import compute_hashes, supported_hash_types
from classifier_sdk.imaging.preparer import (
    EXPECTED_HEIGHT,
    EXPECTED_WIDTH,
    ImagePayloadPreparer,
    read_source,
)

__all__ = [
    "EXPECTED_HEIGHT",
    "EXPECTED_WIDTH",
    "ImagePayloadPreparer",
    "PayloadPreparer",
    "compute_hashes",
    "read_source",
    "supported_hash_types",
]
