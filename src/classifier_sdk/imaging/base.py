"""Abstract base class for payload preparers.

A payload preparer turns a caller-supplied image source into the bytes
sent on the wire, together with content hashes of the original image.
The request coordinator awaits it once per input and never retries.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from classifier_sdk.proto.classifier_pb2 import HashType, ImageFormat, RequestEncoding
from classifier_sdk.types import ImageSource, PreparedPayload


class PayloadPreparer(ABC):
    """Abstract base for image payload preparation."""

    @abstractmethod
    async def prepare(
        self,
        source: ImageSource,
        encoding: RequestEncoding,
        format: ImageFormat,
        resize: bool,
        hash_types: Sequence[HashType],
    ) -> PreparedPayload:
        """Read, validate, optionally resize and compress one image.

        Args:
            source: Raw bytes, a binary file object, or a path.
            encoding: ``BROTLI`` compresses the final payload.
            format: Declared format of the source when *resize* is False.
            resize: Resize to the service's raw input size.
            hash_types: Hashes to compute over the original image bytes.

        Returns:
            The encoded payload, its resolved format and non-blank hashes.

        Raises:
            ImageDimensionError: If *resize* is False and the image does not
                have the required dimensions.
            PreparationError: If the image cannot be read or decoded.
        """
