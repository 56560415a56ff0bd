"""Input and payload types shared by the coordinator and payload preparers."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import BinaryIO, Union

from classifier_sdk.proto.classifier_pb2 import HashType, ImageFormat, RequestEncoding

ImageSource = Union[bytes, bytearray, memoryview, BinaryIO, str, os.PathLike]
"""Raw image bytes, a readable binary file object, or a filesystem path."""

DEFAULT_HASH_TYPES: tuple[HashType, ...] = (HashType.MD5, HashType.SHA1)


@dataclass(frozen=True, slots=True)
class Resize:
    """Decode the image and resize it to the service's raw input size.

    The prepared payload is always ``ImageFormat.RAW_UINT8``.
    """


@dataclass(frozen=True, slots=True)
class ExplicitFormat:
    """Send the image bytes as-is, declared as *format*.

    The image must already match the service's required dimensions.

    Attributes:
        format: The container format of the supplied bytes.
    """

    format: ImageFormat


ImageTarget = Union[Resize, ExplicitFormat]


@dataclass(slots=True)
class ClassifyImageInput:
    """One image to classify.

    Attributes:
        image: Raw bytes, a binary file object, or a path.
        target: ``Resize()`` or ``ExplicitFormat(format)``.
        affiliate: Falls back to the configured default affiliate.
        correlation_id: Falls back to a fresh UUID4. This is the only key
            that joins a submitted input to its eventual result.
        encoding: Falls back to ``RequestEncoding.UNCOMPRESSED``.
        hash_types: Falls back to ``(MD5, SHA1)``.
    """

    image: ImageSource
    target: ImageTarget = field(default_factory=Resize)
    affiliate: str | None = None
    correlation_id: str | None = None
    encoding: RequestEncoding | None = None
    hash_types: tuple[HashType, ...] | None = None


@dataclass(frozen=True, slots=True)
class ImageHashResult:
    """A computed content hash.

    Attributes:
        type: Hash algorithm.
        value: Lower-case hex digest.
    """

    type: HashType
    value: str


@dataclass(frozen=True, slots=True)
class PreparedPayload:
    """Output of a :class:`~classifier_sdk.imaging.base.PayloadPreparer`.

    Attributes:
        data: Encoded payload bytes (possibly brotli-compressed).
        format: Resolved container format of ``data`` before compression.
        hashes: Content hashes of the original image bytes.
    """

    data: bytes
    format: ImageFormat
    hashes: tuple[ImageHashResult, ...] = ()
