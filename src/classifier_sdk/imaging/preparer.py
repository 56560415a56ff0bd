"""Pillow-based payload preparer.

The service classifies fixed-size 448x448 images. Callers either hand in
an image that already has those dimensions (sent as-is with its declared
format) or ask for it to be resized, in which case the payload is a raw
448x448x3 uint8 pixel buffer in RGB channel order
(``ImageFormat.RAW_UINT8``). Resizing covers the target box and crops the
overflow around the centre, so the aspect ratio is never distorted.

Hashes are always computed over the original bytes, before any resize or
compression. Reading, hashing, decoding and resizing run in a worker
thread so the event loop is never blocked.
"""

from __future__ import annotations

import asyncio
import io
import logging
import os
from collections.abc import Sequence

import brotli
import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from classifier_sdk.exceptions import ImageDimensionError, PreparationError
from classifier_sdk.imaging.base import PayloadPreparer
from classifier_sdk.imaging.hashing import compute_hashes
from classifier_sdk.proto.classifier_pb2 import HashType, ImageFormat, RequestEncoding
from classifier_sdk.types import ImageSource, PreparedPayload

logger = logging.getLogger("classifier_sdk")

EXPECTED_WIDTH = 448
EXPECTED_HEIGHT = 448
EXPECTED_CHANNELS = 3


async def read_source(source: ImageSource) -> bytes:
    """Read an image source fully into memory.

    Args:
        source: Bytes-like object, binary file object, or filesystem path.

    Returns:
        The raw bytes.

    Raises:
        PreparationError: If the source cannot be read.
    """
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)
    try:
        if isinstance(source, (str, os.PathLike)):
            return await asyncio.to_thread(_read_path, source)
        data = await asyncio.to_thread(source.read)
    except OSError as exc:
        raise PreparationError(f"Failed to read image source: {exc}") from exc
    if not isinstance(data, (bytes, bytearray)):
        raise PreparationError("Image file objects must be opened in binary mode")
    return bytes(data)


def _read_path(path: str | os.PathLike[str]) -> bytes:
    with open(path, "rb") as fh:
        return fh.read()


class ImagePayloadPreparer(PayloadPreparer):
    """Decode, validate, resize and compress images with Pillow and numpy.

    Args:
        width: Required image width. Default 448.
        height: Required image height. Default 448.
        brotli_quality: Compression quality used for ``RequestEncoding.BROTLI``.
    """

    def __init__(
        self,
        width: int = EXPECTED_WIDTH,
        height: int = EXPECTED_HEIGHT,
        brotli_quality: int = 11,
    ) -> None:
        self._width = width
        self._height = height
        self._brotli_quality = brotli_quality

    @property
    def size(self) -> tuple[int, int]:
        return self._width, self._height

    async def prepare(
        self,
        source: ImageSource,
        encoding: RequestEncoding,
        format: ImageFormat,
        resize: bool,
        hash_types: Sequence[HashType],
    ) -> PreparedPayload:
        raw = await read_source(source)
        if not raw:
            raise PreparationError("Image source is empty")

        hashes = await asyncio.to_thread(compute_hashes, raw, hash_types)

        if resize:
            data = await asyncio.to_thread(self._resize_to_raw, raw)
            resolved = ImageFormat.RAW_UINT8
        else:
            self._check_dimensions(raw, format)
            data = raw
            resolved = format

        if encoding == RequestEncoding.BROTLI:
            data = await asyncio.to_thread(brotli.compress, data, quality=self._brotli_quality)

        logger.debug(
            "Prepared image: in=%d bytes out=%d bytes format=%s encoding=%s",
            len(raw),
            len(data),
            ImageFormat(resolved).name,
            RequestEncoding(encoding).name,
        )
        return PreparedPayload(data=data, format=resolved, hashes=hashes)

    def _check_dimensions(self, raw: bytes, format: ImageFormat) -> None:
        """Raise ImageDimensionError unless *raw* is exactly width x height."""
        if format == ImageFormat.RAW_UINT8:
            expected = self._width * self._height * EXPECTED_CHANNELS
            if len(raw) != expected:
                raise PreparationError(
                    f"Raw image must be {expected} bytes "
                    f"({self._width}x{self._height}x{EXPECTED_CHANNELS}), got {len(raw)}"
                )
            return

        width, height = self._decode(raw).size
        if (width, height) != (self._width, self._height):
            raise ImageDimensionError(
                f"Image must be {self._width}x{self._height} pixels, got {width}x{height}",
                width=width,
                height=height,
            )

    def _resize_to_raw(self, raw: bytes) -> bytes:
        """Decode *raw*, cover-resize to width x height, return RGB uint8 bytes."""
        try:
            with self._decode(raw) as image:
                resized = ImageOps.fit(
                    image.convert("RGB"),
                    (self._width, self._height),
                    Image.Resampling.LANCZOS,
                )
        except OSError as exc:
            raise PreparationError(f"Failed to resize image: {exc}") from exc
        pixels = np.asarray(resized, dtype=np.uint8)
        if pixels.shape != (self._height, self._width, EXPECTED_CHANNELS):
            raise PreparationError(f"Unexpected pixel buffer shape {pixels.shape}")
        return pixels.tobytes()

    @staticmethod
    def _decode(raw: bytes) -> Image.Image:
        try:
            return Image.open(io.BytesIO(raw))
        except (UnidentifiedImageError, OSError) as exc:
            raise PreparationError(f"Failed to decode image: {exc}") from exc
