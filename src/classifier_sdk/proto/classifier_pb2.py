"""Hand-written protobuf message stubs for the classifier service.

These are lightweight message classes that mirror the ``athena.proto``
definition using **standard protobuf wire encoding**. They produce bytes
identical to ``protoc``-generated code, making them compatible with any
standard gRPC server.

Wire format reference (proto3):
- Varint fields: tag = (field_number << 3 | 0), then LEB128-encoded value
- Length-delimited fields: tag = (field_number << 3 | 2), then varint length, then raw bytes
- 32-bit fixed fields: tag = (field_number << 3 | 5), then 4 little-endian bytes
- Default-valued fields (0, empty bytes, empty string) are omitted from the wire

If the proto definition changes, update these stubs or regenerate with
``grpc_tools.protoc``.
"""

from __future__ import annotations

import struct
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import IntEnum

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class RequestEncoding(IntEnum):
    """Compression applied to ``ClassificationInput.data``."""

    UNSPECIFIED = 0
    UNCOMPRESSED = 1
    BROTLI = 2


class ImageFormat(IntEnum):
    """Container format of ``ClassificationInput.data``."""

    UNSPECIFIED = 0
    GIF = 1
    JPEG = 2
    BMP = 3
    DIB = 4
    PNG = 5
    WEBP = 6
    PBM = 7
    PGM = 8
    PPM = 9
    PXM = 10
    PNM = 11
    PFM = 12
    SR = 13
    RAS = 14
    TIFF = 15
    HDR = 16
    EXR = 17
    PIC = 18
    RAW_UINT8 = 19


class HashType(IntEnum):
    """Content hash algorithm carried in ``ImageHash.type``."""

    UNKNOWN = 0
    MD5 = 1
    SHA1 = 2


class ErrorCode(IntEnum):
    """Machine-readable reason attached to a ``ClassificationError``."""

    UNSPECIFIED = 0
    IMAGE_TOO_LARGE = 1
    EXPECTED_RAW = 2
    MODEL_ERROR = 3
    AFFILIATE_NOT_PERMITTED = 4
    TIMEOUT = 5
    MISMATCHED_DIMENSIONS = 6


# ---------------------------------------------------------------------------
# Protobuf wire-format helpers
# ---------------------------------------------------------------------------

_WIRE_VARINT = 0
_WIRE_FIXED64 = 1
_WIRE_LEN = 2
_WIRE_FIXED32 = 5


def _encode_varint(value: int) -> bytes:
    """Encode an unsigned integer as a protobuf varint (LEB128).

    Negative values are encoded as their 64-bit two's complement, as
    ``protoc`` does for ``int32``/``int64``.

    Args:
        value: Integer to encode.

    Returns:
        LEB128-encoded bytes.
    """
    if value < 0:
        value &= 0xFFFFFFFFFFFFFFFF
    parts: list[int] = []
    while value > 0x7F:
        parts.append((value & 0x7F) | 0x80)
        value >>= 7
    parts.append(value & 0x7F)
    return bytes(parts)


def _decode_varint(data: bytes, offset: int) -> tuple[int, int]:
    """Decode a varint from bytes at the given offset.

    Args:
        data: Raw bytes.
        offset: Starting position.

    Returns:
        Tuple of (decoded_value, new_offset).
    """
    result = 0
    shift = 0
    while True:
        b = data[offset]
        result |= (b & 0x7F) << shift
        offset += 1
        if not (b & 0x80):
            break
        shift += 7
    return result, offset


def _to_signed(value: int) -> int:
    """Reinterpret a decoded varint as a signed 64-bit integer."""
    if value & (1 << 63):
        return value - (1 << 64)
    return value


def _encode_tag(field_number: int, wire_type: int) -> bytes:
    """Encode a protobuf field tag.

    Args:
        field_number: The proto field number (1-based).
        wire_type: 0 = varint, 2 = length-delimited, 5 = fixed32.

    Returns:
        Varint-encoded tag bytes.
    """
    return _encode_varint((field_number << 3) | wire_type)


def _varint_field(field_number: int, value: int) -> bytes:
    return _encode_tag(field_number, _WIRE_VARINT) + _encode_varint(value)


def _bytes_field(field_number: int, value: bytes) -> bytes:
    return _encode_tag(field_number, _WIRE_LEN) + _encode_varint(len(value)) + value


def _string_field(field_number: int, value: str) -> bytes:
    return _bytes_field(field_number, value.encode("utf-8"))


def _float_field(field_number: int, value: float) -> bytes:
    return _encode_tag(field_number, _WIRE_FIXED32) + struct.pack("<f", value)


def _iter_fields(data: bytes) -> Iterator[tuple[int, int, int | bytes]]:
    """Walk a serialized message, yielding ``(field_number, wire_type, value)``.

    Varints are yielded as ``int``; length-delimited and fixed-width
    fields are yielded as raw ``bytes``. Parsing stops at the first
    unknown wire type.
    """
    offset = 0
    while offset < len(data):
        tag, offset = _decode_varint(data, offset)
        field_number = tag >> 3
        wire_type = tag & 0x07
        if wire_type == _WIRE_VARINT:
            value, offset = _decode_varint(data, offset)
            yield field_number, wire_type, value
        elif wire_type == _WIRE_LEN:
            length, offset = _decode_varint(data, offset)
            yield field_number, wire_type, data[offset : offset + length]
            offset += length
        elif wire_type == _WIRE_FIXED32:
            yield field_number, wire_type, data[offset : offset + 4]
            offset += 4
        elif wire_type == _WIRE_FIXED64:
            yield field_number, wire_type, data[offset : offset + 8]
            offset += 8
        else:
            break  # unknown wire type, stop parsing


def _enum_or_int(enum_cls: type[IntEnum], value: int) -> int:
    """Map a wire value to *enum_cls*, keeping unknown values as plain ints."""
    try:
        return enum_cls(value)
    except ValueError:
        return value


# ---------------------------------------------------------------------------
# Message classes
# ---------------------------------------------------------------------------


@dataclass
class Empty:
    """``google.protobuf.Empty``."""

    def SerializeToString(self) -> bytes:  # noqa: N802
        return b""

    @classmethod
    def FromString(cls, data: bytes) -> Empty:  # noqa: N802
        return cls()


@dataclass
class ImageHash:
    """A content hash of the caller's original image bytes.

    Attributes:
        value: Hex digest (proto field 1, string).
        type: Hash algorithm (proto field 2, HashType).
    """

    value: str = ""
    type: int = HashType.UNKNOWN

    def SerializeToString(self) -> bytes:  # noqa: N802
        parts: list[bytes] = []
        if self.value:
            parts.append(_string_field(1, self.value))
        if self.type:
            parts.append(_varint_field(2, int(self.type)))
        return b"".join(parts)

    @classmethod
    def FromString(cls, data: bytes) -> ImageHash:  # noqa: N802
        msg = cls()
        for number, wire_type, value in _iter_fields(data):
            if number == 1 and wire_type == _WIRE_LEN:
                msg.value = bytes(value).decode("utf-8")  # type: ignore[arg-type]
            elif number == 2 and wire_type == _WIRE_VARINT:
                msg.type = _enum_or_int(HashType, value)  # type: ignore[arg-type]
        return msg


@dataclass
class ClassificationInput:
    """One image submitted for classification.

    Attributes:
        affiliate: Affiliate the image belongs to (proto field 1, string).
        correlation_id: Join key for the eventual result (proto field 2, string).
        encoding: Compression of ``data`` (proto field 3, RequestEncoding).
        data: Encoded image payload (proto field 4, bytes).
        format: Container format of ``data`` (proto field 5, ImageFormat).
        hashes: Content hashes of the original image (proto field 6, repeated ImageHash).
    """

    affiliate: str = ""
    correlation_id: str = ""
    encoding: int = RequestEncoding.UNSPECIFIED
    data: bytes = field(default_factory=bytes)
    format: int = ImageFormat.UNSPECIFIED
    hashes: list[ImageHash] = field(default_factory=list)

    def SerializeToString(self) -> bytes:  # noqa: N802
        parts: list[bytes] = []
        if self.affiliate:
            parts.append(_string_field(1, self.affiliate))
        if self.correlation_id:
            parts.append(_string_field(2, self.correlation_id))
        if self.encoding:
            parts.append(_varint_field(3, int(self.encoding)))
        if self.data:
            parts.append(_bytes_field(4, self.data))
        if self.format:
            parts.append(_varint_field(5, int(self.format)))
        for image_hash in self.hashes:
            parts.append(_bytes_field(6, image_hash.SerializeToString()))
        return b"".join(parts)

    @classmethod
    def FromString(cls, data: bytes) -> ClassificationInput:  # noqa: N802
        msg = cls()
        for number, wire_type, value in _iter_fields(data):
            if wire_type == _WIRE_LEN:
                raw = bytes(value)  # type: ignore[arg-type]
                if number == 1:
                    msg.affiliate = raw.decode("utf-8")
                elif number == 2:
                    msg.correlation_id = raw.decode("utf-8")
                elif number == 4:
                    msg.data = raw
                elif number == 6:
                    msg.hashes.append(ImageHash.FromString(raw))
            elif wire_type == _WIRE_VARINT:
                if number == 3:
                    msg.encoding = _enum_or_int(RequestEncoding, value)  # type: ignore[arg-type]
                elif number == 5:
                    msg.format = _enum_or_int(ImageFormat, value)  # type: ignore[arg-type]
        return msg


@dataclass
class ClassifyRequest:
    """Request envelope written on the classify stream.

    An envelope with no inputs is a keep-warm heartbeat.

    Attributes:
        deployment_id: Target deployment (proto field 1, string).
        inputs: Images in this batch (proto field 2, repeated ClassificationInput).
    """

    deployment_id: str = ""
    inputs: list[ClassificationInput] = field(default_factory=list)

    def SerializeToString(self) -> bytes:  # noqa: N802
        parts: list[bytes] = []
        if self.deployment_id:
            parts.append(_string_field(1, self.deployment_id))
        for item in self.inputs:
            parts.append(_bytes_field(2, item.SerializeToString()))
        return b"".join(parts)

    @classmethod
    def FromString(cls, data: bytes) -> ClassifyRequest:  # noqa: N802
        msg = cls()
        for number, wire_type, value in _iter_fields(data):
            if wire_type != _WIRE_LEN:
                continue
            raw = bytes(value)  # type: ignore[arg-type]
            if number == 1:
                msg.deployment_id = raw.decode("utf-8")
            elif number == 2:
                msg.inputs.append(ClassificationInput.FromString(raw))
        return msg


@dataclass
class ClassificationError:
    """Request-level or per-input failure reported by the service.

    Attributes:
        code: Failure reason (proto field 1, ErrorCode).
        message: Human-readable message (proto field 2, string).
        details: Extra context (proto field 3, string).
    """

    code: int = ErrorCode.UNSPECIFIED
    message: str = ""
    details: str = ""

    def SerializeToString(self) -> bytes:  # noqa: N802
        parts: list[bytes] = []
        if self.code:
            parts.append(_varint_field(1, int(self.code)))
        if self.message:
            parts.append(_string_field(2, self.message))
        if self.details:
            parts.append(_string_field(3, self.details))
        return b"".join(parts)

    @classmethod
    def FromString(cls, data: bytes) -> ClassificationError:  # noqa: N802
        msg = cls()
        for number, wire_type, value in _iter_fields(data):
            if number == 1 and wire_type == _WIRE_VARINT:
                msg.code = _enum_or_int(ErrorCode, value)  # type: ignore[arg-type]
            elif number == 2 and wire_type == _WIRE_LEN:
                msg.message = bytes(value).decode("utf-8")  # type: ignore[arg-type]
            elif number == 3 and wire_type == _WIRE_LEN:
                msg.details = bytes(value).decode("utf-8")  # type: ignore[arg-type]
        return msg


@dataclass
class Classification:
    """A single (label, weight) pair.

    Attributes:
        label: Class label (proto field 1, string).
        weight: Confidence weight (proto field 2, float).
    """

    label: str = ""
    weight: float = 0.0

    def SerializeToString(self) -> bytes:  # noqa: N802
        parts: list[bytes] = []
        if self.label:
            parts.append(_string_field(1, self.label))
        if self.weight:
            parts.append(_float_field(2, self.weight))
        return b"".join(parts)

    @classmethod
    def FromString(cls, data: bytes) -> Classification:  # noqa: N802
        msg = cls()
        for number, wire_type, value in _iter_fields(data):
            if number == 1 and wire_type == _WIRE_LEN:
                msg.label = bytes(value).decode("utf-8")  # type: ignore[arg-type]
            elif number == 2 and wire_type == _WIRE_FIXED32:
                msg.weight = struct.unpack("<f", value)[0]  # type: ignore[arg-type]
        return msg


@dataclass
class ClassificationOutput:
    """Per-input result, joined to its input by ``correlation_id``.

    Attributes:
        correlation_id: Matches ``ClassificationInput.correlation_id`` (proto field 1).
        classifications: Label/weight pairs (proto field 2, repeated Classification).
        error: Per-input failure, if any (proto field 3, ClassificationError).
    """

    correlation_id: str = ""
    classifications: list[Classification] = field(default_factory=list)
    error: ClassificationError | None = None

    def SerializeToString(self) -> bytes:  # noqa: N802
        parts: list[bytes] = []
        if self.correlation_id:
            parts.append(_string_field(1, self.correlation_id))
        for classification in self.classifications:
            parts.append(_bytes_field(2, classification.SerializeToString()))
        if self.error is not None:
            parts.append(_bytes_field(3, self.error.SerializeToString()))
        return b"".join(parts)

    @classmethod
    def FromString(cls, data: bytes) -> ClassificationOutput:  # noqa: N802
        msg = cls()
        for number, wire_type, value in _iter_fields(data):
            if wire_type != _WIRE_LEN:
                continue
            raw = bytes(value)  # type: ignore[arg-type]
            if number == 1:
                msg.correlation_id = raw.decode("utf-8")
            elif number == 2:
                msg.classifications.append(Classification.FromString(raw))
            elif number == 3:
                msg.error = ClassificationError.FromString(raw)
        return msg


@dataclass
class ClassifyResponse:
    """Response envelope read from the classify stream.

    Outputs are not guaranteed to arrive in submission order and may
    interleave with outputs for other requests.

    Attributes:
        global_error: Request-level failure, if any (proto field 1).
        outputs: Per-input results (proto field 2, repeated ClassificationOutput).
    """

    global_error: ClassificationError | None = None
    outputs: list[ClassificationOutput] = field(default_factory=list)

    def SerializeToString(self) -> bytes:  # noqa: N802
        parts: list[bytes] = []
        if self.global_error is not None:
            parts.append(_bytes_field(1, self.global_error.SerializeToString()))
        for output in self.outputs:
            parts.append(_bytes_field(2, output.SerializeToString()))
        return b"".join(parts)

    @classmethod
    def FromString(cls, data: bytes) -> ClassifyResponse:  # noqa: N802
        msg = cls()
        for number, wire_type, value in _iter_fields(data):
            if wire_type != _WIRE_LEN:
                continue
            raw = bytes(value)  # type: ignore[arg-type]
            if number == 1:
                msg.global_error = ClassificationError.FromString(raw)
            elif number == 2:
                msg.outputs.append(ClassificationOutput.FromString(raw))
        return msg


@dataclass
class Deployment:
    """Snapshot of an active server-side deployment.

    Attributes:
        deployment_id: Deployment identifier (proto field 1, string).
        backlog: Number of queued inputs (proto field 2, int32).
    """

    deployment_id: str = ""
    backlog: int = 0

    def SerializeToString(self) -> bytes:  # noqa: N802
        parts: list[bytes] = []
        if self.deployment_id:
            parts.append(_string_field(1, self.deployment_id))
        if self.backlog:
            parts.append(_varint_field(2, self.backlog))
        return b"".join(parts)

    @classmethod
    def FromString(cls, data: bytes) -> Deployment:  # noqa: N802
        msg = cls()
        for number, wire_type, value in _iter_fields(data):
            if number == 1 and wire_type == _WIRE_LEN:
                msg.deployment_id = bytes(value).decode("utf-8")  # type: ignore[arg-type]
            elif number == 2 and wire_type == _WIRE_VARINT:
                msg.backlog = _to_signed(value)  # type: ignore[arg-type]
        return msg


@dataclass
class ListDeploymentsResponse:
    """Response of the ``ListDeployments`` unary call.

    Attributes:
        deployments: Active deployments (proto field 1, repeated Deployment).
    """

    deployments: list[Deployment] = field(default_factory=list)

    def SerializeToString(self) -> bytes:  # noqa: N802
        return b"".join(_bytes_field(1, d.SerializeToString()) for d in self.deployments)

    @classmethod
    def FromString(cls, data: bytes) -> ListDeploymentsResponse:  # noqa: N802
        msg = cls()
        for number, wire_type, value in _iter_fields(data):
            if number == 1 and wire_type == _WIRE_LEN:
                msg.deployments.append(Deployment.FromString(bytes(value)))  # type: ignore[arg-type]
        return msg
