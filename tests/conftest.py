"""Shared pytest fixtures for classifier-sdk tests.

Provides configuration objects, an in-memory stand-in for the
``grpc.aio`` channel and its duplex stream call, a static credential
provider, a recording payload preparer and Pillow-generated images.
"""

from __future__ import annotations

import asyncio
import io
from collections.abc import Callable, Sequence
from typing import Any
from unittest.mock import AsyncMock

import grpc
import grpc.aio
import pytest
from PIL import Image

from classifier_sdk.auth.static import StaticCredentialProvider
from classifier_sdk.config import ClassifierConfig
from classifier_sdk.exceptions import PreparationError
from classifier_sdk.imaging.base import PayloadPreparer
from classifier_sdk.imaging.hashing import compute_hashes
from classifier_sdk.proto.classifier_pb2 import HashType, ImageFormat, RequestEncoding
from classifier_sdk.types import ImageSource, PreparedPayload


def make_rpc_error(
    code: grpc.StatusCode = grpc.StatusCode.UNAVAILABLE,
    details: str = "connection reset",
) -> grpc.aio.AioRpcError:
    """Build an ``AioRpcError`` the way the transport would raise it."""
    return grpc.aio.AioRpcError(
        code,
        grpc.aio.Metadata(),
        grpc.aio.Metadata(),
        details=details,
    )


def make_image(width: int = 448, height: int = 448, fmt: str = "PNG") -> bytes:
    """Encode a solid-colour RGB image in memory."""
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color=(200, 40, 10)).save(buffer, format=fmt)
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# In-memory transport
# ---------------------------------------------------------------------------


class FakeStreamCall:
    """Stand-in for a ``grpc.aio.StreamStreamCall``.

    Writes are recorded in ``writes``. Inbound messages are queued with
    :meth:`push`; :meth:`finish` ends the stream with ``grpc.aio.EOF`` and
    :meth:`fail` makes the next ``read()`` raise. Clearing ``capacity``
    makes ``write()`` block, which is how flow-control backpressure looks
    to the caller.
    """

    def __init__(self, metadata: Any = None) -> None:
        self.metadata = metadata
        self.writes: list[Any] = []
        self.write_error: BaseException | None = None
        self.done_writing_calls = 0
        self.cancelled = False
        self.capacity = asyncio.Event()
        self.capacity.set()
        self._inbound: asyncio.Queue[Any] = asyncio.Queue()

    async def write(self, request: Any) -> None:
        await self.capacity.wait()
        if self.write_error is not None:
            raise self.write_error
        self.writes.append(request)

    async def read(self) -> Any:
        item = await self._inbound.get()
        if isinstance(item, BaseException):
            raise item
        return item

    async def done_writing(self) -> None:
        self.done_writing_calls += 1

    def cancel(self) -> bool:
        self.cancelled = True
        self._inbound.put_nowait(make_rpc_error(grpc.StatusCode.CANCELLED, "cancelled"))
        return True

    def push(self, message: Any) -> None:
        self._inbound.put_nowait(message)

    def finish(self) -> None:
        self._inbound.put_nowait(grpc.aio.EOF)

    def fail(self, exc: BaseException) -> None:
        self._inbound.put_nowait(exc)

    @property
    def data_writes(self) -> list[Any]:
        """Writes that carry inputs (heartbeats excluded)."""
        return [w for w in self.writes if w.inputs]

    @property
    def heartbeat_writes(self) -> list[Any]:
        return [w for w in self.writes if not w.inputs]


class FakeChannel:
    """Stand-in for a ``grpc.aio.Channel``.

    ``stream_stream`` returns a factory that creates a new
    :class:`FakeStreamCall` per invocation (kept in ``calls``).
    ``unary_unary`` returns an ``AsyncMock`` stored in ``unary`` under the
    method name (``"ClassifySingle"``, ``"ListDeployments"``).
    """

    def __init__(self) -> None:
        self.calls: list[FakeStreamCall] = []
        self.unary: dict[str, AsyncMock] = {}
        self.closed = False

    def stream_stream(self, path: str, **kwargs: Any) -> Callable[..., FakeStreamCall]:
        def factory(request_iterator: Any = None, metadata: Any = None, **_: Any) -> FakeStreamCall:
            call = FakeStreamCall(metadata)
            self.calls.append(call)
            return call

        return factory

    def unary_unary(self, path: str, **kwargs: Any) -> AsyncMock:
        handle = AsyncMock(name=path)
        self.unary[path.rsplit("/", 1)[-1]] = handle
        return handle

    async def close(self) -> None:
        self.closed = True

    @property
    def last_call(self) -> FakeStreamCall:
        return self.calls[-1]


class RecordingPreparer(PayloadPreparer):
    """Preparer that skips decoding and records every call.

    The payload is the source bytes prefixed with ``b"prepared:"``; hashes
    are real digests of the source.
    """

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.fail_on: bytes | None = None

    async def prepare(
        self,
        source: ImageSource,
        encoding: RequestEncoding,
        format: ImageFormat,
        resize: bool,
        hash_types: Sequence[HashType],
    ) -> PreparedPayload:
        raw = bytes(source)  # type: ignore[arg-type]
        self.calls.append(
            {
                "source": raw,
                "encoding": encoding,
                "format": format,
                "resize": resize,
                "hash_types": tuple(hash_types),
            }
        )
        if self.fail_on is not None and raw == self.fail_on:
            raise PreparationError("cannot decode")
        return PreparedPayload(
            data=b"prepared:" + raw,
            format=ImageFormat.RAW_UINT8 if resize else format,
            hashes=compute_hashes(raw, hash_types),
        )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def config() -> ClassifierConfig:
    """Config with a long heartbeat so tests only see the writes they make."""
    return ClassifierConfig(
        _env_file=None,
        deployment_id="deploy-1",
        affiliate="affiliate-default",
        heartbeat_interval_ms=60_000,
        grpc_insecure=True,
        log_level="none",
        diagnostic_mode=True,
    )


@pytest.fixture
def fast_heartbeat_config() -> ClassifierConfig:
    """Config with a 10 ms heartbeat."""
    return ClassifierConfig(
        _env_file=None,
        deployment_id="deploy-1",
        affiliate="affiliate-default",
        heartbeat_interval_ms=10,
        log_level="none",
    )


@pytest.fixture
def channel() -> FakeChannel:
    return FakeChannel()


@pytest.fixture
def credentials() -> StaticCredentialProvider:
    return StaticCredentialProvider("test-token")


@pytest.fixture
def preparer() -> RecordingPreparer:
    return RecordingPreparer()


@pytest.fixture
def square_png() -> bytes:
    """A 448x448 PNG."""
    return make_image(448, 448, "PNG")


@pytest.fixture
def small_jpeg() -> bytes:
    """A 100x50 JPEG."""
    return make_image(100, 50, "JPEG")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class EventRecorder:
    """Subscribes to every client event and records emissions in order."""

    def __init__(self, dispatcher: Any) -> None:
        from classifier_sdk.events import ClientEvent

        self.events: list[tuple[str, tuple[Any, ...]]] = []
        for event in ClientEvent:
            dispatcher.subscribe(event, self._recorder(event.value))

    def _recorder(self, name: str) -> Callable[..., None]:
        def record(*payload: Any) -> None:
            self.events.append((name, payload))

        return record

    def names(self) -> list[str]:
        return [name for name, _ in self.events]

    def payloads(self, name: str) -> list[Any]:
        return [payload[0] for event, payload in self.events if event == name and payload]

    def count(self, name: str) -> int:
        return sum(1 for event, _ in self.events if event == name)


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Yield to the event loop until *predicate* holds or *timeout* expires."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() >= deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.005)
