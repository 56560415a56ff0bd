"""Lifecycle of the single long-lived ``Classify`` duplex stream.

A :class:`TransportSession` opens at most one stream at a time. While the
stream is open it:

- writes an empty ``ClassifyRequest`` every heartbeat interval so the
  stream stays warm;
- reads inbound ``ClassifyResponse`` messages on a background task and
  emits each one as a ``DATA`` event;
- turns stream failures into ``ERROR`` events and stream termination
  into clearing the session and emitting ``CLOSE``.

Call metadata (client version, client language, authorization) is built
once and reused for every stream opened by this object until
:meth:`TransportSession.refresh_metadata` is called.

A caller-initiated :meth:`TransportSession.close` and the transport's own
termination both emit ``CLOSE``; a session closed by the caller therefore
usually reports ``CLOSE`` twice. The reader keeps delivering results
that arrive after the half-close until the server ends the stream or the
next :meth:`TransportSession.open` cancels it.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

import grpc
import grpc.aio

from classifier_sdk.events import ClientEvent, EventDispatcher
from classifier_sdk.exceptions import (
    SessionAlreadyOpenError,
    SessionClosedError,
    SessionNotOpenError,
    TransportError,
)
from classifier_sdk.proto.classifier_pb2 import ClassifyRequest
from classifier_sdk.transport.channel import call_metadata

if TYPE_CHECKING:
    from classifier_sdk.auth.base import CredentialProvider
    from classifier_sdk.config import ClassifierConfig
    from classifier_sdk.proto.classifier_pb2_grpc import ClassifierServiceStub

logger = logging.getLogger("classifier_sdk")


def translate_rpc_error(exc: BaseException) -> BaseException:
    """Wrap gRPC failures in :class:`TransportError`; pass anything else through."""
    if isinstance(exc, grpc.aio.AioRpcError):
        code = exc.code()
        details = exc.details()
        name = getattr(code, "name", str(code))
        return TransportError(f"gRPC call failed: {name}: {details}", code=code, details=details)
    if isinstance(exc, asyncio.InvalidStateError):
        return TransportError(f"gRPC stream is no longer writable: {exc}")
    return exc


class _Session:
    """State for one ``open()``/``close()`` cycle."""

    __slots__ = ("call", "heartbeat", "reader", "closed", "write_lock")

    def __init__(self, call: Any) -> None:
        self.call: Any | None = call
        self.heartbeat: asyncio.Task[None] | None = None
        self.reader: asyncio.Task[None] | None = None
        self.closed = asyncio.Event()
        self.write_lock = asyncio.Lock()


class TransportSession:
    """Owns the duplex ``Classify`` stream, its heartbeat and its reader.

    Args:
        config: Client configuration (deployment id, heartbeat interval).
        stub: Classifier service stub bound to a ``grpc.aio`` channel.
        credentials: Source of the authorization header.
        events: Dispatcher that receives lifecycle events.
        client_version: Value of the ``x-client-version`` metadata header.
    """

    def __init__(
        self,
        config: ClassifierConfig,
        stub: ClassifierServiceStub,
        credentials: CredentialProvider,
        events: EventDispatcher,
        client_version: str,
    ) -> None:
        self._config = config
        self._stub = stub
        self._credentials = credentials
        self._events = events
        self._client_version = client_version
        self._metadata: tuple[tuple[str, str], ...] | None = None
        self._session: _Session | None = None
        self._readers: dict[asyncio.Task[None], Any] = {}

    @property
    def is_open(self) -> bool:
        return self._session is not None and self._session.call is not None

    @property
    def call(self) -> Any | None:
        """The active stream handle, or ``None`` when closed."""
        return self._session.call if self._session is not None else None

    @property
    def heartbeat_task(self) -> asyncio.Task[None] | None:
        return self._session.heartbeat if self._session is not None else None

    def refresh_metadata(self) -> None:
        """Drop cached call metadata; the next ``open()`` rebuilds it."""
        self._metadata = None

    async def session_metadata(self) -> tuple[tuple[str, str], ...]:
        """Return call metadata, building it on first use."""
        if self._metadata is None:
            self._metadata = await call_metadata(self._credentials, self._client_version)
        return self._metadata

    # --- Lifecycle ---

    async def open(self) -> None:
        """Open the stream, start heartbeat and reader, then emit ``OPEN``.

        Returns as soon as listeners are attached; it does not wait for the
        server to acknowledge the stream.

        Raises:
            SessionAlreadyOpenError: If a session is already active.
            AuthenticationError: If the credential provider fails.
        """
        if self._session is not None:
            raise SessionAlreadyOpenError("Session is already open. Call close() first.")
        metadata = await self.session_metadata()
        if self._session is not None:
            raise SessionAlreadyOpenError("Session is already open. Call close() first.")

        self._retire_readers()
        session = _Session(self._stub.Classify(metadata=metadata))
        self._session = session
        session.heartbeat = asyncio.create_task(
            self._heartbeat(session), name="classifier-sdk-heartbeat"
        )
        session.reader = asyncio.create_task(
            self._read(session, session.call), name="classifier-sdk-reader"
        )
        self._readers[session.reader] = session.call
        session.reader.add_done_callback(lambda task: self._readers.pop(task, None))

        logger.info(
            "Opened classify stream to %s (deployment=%s, heartbeat=%.0fms)",
            self._config.grpc_address,
            self._config.deployment_id,
            self._config.heartbeat_interval_ms,
        )
        self._events.emit(ClientEvent.OPEN)

    async def close(self) -> None:
        """Stop the heartbeat, half-close the stream and emit ``CLOSE``.

        A no-op when no session is open. Writes still waiting on the stream
        are rejected with :class:`SessionClosedError`.
        """
        session = self._session
        if session is None:
            return
        call = session.call
        self._clear(session)
        try:
            if call is not None:
                await call.done_writing()
        except (grpc.aio.AioRpcError, asyncio.InvalidStateError) as exc:
            logger.debug("Ignoring error while half-closing classify stream: %s", exc)
        finally:
            logger.info("Closed classify stream")
            self._events.emit(ClientEvent.CLOSE)

    async def shutdown(self) -> None:
        """Close the session and cancel readers still draining old streams."""
        await self.close()
        readers = self._retire_readers()
        if readers:
            await asyncio.gather(*readers, return_exceptions=True)

    def _retire_readers(self) -> list[asyncio.Task[None]]:
        """Cancel readers still draining earlier streams, and their calls."""
        readers = list(self._readers)
        for reader in readers:
            self._readers[reader].cancel()
            reader.cancel()
        return readers

    def _clear(self, session: _Session) -> None:
        """Cancel the heartbeat and null the handle in one step."""
        if session.heartbeat is not None and not session.heartbeat.done():
            session.heartbeat.cancel()
        session.heartbeat = None
        session.call = None
        session.closed.set()
        if self._session is session:
            self._session = None

    # --- Writes ---

    def acquire(self) -> _Session:
        """Return the active session, or raise if none is open.

        Raises:
            SessionNotOpenError: If ``open()`` has not been called.
        """
        session = self._session
        if session is None or session.call is None:
            raise SessionNotOpenError("gRPC stream is not open. Call open() first.")
        return session

    async def write(self, request: ClassifyRequest, session: _Session | None = None) -> None:
        """Write one envelope, waiting for flow-control capacity if needed.

        Args:
            request: The envelope to write.
            session: Session captured by the caller; defaults to the active one.

        Raises:
            SessionNotOpenError: If no session is open.
            SessionClosedError: If the session closes before the write completes.
            TransportError: If the stream rejects the write.
        """
        if session is None:
            session = self.acquire()
        if session.closed.is_set():
            raise SessionClosedError("Session closed before the request could be written")

        write = asyncio.ensure_future(self._locked_write(session, request))
        closed = asyncio.ensure_future(session.closed.wait())
        try:
            done, _ = await asyncio.wait({write, closed}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            write.cancel()
            raise
        finally:
            closed.cancel()

        if write in done:
            write.result()
            return
        write.cancel()
        raise SessionClosedError("Session closed while the request was waiting to be written")

    async def _locked_write(self, session: _Session, request: ClassifyRequest) -> None:
        async with session.write_lock:
            call = session.call
            if call is None:
                raise SessionClosedError("Session closed before the request could be written")
            try:
                await call.write(request)
            except (grpc.aio.AioRpcError, asyncio.InvalidStateError) as exc:
                raise translate_rpc_error(exc) from exc

    # --- Background tasks ---

    async def _heartbeat(self, session: _Session) -> None:
        interval = self._config.heartbeat_interval_s
        while True:
            await asyncio.sleep(interval)
            if session.call is None:
                return
            try:
                await self._locked_write(
                    session,
                    ClassifyRequest(deployment_id=self._config.deployment_id, inputs=[]),
                )
                logger.debug("Heartbeat written")
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.warning("Heartbeat write failed: %s", exc)
                self._events.emit(ClientEvent.ERROR, exc)

    async def _read(self, session: _Session, call: Any) -> None:
        try:
            while True:
                message = await call.read()
                if message is grpc.aio.EOF:
                    logger.debug("Classify stream ended by server")
                    break
                self._events.emit(ClientEvent.DATA, message)
        except asyncio.CancelledError:
            self._clear(session)
            raise
        except Exception as exc:
            cancelled_by_us = (
                isinstance(exc, grpc.aio.AioRpcError)
                and exc.code() == grpc.StatusCode.CANCELLED
                and session.closed.is_set()
            )
            if cancelled_by_us:
                logger.debug("Classify stream cancelled after close")
            else:
                logger.warning("Classify stream failed: %s", exc)
                self._events.emit(ClientEvent.ERROR, translate_rpc_error(exc))
        self._clear(session)
        self._events.emit(ClientEvent.CLOSE)
