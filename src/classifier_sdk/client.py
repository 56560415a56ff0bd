"""Public entry point: :class:`ClassifierClient`.

Composes the credential provider, payload preparer, transport session and
request coordinator, and exposes the lifecycle event surface.

Example::

    async with ClassifierClient(load_config()) as client:
        client.subscribe("data", handle_response)
        await client.submit(ClassifyImageInput(image=Path("cat.jpg").read_bytes()))
"""

from __future__ import annotations

import logging
import types
from collections.abc import Sequence
from typing import Any

import grpc.aio

from classifier_sdk.auth.base import CredentialProvider
from classifier_sdk.auth.oauth import OAuthCredentialProvider
from classifier_sdk.config import ClassifierConfig, load_config
from classifier_sdk.coordinator import RequestCoordinator
from classifier_sdk.events import ClientEvent, EventDispatcher, Listener, Subscription
from classifier_sdk.imaging.base import PayloadPreparer
from classifier_sdk.imaging.preparer import ImagePayloadPreparer
from classifier_sdk.logging.logger import SubmissionLogger
from classifier_sdk.proto.classifier_pb2 import ClassificationOutput, Deployment, Empty
from classifier_sdk.proto.classifier_pb2_grpc import ClassifierServiceStub
from classifier_sdk.transport.channel import call_metadata, create_channel
from classifier_sdk.transport.session import TransportSession, translate_rpc_error
from classifier_sdk.types import ClassifyImageInput

logger = logging.getLogger("classifier_sdk")

_Parts = tuple[ClassifierServiceStub, TransportSession, RequestCoordinator]


def default_client_version() -> str:
    """Return ``'classifier-sdk-python/<installed version>'``."""
    from classifier_sdk import __version__

    return f"classifier-sdk-python/{__version__}"


class ClassifierClient:
    """Client for the image classification service.

    Streaming results arrive as ``DATA`` events carrying a
    ``ClassifyResponse``; match outputs to inputs by ``correlation_id``.

    Args:
        config: Client configuration. Loaded from the environment if omitted.
        credentials: Authorization source. Defaults to an
            :class:`OAuthCredentialProvider` built from *config*.
        preparer: Payload preparer. Defaults to :class:`ImagePayloadPreparer`.
        channel: A ``grpc.aio`` channel. When omitted the client creates one
            on first use and closes it in :meth:`aclose`.
        client_version: Override for the ``x-client-version`` header.
    """

    def __init__(
        self,
        config: ClassifierConfig | None = None,
        *,
        credentials: CredentialProvider | None = None,
        preparer: PayloadPreparer | None = None,
        channel: grpc.aio.Channel | None = None,
        client_version: str | None = None,
    ) -> None:
        self._config = config if config is not None else load_config()
        self._owns_credentials = credentials is None
        self._credentials = credentials or OAuthCredentialProvider.from_config(self._config)
        self._preparer = preparer or ImagePayloadPreparer()
        self._client_version = client_version or default_client_version()

        self._events = EventDispatcher()
        self._submission_logger = SubmissionLogger(self._config)

        self._owns_channel = channel is None
        self._channel: Any | None = channel
        self._parts: _Parts | None = None
        if channel is not None:
            self._parts = self._build(channel)

    def _build(self, channel: Any) -> _Parts:
        stub = ClassifierServiceStub(channel)
        transport = TransportSession(
            self._config,
            stub,
            self._credentials,
            self._events,
            self._client_version,
        )
        coordinator = RequestCoordinator(
            self._config,
            transport,
            stub,
            self._credentials,
            self._preparer,
            self._submission_logger,
            self._client_version,
        )
        return stub, transport, coordinator

    def _ready(self) -> _Parts:
        """Create the channel on first use (inside the running loop)."""
        if self._parts is None:
            if self._channel is None:
                self._channel = create_channel(self._config)
            self._parts = self._build(self._channel)
        return self._parts

    # --- Properties ---

    @property
    def config(self) -> ClassifierConfig:
        return self._config

    @property
    def client_version(self) -> str:
        return self._client_version

    @property
    def is_open(self) -> bool:
        """Whether a streaming session is currently open."""
        return self._parts is not None and self._parts[1].is_open

    @property
    def diagnostics(self) -> SubmissionLogger:
        """Submission logger holding diagnostic records and summary stats."""
        return self._submission_logger

    # --- Events ---

    def subscribe(self, event: ClientEvent | str, listener: Listener) -> Subscription:
        """Register *listener* for one of ``open``, ``data``, ``error``, ``close``.

        Listeners only see events emitted after they subscribe.
        """
        return self._events.subscribe(event, listener)

    # --- Streaming session ---

    async def open(self) -> None:
        """Open the classify stream.

        Raises:
            SessionAlreadyOpenError: If a session is already open.
            AuthenticationError: If no credential can be obtained.
        """
        _, transport, _ = self._ready()
        await transport.open()

    async def close(self) -> None:
        """Close the classify stream. Safe to call when already closed."""
        if self._parts is not None:
            await self._parts[1].close()

    async def submit(
        self,
        inputs: ClassifyImageInput | Sequence[ClassifyImageInput],
    ) -> list[str]:
        """Submit one input or a batch over the open stream.

        Returns:
            Correlation IDs in submission order.

        Raises:
            SessionNotOpenError: If :meth:`open` has not been called.
            PreparationError: If an input cannot be prepared.
            SessionClosedError: If the session closes mid-write.
            TransportError: If the stream rejects the write.
        """
        _, _, coordinator = self._ready()
        return await coordinator.submit(inputs)

    # --- Unary calls ---

    async def submit_single_shot(self, item: ClassifyImageInput) -> ClassificationOutput:
        """Classify one input with a unary call; no session needed."""
        _, _, coordinator = self._ready()
        return await coordinator.submit_single_shot(item)

    async def list_deployments(self) -> list[Deployment]:
        """Fetch the active deployments. Never cached.

        Returns:
            The deployments, or an empty list if the server reports none.

        Raises:
            AuthenticationError: If no credential can be obtained.
            TransportError: If the call fails.
        """
        stub, _, _ = self._ready()
        metadata = await call_metadata(self._credentials, self._client_version)
        try:
            response = await stub.ListDeployments(
                Empty(),
                metadata=metadata,
                timeout=self._config.grpc_timeout_s,
            )
        except grpc.aio.AioRpcError as exc:
            raise translate_rpc_error(exc) from exc
        if response is None:
            return []
        return list(response.deployments)

    # --- Lifecycle ---

    async def aclose(self) -> None:
        """Close the session and release the channel and credential provider.

        An owned channel is dropped once closed; a later :meth:`open` creates
        a fresh one.
        """
        if self._parts is not None:
            await self._parts[1].shutdown()
        if self._owns_channel and self._channel is not None:
            await self._channel.close()
            self._channel = None
            self._parts = None
        if self._owns_credentials:
            await self._credentials.aclose()
            self._credentials = OAuthCredentialProvider.from_config(self._config)
            self._parts = None

    async def __aenter__(self) -> ClassifierClient:
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        await self.aclose()
