"""Request coordination: inputs -> prepared envelope -> one write.

The coordinator resolves per-input defaults, prepares each payload in
turn, batches the results into a single ``ClassifyRequest`` and performs
exactly one write on the open stream. Results come back asynchronously as
``DATA`` events and must be matched by correlation ID, never by arrival
order.

The unary ``ClassifySingle`` path prepares one input the same way but
needs no open session.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Sequence
from typing import TYPE_CHECKING

import grpc.aio

from classifier_sdk.logging.types import SubmissionRecord
from classifier_sdk.proto.classifier_pb2 import (
    ClassificationInput,
    ClassificationOutput,
    ClassifyRequest,
    ImageFormat,
    ImageHash,
    RequestEncoding,
)
from classifier_sdk.transport.channel import call_metadata
from classifier_sdk.transport.session import translate_rpc_error
from classifier_sdk.types import (
    DEFAULT_HASH_TYPES,
    ClassifyImageInput,
    ExplicitFormat,
    Resize,
)

if TYPE_CHECKING:
    from classifier_sdk.auth.base import CredentialProvider
    from classifier_sdk.config import ClassifierConfig
    from classifier_sdk.imaging.base import PayloadPreparer
    from classifier_sdk.logging.logger import SubmissionLogger
    from classifier_sdk.proto.classifier_pb2_grpc import ClassifierServiceStub
    from classifier_sdk.transport.session import TransportSession

logger = logging.getLogger("classifier_sdk")


class RequestCoordinator:
    """Turns caller inputs into classify requests.

    Args:
        config: Client configuration (deployment id, default affiliate, deadlines).
        transport: Session that owns the classify stream.
        stub: Classifier service stub for the unary path.
        credentials: Source of the authorization header for unary calls.
        preparer: Payload preparer applied to every input.
        submission_logger: Receives one record per completed submission.
        client_version: Value of the ``x-client-version`` metadata header.
    """

    def __init__(
        self,
        config: ClassifierConfig,
        transport: TransportSession,
        stub: ClassifierServiceStub,
        credentials: CredentialProvider,
        preparer: PayloadPreparer,
        submission_logger: SubmissionLogger,
        client_version: str,
    ) -> None:
        self._config = config
        self._transport = transport
        self._stub = stub
        self._credentials = credentials
        self._preparer = preparer
        self._submission_logger = submission_logger
        self._client_version = client_version

    async def submit(
        self,
        inputs: ClassifyImageInput | Sequence[ClassifyImageInput],
    ) -> list[str]:
        """Prepare *inputs* and write them as one envelope on the open stream.

        The open-session check happens before any preparation. Inputs are
        prepared one at a time, in order, and the envelope preserves that
        order. If the stream applies backpressure the call waits for the
        write to complete.

        Args:
            inputs: One input or a sequence of inputs to batch together.

        Returns:
            Correlation IDs of the submitted inputs, in envelope order.

        Raises:
            SessionNotOpenError: If no session is open.
            PreparationError: If any input cannot be prepared. Nothing is written.
            SessionClosedError: If the session closes before the write completes.
            TransportError: If the stream rejects the write.
        """
        session = self._transport.acquire()
        items = [inputs] if isinstance(inputs, ClassifyImageInput) else list(inputs)

        t0 = time.perf_counter()
        prepared = [await self.prepare_input(item) for item in items]
        t1 = time.perf_counter()

        request = ClassifyRequest(deployment_id=self._config.deployment_id, inputs=prepared)
        await self._transport.write(request, session)
        t2 = time.perf_counter()

        self._record("stream", prepared, t0, t1, t2)
        return [item.correlation_id for item in prepared]

    async def submit_single_shot(self, item: ClassifyImageInput) -> ClassificationOutput:
        """Classify one input with the unary ``ClassifySingle`` call.

        Does not need an open session and does not use the stream.

        Args:
            item: The input to classify.

        Returns:
            The service's result for this input.

        Raises:
            PreparationError: If the input cannot be prepared.
            AuthenticationError: If no credential can be obtained.
            TransportError: If the call fails.
        """
        t0 = time.perf_counter()
        prepared = await self.prepare_input(item)
        t1 = time.perf_counter()

        metadata = await call_metadata(self._credentials, self._client_version)
        try:
            output: ClassificationOutput = await self._stub.ClassifySingle(
                prepared,
                metadata=metadata,
                timeout=self._config.grpc_timeout_s,
            )
        except grpc.aio.AioRpcError as exc:
            raise translate_rpc_error(exc) from exc
        t2 = time.perf_counter()

        self._record("single", [prepared], t0, t1, t2)
        return output

    async def prepare_input(self, item: ClassifyImageInput) -> ClassificationInput:
        """Resolve defaults for *item* and run it through the payload preparer."""
        affiliate = item.affiliate if item.affiliate is not None else self._config.affiliate
        correlation_id = item.correlation_id
        if correlation_id is None:
            correlation_id = str(uuid.uuid4())
        encoding = item.encoding if item.encoding is not None else RequestEncoding.UNCOMPRESSED
        hash_types = item.hash_types if item.hash_types is not None else DEFAULT_HASH_TYPES

        target = item.target
        if isinstance(target, Resize):
            resize, declared = True, ImageFormat.UNSPECIFIED
        elif isinstance(target, ExplicitFormat):
            resize, declared = False, target.format
        else:
            raise TypeError(f"Unsupported image target: {target!r}")

        payload = await self._preparer.prepare(item.image, encoding, declared, resize, hash_types)
        return ClassificationInput(
            affiliate=affiliate,
            correlation_id=correlation_id,
            encoding=encoding,
            data=payload.data,
            format=payload.format,
            hashes=[
                ImageHash(value=h.value, type=h.type) for h in payload.hashes if h.value.strip()
            ],
        )

    def _record(
        self,
        path: str,
        prepared: list[ClassificationInput],
        t0: float,
        t1: float,
        t2: float,
    ) -> None:
        self._submission_logger.log_submission(
            SubmissionRecord(
                timestamp_ns=time.time_ns(),
                preparation_ms=(t1 - t0) * 1000.0,
                write_ms=(t2 - t1) * 1000.0,
                total_ms=(t2 - t0) * 1000.0,
                path=path,
                deployment_id=self._config.deployment_id,
                input_count=len(prepared),
                correlation_ids=tuple(item.correlation_id for item in prepared),
                payload_bytes=sum(len(item.data) for item in prepared),
            )
        )
