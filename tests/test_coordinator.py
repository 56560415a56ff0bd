"""Tests for classifier_sdk.coordinator.

Covers:
- Default resolution (affiliate, correlation id, encoding, hash types)
- Resize vs ExplicitFormat targets
- Batch order and correlation ids preserved in one envelope
- No preparation when no session is open
- Preparation failure writes nothing
- Single-shot path: no session needed, errors translated
- Submission records in diagnostic mode
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator

import grpc
import pytest
import pytest_asyncio
from conftest import FakeChannel, RecordingPreparer, make_rpc_error

from classifier_sdk.auth.static import StaticCredentialProvider
from classifier_sdk.config import ClassifierConfig
from classifier_sdk.coordinator import RequestCoordinator
from classifier_sdk.events import EventDispatcher
from classifier_sdk.exceptions import PreparationError, SessionNotOpenError, TransportError
from classifier_sdk.logging.logger import SubmissionLogger
from classifier_sdk.proto.classifier_pb2 import (
    ClassificationOutput,
    HashType,
    ImageFormat,
    RequestEncoding,
)
from classifier_sdk.proto.classifier_pb2_grpc import ClassifierServiceStub
from classifier_sdk.transport.session import TransportSession
from classifier_sdk.types import ClassifyImageInput, ExplicitFormat, Resize


@pytest.fixture
def stub(channel: FakeChannel) -> ClassifierServiceStub:
    return ClassifierServiceStub(channel)


@pytest.fixture
def submission_logger(config: ClassifierConfig) -> SubmissionLogger:
    return SubmissionLogger(config)


@pytest_asyncio.fixture
async def transport(
    config: ClassifierConfig,
    stub: ClassifierServiceStub,
    credentials: StaticCredentialProvider,
) -> AsyncIterator[TransportSession]:
    transport = TransportSession(config, stub, credentials, EventDispatcher(), "test/1.0")
    yield transport
    await transport.shutdown()


@pytest.fixture
def coordinator(
    config: ClassifierConfig,
    transport: TransportSession,
    stub: ClassifierServiceStub,
    credentials: StaticCredentialProvider,
    preparer: RecordingPreparer,
    submission_logger: SubmissionLogger,
) -> RequestCoordinator:
    return RequestCoordinator(
        config,
        transport,
        stub,
        credentials,
        preparer,
        submission_logger,
        "test/1.0",
    )


# ---------------------------------------------------------------------------
# prepare_input
# ---------------------------------------------------------------------------


class TestPrepareInput:
    """Per-input default resolution."""

    @pytest.mark.asyncio
    async def test_defaults_resolved(self, coordinator, preparer) -> None:
        prepared = await coordinator.prepare_input(ClassifyImageInput(image=b"img"))

        assert prepared.affiliate == "affiliate-default"
        assert uuid.UUID(prepared.correlation_id).version == 4
        assert prepared.encoding == RequestEncoding.UNCOMPRESSED
        assert prepared.format == ImageFormat.RAW_UINT8
        assert prepared.data == b"prepared:img"
        assert preparer.calls[0]["resize"] is True
        assert preparer.calls[0]["format"] == ImageFormat.UNSPECIFIED
        assert preparer.calls[0]["hash_types"] == (HashType.MD5, HashType.SHA1)

    @pytest.mark.asyncio
    async def test_default_hashes_are_two_distinct_nonblank_values(self, coordinator) -> None:
        prepared = await coordinator.prepare_input(ClassifyImageInput(image=b"img"))

        assert [h.type for h in prepared.hashes] == [HashType.MD5, HashType.SHA1]
        values = [h.value for h in prepared.hashes]
        assert all(v.strip() for v in values)
        assert len(set(values)) == 2

    @pytest.mark.asyncio
    async def test_generated_correlation_ids_are_unique(self, coordinator) -> None:
        first = await coordinator.prepare_input(ClassifyImageInput(image=b"img"))
        second = await coordinator.prepare_input(ClassifyImageInput(image=b"img"))
        assert first.correlation_id != second.correlation_id

    @pytest.mark.asyncio
    async def test_explicit_values_kept(self, coordinator, preparer) -> None:
        item = ClassifyImageInput(
            image=b"img",
            target=ExplicitFormat(ImageFormat.PNG),
            affiliate="acme",
            correlation_id="abc",
            encoding=RequestEncoding.BROTLI,
            hash_types=(HashType.SHA1,),
        )
        prepared = await coordinator.prepare_input(item)

        assert prepared.affiliate == "acme"
        assert prepared.correlation_id == "abc"
        assert prepared.encoding == RequestEncoding.BROTLI
        assert prepared.format == ImageFormat.PNG
        assert [h.type for h in prepared.hashes] == [HashType.SHA1]
        assert preparer.calls[0]["resize"] is False
        assert preparer.calls[0]["format"] == ImageFormat.PNG

    @pytest.mark.asyncio
    async def test_empty_affiliate_is_not_replaced(self, coordinator) -> None:
        prepared = await coordinator.prepare_input(ClassifyImageInput(image=b"img", affiliate=""))
        assert prepared.affiliate == ""

    @pytest.mark.asyncio
    async def test_unknown_hash_type_dropped(self, coordinator) -> None:
        item = ClassifyImageInput(image=b"img", hash_types=(HashType.UNKNOWN, HashType.MD5))
        prepared = await coordinator.prepare_input(item)
        assert [h.type for h in prepared.hashes] == [HashType.MD5]

    @pytest.mark.asyncio
    async def test_unsupported_target_rejected(self, coordinator) -> None:
        item = ClassifyImageInput(image=b"img", target="resize")  # type: ignore[arg-type]
        with pytest.raises(TypeError):
            await coordinator.prepare_input(item)

    def test_resize_target_is_default(self) -> None:
        assert ClassifyImageInput(image=b"x").target == Resize()


# ---------------------------------------------------------------------------
# submit
# ---------------------------------------------------------------------------


class TestSubmit:
    """Streaming submissions."""

    @pytest.mark.asyncio
    async def test_submit_without_session_skips_preparation(
        self, coordinator, preparer
    ) -> None:
        with pytest.raises(SessionNotOpenError):
            await coordinator.submit(ClassifyImageInput(image=b"img"))
        assert preparer.calls == []

    @pytest.mark.asyncio
    async def test_single_input_written_as_one_envelope(
        self, coordinator, transport, channel
    ) -> None:
        await transport.open()
        ids = await coordinator.submit(ClassifyImageInput(image=b"img", correlation_id="abc"))

        assert ids == ["abc"]
        writes = channel.last_call.data_writes
        assert len(writes) == 1
        assert writes[0].deployment_id == "deploy-1"
        assert [i.correlation_id for i in writes[0].inputs] == ["abc"]

    @pytest.mark.asyncio
    async def test_batch_preserves_order(
        self, coordinator, transport, channel, preparer
    ) -> None:
        await transport.open()
        items = [
            ClassifyImageInput(image=f"img-{i}".encode(), correlation_id=f"c-{i}")
            for i in range(4)
        ]
        ids = await coordinator.submit(items)

        assert ids == ["c-0", "c-1", "c-2", "c-3"]
        writes = channel.last_call.data_writes
        assert len(writes) == 1
        assert [i.correlation_id for i in writes[0].inputs] == ids
        assert [i.data for i in writes[0].inputs] == [b"prepared:" + it.image for it in items]
        assert [c["source"] for c in preparer.calls] == [it.image for it in items]

    @pytest.mark.asyncio
    async def test_preparation_failure_writes_nothing(
        self, coordinator, transport, channel, preparer
    ) -> None:
        await transport.open()
        preparer.fail_on = b"bad"
        items = [ClassifyImageInput(image=b"good"), ClassifyImageInput(image=b"bad")]

        with pytest.raises(PreparationError):
            await coordinator.submit(items)
        assert channel.last_call.writes == []

    @pytest.mark.asyncio
    async def test_submission_recorded(
        self, coordinator, transport, submission_logger
    ) -> None:
        await transport.open()
        await coordinator.submit(
            [
                ClassifyImageInput(image=b"aa", correlation_id="x"),
                ClassifyImageInput(image=b"bbb", correlation_id="y"),
            ]
        )

        records = submission_logger.get_diagnostic_data()
        assert len(records) == 1
        record = records[0]
        assert record.path == "stream"
        assert record.input_count == 2
        assert record.correlation_ids == ("x", "y")
        assert record.payload_bytes == len(b"prepared:aa") + len(b"prepared:bbb")
        assert record.total_ms >= record.preparation_ms


# ---------------------------------------------------------------------------
# submit_single_shot
# ---------------------------------------------------------------------------


class TestSubmitSingleShot:
    """Unary ClassifySingle path."""

    @pytest.mark.asyncio
    async def test_single_shot_needs_no_session(self, coordinator, channel) -> None:
        expected = ClassificationOutput(correlation_id="abc")
        channel.unary["ClassifySingle"].return_value = expected

        result = await coordinator.submit_single_shot(
            ClassifyImageInput(image=b"img", correlation_id="abc")
        )

        assert result is expected
        assert channel.calls == []
        handle = channel.unary["ClassifySingle"]
        sent = handle.await_args.args[0]
        assert sent.correlation_id == "abc"
        assert sent.affiliate == "affiliate-default"
        metadata = dict(handle.await_args.kwargs["metadata"])
        assert metadata["authorization"] == "Bearer test-token"
        assert handle.await_args.kwargs["timeout"] == pytest.approx(30.0)

    @pytest.mark.asyncio
    async def test_single_shot_error_translated(self, coordinator, channel) -> None:
        channel.unary["ClassifySingle"].side_effect = make_rpc_error(
            grpc.StatusCode.DEADLINE_EXCEEDED, "too slow"
        )

        with pytest.raises(TransportError) as exc_info:
            await coordinator.submit_single_shot(ClassifyImageInput(image=b"img"))
        assert exc_info.value.code == grpc.StatusCode.DEADLINE_EXCEEDED

    @pytest.mark.asyncio
    async def test_single_shot_recorded(
        self, coordinator, channel, submission_logger
    ) -> None:
        channel.unary["ClassifySingle"].return_value = ClassificationOutput()
        await coordinator.submit_single_shot(ClassifyImageInput(image=b"img"))

        stats = submission_logger.get_summary_stats()
        assert stats["single_submissions"] == 1
        assert stats["stream_submissions"] == 0
