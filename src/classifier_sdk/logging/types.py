"""Data types for the submission logging subsystem."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SubmissionRecord:
    """Immutable record of one submission written to the service.

    Attributes:
        timestamp_ns: Wall-clock time of the write (nanoseconds since epoch).
        path: ``'stream'`` for session writes, ``'single'`` for unary calls.
        deployment_id: Deployment the request was routed to.
        input_count: Number of inputs in the request envelope.
        correlation_ids: Correlation IDs in envelope order.
        payload_bytes: Total encoded image bytes across all inputs.
        preparation_ms: Time spent preparing payloads (milliseconds).
        write_ms: Time spent writing, including backpressure waits (ms).
        total_ms: Total time for the submission call (ms).
    """

    # Timing
    timestamp_ns: int
    preparation_ms: float
    write_ms: float
    total_ms: float

    # Routing
    path: str
    deployment_id: str

    # Content
    input_count: int
    correlation_ids: tuple[str, ...]
    payload_bytes: int
