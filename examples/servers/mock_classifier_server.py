#!/usr/bin/env python3
"""Minimal gRPC classifier server for local testing.

Accepts the bidirectional ``Classify`` stream, the unary ``ClassifySingle``
call and ``ListDeployments``. Every input gets a deterministic pair of
labels derived from the MD5 of its payload, so repeated runs return the
same weights. Heartbeats (requests with no inputs) are acknowledged
silently.

Usage:
    # Start on the default port (50051):
    python mock_classifier_server.py

    # Custom port and deployment names:
    python mock_classifier_server.py --port 50052 --deployment demo --deployment staging

Then point classifier-sdk at it:
    export CLASSIFIER_GRPC_ADDRESS=localhost:50051
    export CLASSIFIER_GRPC_INSECURE=true
    export CLASSIFIER_DEPLOYMENT_ID=demo
"""

from __future__ import annotations

import argparse
import hashlib
import logging
import signal
from concurrent import futures

import grpc

from classifier_sdk.proto.classifier_pb2 import (
    Classification,
    ClassificationError,
    ClassificationOutput,
    ClassifyResponse,
    Deployment,
    ErrorCode,
    ImageFormat,
    ListDeploymentsResponse,
    RequestEncoding,
)
from classifier_sdk.proto.classifier_pb2_grpc import (
    ClassifierServiceServicer,
    add_ClassifierServiceServicer_to_server,
)

logger = logging.getLogger("mock_classifier_server")

_RAW_SIZE = 448 * 448 * 3


def _classify(item) -> ClassificationOutput:
    """Score one input, or report why it cannot be scored."""
    if not item.data:
        return ClassificationOutput(
            correlation_id=item.correlation_id,
            error=ClassificationError(code=ErrorCode.MODEL_ERROR, message="empty payload"),
        )
    uncompressed = item.encoding != RequestEncoding.BROTLI
    if item.format == ImageFormat.RAW_UINT8 and uncompressed and len(item.data) != _RAW_SIZE:
        return ClassificationOutput(
            correlation_id=item.correlation_id,
            error=ClassificationError(
                code=ErrorCode.MISMATCHED_DIMENSIONS,
                message="raw payload must be 448x448x3",
                details=f"got {len(item.data)} bytes",
            ),
        )
    score = hashlib.md5(item.data).digest()[0] / 255.0
    return ClassificationOutput(
        correlation_id=item.correlation_id,
        classifications=[
            Classification(label="flagged", weight=score),
            Classification(label="clean", weight=1.0 - score),
        ],
    )


class MockClassifierServicer(ClassifierServiceServicer):
    """Deterministic stand-in for the classification service."""

    def __init__(self, deployments: list[str]) -> None:
        self._deployments = deployments

    def Classify(self, request_iterator, context):  # noqa: N802
        """Answer each non-empty request with one response envelope."""
        for request in request_iterator:
            if not request.inputs:
                logger.debug("Heartbeat for deployment=%s", request.deployment_id)
                continue
            if request.deployment_id not in self._deployments:
                yield ClassifyResponse(
                    global_error=ClassificationError(
                        code=ErrorCode.MODEL_ERROR,
                        message=f"unknown deployment {request.deployment_id!r}",
                    )
                )
                continue
            logger.info(
                "Classify: deployment=%s inputs=%d",
                request.deployment_id,
                len(request.inputs),
            )
            yield ClassifyResponse(outputs=[_classify(item) for item in request.inputs])

    def ClassifySingle(self, request, context):  # noqa: N802
        logger.info("ClassifySingle: correlation_id=%s", request.correlation_id)
        return _classify(request)

    def ListDeployments(self, request, context):  # noqa: N802
        return ListDeploymentsResponse(
            deployments=[Deployment(deployment_id=name) for name in self._deployments]
        )


def serve(address: str, max_workers: int, deployments: list[str]) -> None:
    """Start the gRPC server and block until terminated.

    Args:
        address: Bind address (e.g. ``localhost:50051``).
        max_workers: Thread pool size. Each open stream holds one worker.
        deployments: Deployment IDs reported by ``ListDeployments``.
    """
    server = grpc.server(futures.ThreadPoolExecutor(max_workers=max_workers))
    add_ClassifierServiceServicer_to_server(MockClassifierServicer(deployments), server)
    server.add_insecure_port(address)
    server.start()
    logger.info("Mock classifier listening on %s (deployments=%s)", address, deployments)
    logger.info("Press Ctrl+C to stop")

    def _shutdown(signum, frame):
        logger.info("Received signal %d, shutting down...", signum)
        server.stop(grace=5)

    signal.signal(signal.SIGINT, _shutdown)
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, _shutdown)
    server.wait_for_termination()


def main() -> None:
    """Parse arguments and start the server."""
    parser = argparse.ArgumentParser(description="Mock gRPC classifier server")
    parser.add_argument("--port", type=int, default=50051, help="Port (default: 50051).")
    parser.add_argument(
        "--address",
        type=str,
        default=None,
        help="Full bind address. Overrides --port.",
    )
    parser.add_argument("--max-workers", type=int, default=8, help="Thread pool size.")
    parser.add_argument(
        "--deployment",
        action="append",
        default=None,
        help="Deployment ID to serve (repeatable, default: 'demo').",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging.")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    address = args.address or f"0.0.0.0:{args.port}"
    serve(address, args.max_workers, args.deployment or ["demo"])


if __name__ == "__main__":
    main()
