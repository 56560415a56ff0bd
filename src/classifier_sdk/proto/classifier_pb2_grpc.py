"""Hand-written gRPC client stubs for the classifier service.

Provides ``ClassifierServiceStub`` with the bidirectional streaming
``Classify`` RPC and the unary ``ClassifySingle`` and ``ListDeployments``
RPCs. These stubs are compatible with both sync and async (``grpc.aio``)
channels.

If the proto definition changes, update these stubs or regenerate with
``grpc_tools.protoc``.
"""

from __future__ import annotations

from typing import Any

from classifier_sdk.proto.classifier_pb2 import (
    ClassificationInput,
    ClassificationOutput,
    ClassifyRequest,
    ClassifyResponse,
    Empty,
    ListDeploymentsResponse,
)

SERVICE_NAME = "athena.ClassifierService"


def _serialize(message: Any) -> bytes:
    """Serialize any hand-written message to bytes."""
    result: bytes = message.SerializeToString()
    return result


class ClassifierServiceStub:
    """gRPC client stub for the ClassifierService.

    Args:
        channel: A gRPC Channel or async Channel instance.
    """

    def __init__(self, channel: Any) -> None:
        self.Classify = channel.stream_stream(
            f"/{SERVICE_NAME}/Classify",
            request_serializer=_serialize,
            response_deserializer=ClassifyResponse.FromString,
        )
        self.ClassifySingle = channel.unary_unary(
            f"/{SERVICE_NAME}/ClassifySingle",
            request_serializer=_serialize,
            response_deserializer=ClassificationOutput.FromString,
        )
        self.ListDeployments = channel.unary_unary(
            f"/{SERVICE_NAME}/ListDeployments",
            request_serializer=_serialize,
            response_deserializer=ListDeploymentsResponse.FromString,
        )


class ClassifierServiceServicer:
    """Base class for ClassifierService server implementations.

    Override the methods in this class to implement the service.
    Used by example servers and integration tests.
    """

    def Classify(self, request_iterator: Any, context: Any) -> Any:  # noqa: N802
        """Bidirectional streaming RPC."""
        import grpc

        context.set_code(grpc.StatusCode.UNIMPLEMENTED)
        context.set_details("Method not implemented!")
        raise NotImplementedError("Method not implemented!")

    def ClassifySingle(self, request: Any, context: Any) -> Any:  # noqa: N802
        """Unary RPC: one input -> one output."""
        import grpc

        context.set_code(grpc.StatusCode.UNIMPLEMENTED)
        context.set_details("Method not implemented!")
        raise NotImplementedError("Method not implemented!")

    def ListDeployments(self, request: Any, context: Any) -> Any:  # noqa: N802
        """Unary RPC: Empty -> ListDeploymentsResponse."""
        import grpc

        context.set_code(grpc.StatusCode.UNIMPLEMENTED)
        context.set_details("Method not implemented!")
        raise NotImplementedError("Method not implemented!")


def add_ClassifierServiceServicer_to_server(  # noqa: N802
    servicer: ClassifierServiceServicer,
    server: Any,
) -> None:
    """Register a ``ClassifierServiceServicer`` with a gRPC server.

    Args:
        servicer: The service implementation.
        server: A ``grpc.Server`` or ``grpc.aio.Server`` instance.
    """
    from grpc import (
        method_handlers_generic_handler,
        stream_stream_rpc_method_handler,
        unary_unary_rpc_method_handler,
    )

    rpc_method_handlers = {
        "Classify": stream_stream_rpc_method_handler(
            servicer.Classify,
            request_deserializer=ClassifyRequest.FromString,
            response_serializer=_serialize,
        ),
        "ClassifySingle": unary_unary_rpc_method_handler(
            servicer.ClassifySingle,
            request_deserializer=ClassificationInput.FromString,
            response_serializer=_serialize,
        ),
        "ListDeployments": unary_unary_rpc_method_handler(
            servicer.ListDeployments,
            request_deserializer=Empty.FromString,
            response_serializer=_serialize,
        ),
    }
    generic_handler = method_handlers_generic_handler(SERVICE_NAME, rpc_method_handlers)
    server.add_generic_rpc_handlers((generic_handler,))
