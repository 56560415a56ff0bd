"""Wire messages and gRPC stubs for the classifier service."""

from classifier_sdk.proto.classifier_pb2 import (
    Classification,
    ClassificationError,
    ClassificationInput,
    ClassificationOutput,
    ClassifyRequest,
    ClassifyResponse,
    Deployment,
    Empty,
    ErrorCode,
    HashType,
    ImageFormat,
    ImageHash,
    ListDeploymentsResponse,
    RequestEncoding,
)
from classifier_sdk.proto.classifier_pb2_grpc import (
    ClassifierServiceServicer,
    ClassifierServiceStub,
    add_ClassifierServiceServicer_to_server,
)

__all__ = [
    "Classification",
    "ClassificationError",
    "ClassificationInput",
    "ClassificationOutput",
    "ClassifierServiceServicer",
    "ClassifierServiceStub",
    "ClassifyRequest",
    "ClassifyResponse",
    "Deployment",
    "Empty",
    "ErrorCode",
    "HashType",
    "ImageFormat",
    "ImageHash",
    "ListDeploymentsResponse",
    "RequestEncoding",
    "add_ClassifierServiceServicer_to_server",
]
