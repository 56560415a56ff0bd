"""classifier-sdk: asyncio client for the streaming image classification service.

Opens a persistent bidirectional gRPC stream, submits (optionally resized and
hashed) images in batches, and delivers per-image results as events.
Deployments can be listed and single images classified with unary calls.
"""

from __future__ import annotations

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("classifier-sdk")
except PackageNotFoundError:
    __version__ = "0.0.0"

from classifier_sdk.auth import (
    CredentialProvider,
    OAuthCredentialProvider,
    StaticCredentialProvider,
)
from classifier_sdk.client import ClassifierClient
from classifier_sdk.config import ClassifierConfig, load_config
from classifier_sdk.events import ClientEvent, EventDispatcher, Subscription
from classifier_sdk.exceptions import (
    AuthenticationError,
    ClassifierSdkError,
    ConfigValidationError,
    ImageDimensionError,
    PreparationError,
    SessionAlreadyOpenError,
    SessionClosedError,
    SessionError,
    SessionNotOpenError,
    TransportError,
)
from classifier_sdk.imaging import ImagePayloadPreparer, PayloadPreparer
from classifier_sdk.proto import (
    ClassificationOutput,
    ClassifyResponse,
    Deployment,
    HashType,
    ImageFormat,
    RequestEncoding,
)
from classifier_sdk.types import ClassifyImageInput, ExplicitFormat, Resize

__all__ = [
    "AuthenticationError",
    "ClassificationOutput",
    "ClassifierClient",
    "ClassifierConfig",
    "ClassifierSdkError",
    "ClassifyImageInput",
    "ClassifyResponse",
    "ClientEvent",
    "ConfigValidationError",
    "CredentialProvider",
    "Deployment",
    "EventDispatcher",
    "ExplicitFormat",
    "HashType",
    "ImageDimensionError",
    "ImageFormat",
    "ImagePayloadPreparer",
    "OAuthCredentialProvider",
    "PayloadPreparer",
    "PreparationError",
    "RequestEncoding",
    "Resize",
    "SessionAlreadyOpenError",
    "SessionClosedError",
    "SessionError",
    "SessionNotOpenError",
    "StaticCredentialProvider",
    "Subscription",
    "TransportError",
    "__version__",
    "load_config",
]
