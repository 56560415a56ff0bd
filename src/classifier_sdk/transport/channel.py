"""``grpc.aio`` channel construction and call metadata."""

from __future__ import annotations

from typing import TYPE_CHECKING

import grpc
import grpc.aio

if TYPE_CHECKING:
    from classifier_sdk.auth.base import CredentialProvider
    from classifier_sdk.config import ClassifierConfig

CLIENT_LANGUAGE = "python"


def create_channel(config: ClassifierConfig) -> grpc.aio.Channel:
    """Create an async channel to ``config.grpc_address``.

    TLS is used unless ``grpc_insecure`` is set. HTTP/2 keepalive pings
    keep idle connections alive underneath the stream heartbeat.

    Args:
        config: Client configuration.

    Returns:
        A new ``grpc.aio.Channel``. The caller owns it and must close it.
    """
    options = [
        ("grpc.keepalive_time_ms", config.grpc_keepalive_time_ms),
        ("grpc.keepalive_timeout_ms", 10_000),
        ("grpc.keepalive_permit_without_calls", True),
        ("grpc.http2.max_pings_without_data", 0),
    ]
    if config.grpc_insecure:
        return grpc.aio.insecure_channel(config.grpc_address, options=options)
    return grpc.aio.secure_channel(
        config.grpc_address,
        grpc.ssl_channel_credentials(),
        options=options,
    )


async def call_metadata(
    credentials: CredentialProvider,
    client_version: str,
) -> tuple[tuple[str, str], ...]:
    """Build call metadata with a freshly fetched authorization header.

    Args:
        credentials: Source of the authorization header.
        client_version: Value of the ``x-client-version`` header.

    Returns:
        Metadata pairs for a gRPC call.

    Raises:
        AuthenticationError: If the credential provider fails.
    """
    return (
        ("x-client-version", client_version),
        ("x-client-language", CLIENT_LANGUAGE),
        ("authorization", await credentials.get_header()),
    )
