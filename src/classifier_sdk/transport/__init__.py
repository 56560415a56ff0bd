"""Streaming transport for classifier-sdk."""

from classifier_sdk.transport.channel import call_metadata, create_channel
from classifier_sdk.transport.session import TransportSession, translate_rpc_error

__all__ = [
    "TransportSession",
    "call_metadata",
    "create_channel",
    "translate_rpc_error",
]
