"""Credential provider for a pre-issued access token."""

from __future__ import annotations

from classifier_sdk.auth.base import CredentialProvider
from classifier_sdk.exceptions import AuthenticationError


class StaticCredentialProvider(CredentialProvider):
    """Always returns the same ``<token_type> <token>`` header.

    Args:
        token: The access token.
        token_type: Authorization scheme. Default ``'Bearer'``.

    Raises:
        AuthenticationError: If *token* is empty.
    """

    def __init__(self, token: str, token_type: str = "Bearer") -> None:
        if not token:
            raise AuthenticationError("StaticCredentialProvider requires a non-empty token")
        self._header = f"{token_type} {token}"

    async def get_header(self) -> str:
        return self._header
