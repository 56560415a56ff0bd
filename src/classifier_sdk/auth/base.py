"""Abstract base class for credential providers.

A credential provider produces the value of the ``authorization`` call
metadata header. Implementations own their caching and refresh policy;
callers simply await :meth:`CredentialProvider.get_header` whenever they
need a header and never retry on failure.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class CredentialProvider(ABC):
    """Abstract base for authorization credential sources."""

    @abstractmethod
    async def get_header(self) -> str:
        """Return a current authorization header value, e.g. ``'Bearer abc'``.

        Raises:
            AuthenticationError: If no credential can be obtained.
        """

    async def metadata(self) -> tuple[tuple[str, str], ...]:
        """Return gRPC call metadata carrying the authorization header."""
        return (("authorization", await self.get_header()),)

    async def aclose(self) -> None:
        """Release any network resources. Default: no-op."""
