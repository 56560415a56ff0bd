"""Credential providers for the classifier service.

Re-exports the ABC and built-in providers::

    from classifier_sdk.auth import CredentialProvider, OAuthCredentialProvider
"""

from classifier_sdk.auth.base import CredentialProvider
from classifier_sdk.auth.oauth import OAuthCredentialProvider
from classifier_sdk.auth.static import StaticCredentialProvider

__all__ = [
    "CredentialProvider",
    "OAuthCredentialProvider",
    "StaticCredentialProvider",
]
