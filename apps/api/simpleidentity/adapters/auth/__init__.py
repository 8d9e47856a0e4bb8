"""Identity provider adapters."""

from .apple import AppleProvider
from .base import AuthProvider, AuthResult
from .certs import PublicKeyCache
from .google import GoogleProvider
from .guest import GuestProvider
from .oidc import OIDCProvider
from .registry import ProviderRegistry, build_registry

__all__ = [
    "AppleProvider",
    "AuthProvider",
    "AuthResult",
    "GoogleProvider",
    "GuestProvider",
    "OIDCProvider",
    "ProviderRegistry",
    "PublicKeyCache",
    "build_registry",
]
