"""Google sign-in provider."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from email.utils import parsedate_to_datetime
import logging
import re
from typing import Any

from cryptography import x509
from cryptography.hazmat.primitives import serialization
import httpx

from simpleidentity.adapters.auth.base import AuthResult, require_fields
from simpleidentity.adapters.auth.oidc import OIDCProvider
from simpleidentity.core.config import GoogleCredentials

logger = logging.getLogger(__name__)

GOOGLE_AUTH_CODE_FIELD = "token"
GOOGLE_NONCE_FIELD = "nonce"

_MAX_AGE_PATTERN = re.compile(r"max-age=(\d+)")


class GoogleProvider(OIDCProvider):
    """Exchanges a server auth code for an ID token and verifies it.

    Expected auth data:
    - ``token``: OAuth authorization code from the client
    - ``nonce`` (optional): compared with the token's ``nonce`` claim when present
    """

    provider_name = "google"

    def __init__(self, credentials: GoogleCredentials, **kwargs: Any) -> None:
        super().__init__(
            client_id=credentials.client_id,
            token_url=credentials.token_url,
            certs_url=credentials.certs_url,
            expected_issuer=credentials.expected_issuer,
            expected_audience=credentials.expected_audience,
            **kwargs,
        )
        self._credentials = credentials

    def authenticate(self, data: Mapping[str, str]) -> AuthResult:
        auth_code = require_fields(data, GOOGLE_AUTH_CODE_FIELD)[GOOGLE_AUTH_CODE_FIELD]
        token_response = self.exchange_code(auth_code)
        claims = self.verify_id_token(token_response.id_token, nonce=data.get(GOOGLE_NONCE_FIELD))

        logger.debug("provider.authenticated provider=google subject=%s", self._log_subject(claims["sub"]))
        return AuthResult(subject_id=claims["sub"])

    def client_secret(self) -> str:
        return self._credentials.client_secret

    def parse_public_keys(self, response: httpx.Response) -> dict[str, Any]:
        try:
            certs = response.json()
        except ValueError:
            certs = None
        if not isinstance(certs, dict):
            logger.warning("provider.keys_malformed provider=google")
            return {}

        keys: dict[str, Any] = {}
        for kid, pem in certs.items():
            try:
                keys[kid] = load_pem_public_key(pem)
            except (AttributeError, TypeError, ValueError):
                logger.warning("provider.key_skipped provider=google kid=%s", kid)
        return keys

    def key_lease_expiry(self, response: httpx.Response) -> datetime:
        """Honour Cache-Control max-age, then Expires, then the default lease."""
        match = _MAX_AGE_PATTERN.search(response.headers.get("Cache-Control", ""))
        if match:
            return self._clock() + timedelta(seconds=int(match.group(1)))

        expires = response.headers.get("Expires")
        if expires:
            try:
                expires_at = parsedate_to_datetime(expires)
            except (TypeError, ValueError):
                expires_at = None
            if expires_at is not None:
                return expires_at if expires_at.tzinfo else expires_at.replace(tzinfo=UTC)

        return super().key_lease_expiry(response)


def load_pem_public_key(pem: str) -> Any:
    """Load an RSA public key from either an X.509 certificate or a public key PEM."""
    data = pem.encode("utf-8")
    if b"BEGIN CERTIFICATE" in data:
        return x509.load_pem_x509_certificate(data).public_key()
    return serialization.load_pem_public_key(data)


__all__ = ["GOOGLE_AUTH_CODE_FIELD", "GOOGLE_NONCE_FIELD", "GoogleProvider", "load_pem_public_key"]
