"""Sign in with Apple provider."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import timedelta
import logging
from typing import Any

import httpx
import jwt
from jwt.algorithms import RSAAlgorithm

from simpleidentity.adapters.auth.base import AuthResult, require_fields
from simpleidentity.adapters.auth.oidc import OIDCProvider
from simpleidentity.core.config import APPLE_ISSUER, AppleCredentials
from simpleidentity.domain.errors import SubjectMismatchError

logger = logging.getLogger(__name__)

APPLE_IDENTITY_TOKEN_FIELD = "identityToken"
APPLE_AUTHORIZATION_CODE_FIELD = "authorizationCode"
APPLE_USER_ID_FIELD = "userID"
APPLE_NONCE_FIELD = "nonce"
APPLE_EMAIL_FIELD = "email"

CLIENT_SECRET_TTL = timedelta(minutes=5)


class AppleProvider(OIDCProvider):
    """Validates the authorization code the app received from Sign in with Apple.

    Expected auth data:
    - ``identityToken``: identity token handed to the app
    - ``authorizationCode``: single-use code exchanged for a fresh ID token
    - ``userID``: user identifier the device reported; must match ``sub``
    - ``nonce``: nonce the app sent with the sign-in request
    - ``email``: email the device reported; an empty value skips the comparison
    """

    provider_name = "apple"

    def __init__(self, credentials: AppleCredentials, **kwargs: Any) -> None:
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
        fields = require_fields(
            data,
            APPLE_IDENTITY_TOKEN_FIELD,
            APPLE_AUTHORIZATION_CODE_FIELD,
            APPLE_USER_ID_FIELD,
            APPLE_NONCE_FIELD,
            APPLE_EMAIL_FIELD,
        )
        token_response = self.exchange_code(fields[APPLE_AUTHORIZATION_CODE_FIELD])
        claims = self.verify_id_token(
            token_response.id_token,
            nonce=fields[APPLE_NONCE_FIELD],
            email=fields[APPLE_EMAIL_FIELD],
        )

        subject = claims["sub"]
        if fields[APPLE_USER_ID_FIELD] != subject:
            logger.warning(
                "provider.subject_mismatch provider=apple subject=%s device_user=%s",
                self._log_subject(subject),
                self._log_subject(fields[APPLE_USER_ID_FIELD]),
            )
            raise SubjectMismatchError("apple: userID mismatch")

        return AuthResult(subject_id=subject)

    def client_secret(self) -> str:
        """Return the static secret, or sign a short-lived ES256 client-secret JWT."""
        if not self._credentials.signs_client_secret:
            return self._credentials.client_secret

        issued_at = self._clock()
        claims = {
            "iss": self._credentials.team_id,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + CLIENT_SECRET_TTL).timestamp()),
            "aud": APPLE_ISSUER,
            "sub": self._credentials.client_id,
        }
        return jwt.encode(
            claims,
            self._credentials.private_key,
            algorithm="ES256",
            headers={"kid": self._credentials.key_id},
        )

    def parse_public_keys(self, response: httpx.Response) -> dict[str, Any]:
        try:
            jwks = response.json()
        except ValueError:
            jwks = None
        if not isinstance(jwks, dict) or not isinstance(jwks.get("keys"), list):
            logger.warning("provider.keys_malformed provider=apple")
            return {}

        keys: dict[str, Any] = {}
        for jwk in jwks["keys"]:
            if not isinstance(jwk, dict):
                continue
            kid = jwk.get("kid")
            if jwk.get("kty") != "RSA" or not kid:
                logger.warning("provider.key_skipped provider=apple kid=%s kty=%s", kid, jwk.get("kty"))
                continue
            try:
                keys[kid] = RSAAlgorithm.from_jwk(jwk)
            except (jwt.InvalidKeyError, ValueError):
                logger.warning("provider.key_skipped provider=apple kid=%s", kid)
        return keys


__all__ = [
    "APPLE_AUTHORIZATION_CODE_FIELD",
    "APPLE_EMAIL_FIELD",
    "APPLE_IDENTITY_TOKEN_FIELD",
    "APPLE_NONCE_FIELD",
    "APPLE_USER_ID_FIELD",
    "AppleProvider",
]
