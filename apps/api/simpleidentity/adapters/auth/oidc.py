"""Shared OAuth code exchange and ID token verification for OIDC providers."""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Callable
from datetime import datetime, timedelta
import logging
from typing import Any

import httpx
import jwt
from pydantic import BaseModel, ValidationError

from simpleidentity.adapters.auth.base import AuthProvider
from simpleidentity.adapters.auth.certs import PublicKeyCache, utc_now
from simpleidentity.core.logging_safety import subject_handle
from simpleidentity.domain.errors import ProviderExchangeError, TokenVerificationError

logger = logging.getLogger(__name__)

CLOCK_SKEW_LEEWAY = timedelta(seconds=30)
DEFAULT_KEY_LEASE = timedelta(hours=1)
_SIGNING_ALGORITHMS = ["RS256"]
_REQUIRED_CLAIMS = ["exp", "iat", "iss", "aud", "sub"]


class TokenResponse(BaseModel):
    """Token endpoint payload of an authorization code exchange."""

    access_token: str = ""
    token_type: str = ""
    expires_in: int = 0
    refresh_token: str = ""
    scope: str = ""
    id_token: str = ""


class OIDCProvider(AuthProvider):
    """Base for providers that exchange an authorization code for a signed ID token.

    Subclasses supply the client secret and the parsing of their certs
    endpoint. The exchange is a form-encoded POST; the returned ``id_token``
    is verified against the provider's published keys, which are cached per
    instance and refilled on a key id miss. Concurrent misses for the same
    key id may each trigger a refill; refills are idempotent so the only cost
    is the duplicate fetch.

    ``http_client`` belongs to the caller, which closes it; ``build_registry``
    shares one client across providers and ``create_app`` closes it on shutdown.
    """

    provider_name = "oidc"

    def __init__(
        self,
        *,
        client_id: str,
        token_url: str,
        certs_url: str,
        expected_issuer: str,
        expected_audience: str,
        http_client: httpx.Client,
        key_cache: PublicKeyCache | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._client_id = client_id
        self._token_url = token_url
        self._certs_url = certs_url
        self._expected_issuer = expected_issuer
        self._expected_audience = expected_audience
        self._http = http_client
        self._clock = clock
        self._key_cache = key_cache if key_cache is not None else PublicKeyCache(clock=clock)

    @property
    def key_cache(self) -> PublicKeyCache:
        return self._key_cache

    @abstractmethod
    def client_secret(self) -> str:
        """Return the client secret sent with the code exchange."""

    @abstractmethod
    def parse_public_keys(self, response: httpx.Response) -> dict[str, Any]:
        """Turn a certs endpoint response into a key id to public key map."""

    def key_lease_expiry(self, response: httpx.Response) -> datetime:
        """Return when keys fetched in ``response`` stop being trusted."""
        return self._clock() + DEFAULT_KEY_LEASE

    def exchange_code(self, code: str) -> TokenResponse:
        form = {
            "code": code,
            "client_id": self._client_id,
            "client_secret": self.client_secret(),
            "redirect_uri": "",
            "grant_type": "authorization_code",
        }
        try:
            response = self._http.post(self._token_url, data=form, headers={"Accept": "application/json"})
        except httpx.HTTPError as exc:
            raise ProviderExchangeError(f"{self.provider_name}: failed to reach token endpoint: {exc}") from exc

        if not response.is_success:
            raise ProviderExchangeError(
                f"{self.provider_name}: token exchange failed with status {response.status_code}: "
                f"{_describe_error_body(response)}"
            )

        try:
            token_response = TokenResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise ProviderExchangeError(f"{self.provider_name}: failed to decode token response") from exc

        if not token_response.id_token:
            raise ProviderExchangeError(f"{self.provider_name}: no id_token in token response")
        return token_response

    def verify_id_token(
        self,
        id_token: str,
        *,
        nonce: str | None = None,
        email: str | None = None,
    ) -> dict[str, Any]:
        """Verify signature and claims; ``nonce`` and ``email`` are only checked when given."""
        try:
            header = jwt.get_unverified_header(id_token)
        except jwt.PyJWTError as exc:
            raise TokenVerificationError(f"{self.provider_name}: malformed id token") from exc

        kid = header.get("kid")
        if not isinstance(kid, str) or not kid:
            raise TokenVerificationError(f"{self.provider_name}: no kid found in token header")

        key = self.public_key(kid)
        try:
            claims = jwt.decode(
                id_token,
                key=key,
                algorithms=_SIGNING_ALGORITHMS,
                audience=self._expected_audience,
                issuer=self._expected_issuer,
                leeway=CLOCK_SKEW_LEEWAY,
                options={"require": _REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenVerificationError(f"{self.provider_name}: id token expired") from exc
        except jwt.ImmatureSignatureError as exc:
            raise TokenVerificationError(f"{self.provider_name}: id token issued in the future") from exc
        except jwt.InvalidAudienceError as exc:
            raise TokenVerificationError(f"{self.provider_name}: invalid audience") from exc
        except jwt.InvalidIssuerError as exc:
            raise TokenVerificationError(f"{self.provider_name}: invalid issuer") from exc
        except jwt.InvalidSignatureError as exc:
            raise TokenVerificationError(f"{self.provider_name}: invalid signature") from exc
        except jwt.PyJWTError as exc:
            raise TokenVerificationError(f"{self.provider_name}: invalid id token: {exc}") from exc

        subject = claims.get("sub")
        if not isinstance(subject, str) or not subject:
            raise TokenVerificationError(f"{self.provider_name}: id token missing subject")
        if nonce is not None and claims.get("nonce", "") != nonce:
            raise TokenVerificationError(f"{self.provider_name}: invalid nonce")
        if email and claims.get("email") != email:
            raise TokenVerificationError(f"{self.provider_name}: invalid email")
        return claims

    def public_key(self, kid: str) -> Any:
        key = self._key_cache.get(kid)
        if key is not None:
            return key

        # Use the just-fetched set; its lease may already have lapsed (max-age=0, past Expires).
        key = self.refresh_public_keys().get(kid)
        if key is None:
            raise TokenVerificationError(f"{self.provider_name}: public key id '{kid}' not found")
        return key

    def refresh_public_keys(self) -> dict[str, Any]:
        """Fetch the published key set, cache every key in it and return it."""
        try:
            response = self._http.get(self._certs_url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ProviderExchangeError(f"{self.provider_name}: failed to fetch public keys: {exc}") from exc

        keys = self.parse_public_keys(response)
        expires_at = self.key_lease_expiry(response)
        for kid, key in keys.items():
            self._key_cache.add(kid, key, expires_at)

        logger.info(
            "provider.keys_refreshed provider=%s keys=%s expires_at=%s",
            self.provider_name,
            len(keys),
            expires_at.isoformat(),
        )
        return keys

    def _log_subject(self, subject: str) -> str:
        return subject_handle(subject)


def _describe_error_body(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or "empty body"

    if isinstance(body, dict) and "error" in body:
        description = body.get("error_description")
        return f"{body['error']}: {description}" if description else str(body["error"])
    return response.text[:200]


__all__ = [
    "CLOCK_SKEW_LEEWAY",
    "DEFAULT_KEY_LEASE",
    "OIDCProvider",
    "TokenResponse",
]
