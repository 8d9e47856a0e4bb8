"""Fake OIDC provider backend served through httpx.MockTransport."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from functools import lru_cache
import json
from typing import Any
from urllib.parse import parse_qsl

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.x509.oid import NameOID
import httpx
import jwt
from jwt.algorithms import RSAAlgorithm

TOKEN_URL = "https://provider.test/token"
CERTS_URL = "https://provider.test/certs"


@lru_cache(maxsize=4)
def rsa_private_key(name: str = "primary") -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


def ec_private_key_pem() -> str:
    key = ec.generate_private_key(ec.SECP256R1())
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")


def public_key_pem(private_key: rsa.RSAPrivateKey) -> str:
    return private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("utf-8")


def certificate_pem(private_key: rsa.RSAPrivateKey) -> str:
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "provider.test")])
    now = datetime.now(UTC)
    certificate = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=1))
        .sign(private_key, hashes.SHA256())
    )
    return certificate.public_bytes(serialization.Encoding.PEM).decode("utf-8")


class FakeOIDCBackend:
    """Token and certs endpoints for one provider.

    ``certs_format`` is ``"pem"`` for a Google-style ``{kid: PEM}`` map and
    ``"jwks"`` for an Apple-style JWK set. Each test sets ``id_token`` (usually
    via ``sign``) before driving the provider.
    """

    def __init__(self, *, issuer: str, audience: str, kid: str = "key-1", certs_format: str = "pem") -> None:
        self.issuer = issuer
        self.audience = audience
        self.kid = kid
        self.certs_format = certs_format
        self.private_key = rsa_private_key()
        self.id_token = ""
        self.token_status = 200
        self.token_body: Any = None
        self.certs_status = 200
        self.certs_headers: dict[str, str] = {"Cache-Control": "public, max-age=600"}
        self.extra_jwks: list[dict[str, Any]] = []
        self.token_requests: list[dict[str, str]] = []
        self.certs_requests = 0
        self.raise_on_token: Exception | None = None

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))

    def sign(
        self,
        *,
        subject: str = "subject-123",
        kid: str | None = None,
        private_key: rsa.RSAPrivateKey | None = None,
        **claim_overrides: Any,
    ) -> str:
        now = datetime.now(UTC)
        claims: dict[str, Any] = {
            "iss": self.issuer,
            "aud": self.audience,
            "sub": subject,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(minutes=10)).timestamp()),
        }
        claims.update(claim_overrides)
        claims = {name: value for name, value in claims.items() if value is not None}
        token = jwt.encode(
            claims,
            private_key if private_key is not None else self.private_key,
            algorithm="RS256",
            headers={"kid": kid if kid is not None else self.kid},
        )
        self.id_token = token
        return token

    def handler(self, request: httpx.Request) -> httpx.Response:
        if str(request.url) == TOKEN_URL:
            self.token_requests.append(dict(parse_qsl(request.content.decode("utf-8"), keep_blank_values=True)))
            if self.raise_on_token is not None:
                raise self.raise_on_token
            body = self.token_body if self.token_body is not None else {
                "access_token": "access",
                "token_type": "Bearer",
                "expires_in": 3600,
                "id_token": self.id_token,
            }
            return httpx.Response(self.token_status, json=body)

        if str(request.url) == CERTS_URL:
            self.certs_requests += 1
            if self.certs_status != 200:
                return httpx.Response(self.certs_status, text="unavailable")
            return httpx.Response(200, content=json.dumps(self._certs_body()), headers=self.certs_headers)

        return httpx.Response(404)

    def _certs_body(self) -> dict[str, Any]:
        if self.certs_format == "jwks":
            jwk = RSAAlgorithm.to_jwk(self.private_key.public_key(), as_dict=True)
            jwk.update({"kid": self.kid, "alg": "RS256", "use": "sig"})
            return {"keys": [jwk, *self.extra_jwks]}
        return {self.kid: certificate_pem(self.private_key)}


__all__ = [
    "CERTS_URL",
    "FakeOIDCBackend",
    "TOKEN_URL",
    "certificate_pem",
    "ec_private_key_pem",
    "public_key_pem",
    "rsa_private_key",
]
