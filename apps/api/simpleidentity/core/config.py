"""Application configuration."""

from functools import lru_cache

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_CERTS_URL = "https://www.googleapis.com/oauth2/v1/certs"
GOOGLE_ISSUER = "https://accounts.google.com"
APPLE_TOKEN_URL = "https://appleid.apple.com/auth/token"
APPLE_CERTS_URL = "https://appleid.apple.com/auth/keys"
APPLE_ISSUER = "https://appleid.apple.com"


class GoogleCredentials(BaseModel):
    """OAuth client and ID token expectations for Google sign-in."""

    client_id: str = Field(min_length=1)
    client_secret: str = Field(min_length=1)
    token_url: str = GOOGLE_TOKEN_URL
    certs_url: str = GOOGLE_CERTS_URL
    expected_issuer: str = GOOGLE_ISSUER
    expected_audience: str = ""

    @model_validator(mode="after")
    def _default_audience(self) -> "GoogleCredentials":
        if not self.expected_audience:
            self.expected_audience = self.client_id
        return self


class AppleCredentials(BaseModel):
    """Sign in with Apple client configuration.

    Either a static ``client_secret`` or the ``team_id``/``key_id``/``private_key``
    triple used to sign client-secret JWTs must be present.
    """

    client_id: str = Field(min_length=1)
    client_secret: str = ""
    team_id: str = ""
    key_id: str = ""
    private_key: str = ""
    token_url: str = APPLE_TOKEN_URL
    certs_url: str = APPLE_CERTS_URL
    expected_issuer: str = APPLE_ISSUER
    expected_audience: str = ""

    @model_validator(mode="after")
    def _check_secret_source(self) -> "AppleCredentials":
        if not self.expected_audience:
            self.expected_audience = self.client_id
        if self.client_secret:
            return self
        if not (self.team_id and self.key_id and self.private_key):
            raise ValueError("apple credentials need client_secret or team_id, key_id and private_key")
        return self

    @property
    def signs_client_secret(self) -> bool:
        return bool(self.team_id and self.key_id and self.private_key)


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables."""

    version: str = "dev"
    http_timeout_s: float = Field(default=2.0, gt=0)
    guest_enabled: bool = True
    google: GoogleCredentials | None = None
    apple: AppleCredentials | None = None

    model_config = SettingsConfigDict(
        env_prefix="SIMPLEIDENTITY_",
        env_nested_delimiter="__",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
