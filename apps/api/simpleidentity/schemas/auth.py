"""Authentication schemas."""

from enum import Enum
from typing import NewType

from pydantic import BaseModel, Field

AccountID = NewType("AccountID", str)


class ProviderType(str, Enum):
    GUEST = "guest"
    GOOGLE = "google"
    APPLE = "apple"


class AuthenticateInput(BaseModel):
    """Per-call authentication request; never persisted."""

    provider_type: ProviderType
    auth_data: dict[str, str] = Field(default_factory=dict)


class AuthenticateOutput(BaseModel):
    account_id: str = Field(min_length=1)
    is_new: bool = False


class AuthenticateRequest(BaseModel):
    """HTTP body for the authenticate endpoint.

    ``provider_type`` stays a plain string so unknown providers reach the
    registry and are reported as ``PROVIDER_NOT_FOUND`` instead of failing
    request validation.
    """

    provider_type: str = Field(min_length=1)
    auth_data: dict[str, str] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    status: str
    version: str
