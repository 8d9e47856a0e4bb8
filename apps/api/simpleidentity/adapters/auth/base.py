"""Authentication provider interfaces."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass

from simpleidentity.domain.errors import MissingRequiredAuthDataError


@dataclass(slots=True, frozen=True)
class AuthResult:
    """Provider-verified identity."""

    subject_id: str

    def get_id(self) -> str:
        return self.subject_id


class AuthProvider(ABC):
    """Provider-neutral authentication interface."""

    @abstractmethod
    def authenticate(self, data: Mapping[str, str]) -> AuthResult:
        """Authenticate opaque provider data and return the external subject id."""


def require_fields(data: Mapping[str, str], *fields: str) -> dict[str, str]:
    """Return the requested fields, failing on the first one that is absent."""
    values: dict[str, str] = {}
    for field in fields:
        if field not in data:
            raise MissingRequiredAuthDataError(field)
        values[field] = data[field]
    return values


__all__ = ["AuthProvider", "AuthResult", "require_fields"]
