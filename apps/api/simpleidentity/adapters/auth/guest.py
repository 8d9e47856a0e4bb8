"""Guest provider for anonymous, per-device accounts."""

from collections.abc import Mapping

from simpleidentity.adapters.auth.base import AuthProvider, AuthResult, require_fields
from simpleidentity.domain.errors import MissingRequiredAuthDataError

GUEST_ID_FIELD = "id"


class GuestProvider(AuthProvider):
    """Trusts the client-generated device identifier as the subject id.

    Expected auth data:
    - ``id``: opaque identifier generated and persisted by the client
    """

    def authenticate(self, data: Mapping[str, str]) -> AuthResult:
        guest_id = require_fields(data, GUEST_ID_FIELD)[GUEST_ID_FIELD].strip()
        if not guest_id:
            raise MissingRequiredAuthDataError(GUEST_ID_FIELD)

        return AuthResult(subject_id=guest_id)


__all__ = ["GUEST_ID_FIELD", "GuestProvider"]
