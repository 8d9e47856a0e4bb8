"""Authentication routes."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from simpleidentity.core.logging_safety import account_handle, correlation_handle
from simpleidentity.domain.errors import IdentityError, ProviderNotFoundError
from simpleidentity.errors import ApiError
from simpleidentity.routes.dependencies import get_auth_service, get_request_correlation_id
from simpleidentity.schemas.auth import AuthenticateInput, AuthenticateOutput, AuthenticateRequest, ProviderType
from simpleidentity.schemas.error import AuthErrorResponse
from simpleidentity.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])
logger = logging.getLogger(__name__)


@router.post(
    "/authenticate",
    response_model=AuthenticateOutput,
    responses={
        400: {"model": AuthErrorResponse},
        401: {"model": AuthErrorResponse},
        409: {"model": AuthErrorResponse},
        500: {"model": AuthErrorResponse},
        502: {"model": AuthErrorResponse},
    },
)
def authenticate(
    payload: AuthenticateRequest,
    correlation_id: Annotated[str, Depends(get_request_correlation_id)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthenticateOutput:
    # Sync handler: provider round trips block, so FastAPI runs this in its threadpool.
    safe_correlation_id = correlation_handle(correlation_id)
    try:
        provider_type = ProviderType(payload.provider_type)
    except ValueError as exc:
        logger.warning(
            "auth.rejected correlation_id=%s reason=ProviderNotFoundError",
            safe_correlation_id,
        )
        raise ApiError.from_identity_error(ProviderNotFoundError(payload.provider_type)) from exc

    try:
        result = service.authenticate(AuthenticateInput(provider_type=provider_type, auth_data=payload.auth_data))
    except IdentityError as exc:
        logger.warning(
            "auth.rejected correlation_id=%s provider=%s reason=%s",
            safe_correlation_id,
            provider_type.value,
            type(exc).__name__,
        )
        raise ApiError.from_identity_error(exc) from exc

    logger.info(
        "auth.accepted correlation_id=%s provider=%s account_id=%s is_new=%s",
        safe_correlation_id,
        provider_type.value,
        account_handle(result.account_id),
        result.is_new,
    )
    return result
