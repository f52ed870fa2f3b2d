from fastapi import Request, status
from fastapi.responses import JSONResponse

from temp_mailbox.api.schemas import ErrorResponse
from temp_mailbox.services.errors import (
    AccountServiceError,
    DuplicateEmailError,
    DuplicateUsernameError,
    InternalError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
    WeakPasswordError,
)
from temp_mailbox.utils.logging_config import get_logger

logger = get_logger(__name__)

STATUS_BY_ERROR = {
    DuplicateEmailError: status.HTTP_409_CONFLICT,
    DuplicateUsernameError: status.HTTP_409_CONFLICT,
    WeakPasswordError: status.HTTP_400_BAD_REQUEST,
    InvalidCredentialsError: status.HTTP_401_UNAUTHORIZED,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidTokenError: status.HTTP_401_UNAUTHORIZED,
    InternalError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for(exc: AccountServiceError) -> int:
    return STATUS_BY_ERROR.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)


async def account_error_handler(request: Request, exc: AccountServiceError) -> JSONResponse:
    """将服务层错误转换为 {"detail": code, "message": message}"""
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(detail=exc.code, message=exc.message).model_dump(),
    )
