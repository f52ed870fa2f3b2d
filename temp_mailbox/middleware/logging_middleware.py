"""
HTTP 请求日志中间件

记录所有 HTTP 请求的详细信息，包括：
- 请求方法和路径
- 请求 body（密码、令牌字段脱敏）
- 响应状态
- 处理时间
"""
import json
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from temp_mailbox.utils.logging_config import ACCESS_LOGGER_NAME, get_logger

access_logger = get_logger(ACCESS_LOGGER_NAME)
logger = get_logger(__name__)

SENSITIVE_FIELDS = {"password", "current_password", "new_password", "refresh_token", "access_token"}
MASK = "***MASKED***"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """记录所有 HTTP 请求的中间件"""

    def __init__(self, app: ASGIApp):
        super().__init__(app)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()
        client = request.client.host if request.client else "unknown"

        body = None
        if request.method in ["POST", "PUT", "PATCH"]:
            body_bytes = await request.body()
            if body_bytes:
                try:
                    body = mask_sensitive_fields(json.loads(body_bytes.decode("utf-8")))
                except (json.JSONDecodeError, UnicodeDecodeError):
                    body = f"<binary data: {len(body_bytes)} bytes>"

        logger.info(f"[REQUEST] {request.method} {request.url.path} | Client: {client}")
        if body is not None:
            logger.info(
                f"[REQUEST BODY] {request.method} {request.url.path} | "
                f"Body: {json.dumps(body, ensure_ascii=False)}"
            )

        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.time() - start_time
            logger.error(
                f"[RESPONSE] {request.method} {request.url.path} | "
                f"Status: 500 (Exception) | "
                f"Duration: {duration:.3f}s | "
                f"Error: {str(e)}"
            )
            raise

        duration = time.time() - start_time
        logger.info(
            f"[RESPONSE] {request.method} {request.url.path} | "
            f"Status: {response.status_code} | "
            f"Duration: {duration:.3f}s"
        )
        access_logger.info(
            f"{client} {request.method} {request.url.path} {response.status_code} {duration:.3f}s"
        )
        return response


def mask_sensitive_fields(data):
    """隐藏敏感字段（如密码、令牌）"""
    if not isinstance(data, dict):
        return data

    masked = data.copy()
    for key in masked:
        if key.lower() in SENSITIVE_FIELDS:
            masked[key] = MASK
        elif isinstance(masked[key], dict):
            masked[key] = mask_sensitive_fields(masked[key])
    return masked
