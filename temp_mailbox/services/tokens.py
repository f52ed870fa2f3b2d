"""JWT 会话令牌服务

签发、校验、轮换两类令牌（access / refresh），两者共用同一套声明结构，
通过 ``jti`` 前缀 ``<kind>_<user_id>_`` 区分令牌类型。
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
from pydantic import BaseModel, ValidationError

from temp_mailbox.services.errors import InternalError, InvalidTokenError

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"

SIGNING_ALGORITHM = "HS256"
# 只接受 HMAC 家族的签名算法
ALLOWED_ALGORITHMS = ["HS256", "HS384", "HS512"]

BEARER_PREFIX = "Bearer "


class TokenClaims(BaseModel):
    user_id: int
    username: str
    email: str
    iss: str = ""
    sub: str
    iat: int
    nbf: int
    exp: int
    jti: str


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int


class TokenService:
    def __init__(
        self,
        secret_key: str,
        access_token_ttl: int,
        refresh_token_ttl: int,
        issuer: str,
    ) -> None:
        """
        Args:
            secret_key: 签名密钥
            access_token_ttl: 访问令牌有效期（分钟），<= 0 时签发即过期
            refresh_token_ttl: 刷新令牌有效期（分钟）
            issuer: 签发者标识
        """
        self._secret_key = secret_key
        self.access_token_ttl = timedelta(minutes=access_token_ttl)
        self.refresh_token_ttl = timedelta(minutes=refresh_token_ttl)
        self.issuer = issuer

    def issue(self, user_id: int, username: str, email: str) -> TokenPair:
        """生成访问令牌和刷新令牌"""
        now = datetime.now(timezone.utc)
        access_token = self._generate_token(
            user_id, username, email, now, now + self.access_token_ttl, ACCESS_TOKEN
        )
        refresh_token = self._generate_token(
            user_id, username, email, now, now + self.refresh_token_ttl, REFRESH_TOKEN
        )
        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=int(self.access_token_ttl.total_seconds()),
        )

    def validate_access(self, token: str) -> TokenClaims:
        return self._validate_token(token, ACCESS_TOKEN)

    def validate_refresh(self, token: str) -> TokenClaims:
        return self._validate_token(token, REFRESH_TOKEN)

    def rotate(self, refresh_token: str) -> TokenPair:
        """使用刷新令牌换取新的令牌对

        旧令牌不会被吊销，在自然过期前仍然有效。
        """
        claims = self.validate_refresh(refresh_token)
        return self.issue(claims.user_id, claims.username, claims.email)

    def _generate_token(
        self,
        user_id: int,
        username: str,
        email: str,
        issued_at: datetime,
        expires_at: datetime,
        token_type: str,
    ) -> str:
        issued_ts = int(issued_at.timestamp())
        payload = {
            "user_id": user_id,
            "username": username,
            "email": email,
            "iss": self.issuer,
            "sub": f"user_{user_id}",
            "iat": issued_ts,
            "nbf": issued_ts,
            "exp": int(expires_at.timestamp()),
            "jti": f"{token_type}_{user_id}_{issued_ts}",
        }
        try:
            return jwt.encode(payload, self._secret_key, algorithm=SIGNING_ALGORITHM)
        except (jwt.PyJWTError, TypeError, ValueError) as exc:
            raise InternalError(f"failed to sign {token_type} token: {exc}") from exc

    def _validate_token(self, token: str, expected_type: str) -> TokenClaims:
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=ALLOWED_ALGORITHMS,
                options={"require": ["exp", "iat", "nbf", "jti"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise InvalidTokenError("token has expired") from exc
        except jwt.PyJWTError as exc:
            raise InvalidTokenError(f"token parsing failed: {exc}") from exc

        try:
            claims = TokenClaims.model_validate(payload)
        except ValidationError as exc:
            raise InvalidTokenError("invalid token claims") from exc

        expected_prefix = f"{expected_type}_{claims.user_id}_"
        if not claims.jti.startswith(expected_prefix):
            raise InvalidTokenError("token type mismatch")
        return claims


def extract_bearer_token(auth_header: str | None) -> str:
    """从 Authorization 头部提取令牌，格式不符时返回空串"""
    if auth_header and len(auth_header) > len(BEARER_PREFIX) and auth_header.startswith(BEARER_PREFIX):
        return auth_header[len(BEARER_PREFIX):]
    return ""
