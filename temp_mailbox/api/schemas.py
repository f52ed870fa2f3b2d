from typing import List

from pydantic import BaseModel, EmailStr, Field, field_validator

from temp_mailbox.models.user_account import AccountView


class RegisterRequest(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    email: EmailStr
    # 密码强度由 PasswordCodec 统一校验
    password: str
    first_name: str = Field(default="", max_length=50)
    last_name: str = Field(default="", max_length=50)

    @field_validator("email")
    @classmethod
    def _check_email_length(cls, value: str) -> str:
        if len(value) > 100:
            raise ValueError("email must be at most 100 characters")
        return value


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1)


class UpdateProfileRequest(BaseModel):
    """资料整体覆盖：未提供的字段按空串处理"""

    first_name: str = Field(default="", max_length=50)
    last_name: str = Field(default="", max_length=50)
    avatar: str = Field(default="", max_length=255)
    timezone: str = Field(default="", max_length=50)
    language: str = Field(default="", max_length=10)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: str


class ChangePasswordResponse(BaseModel):
    changed: bool = True


class AccountListResponse(BaseModel):
    items: List[AccountView]
    total: int
    offset: int
    limit: int


class AccountStatusResponse(BaseModel):
    id: int
    is_active: bool


class ErrorResponse(BaseModel):
    detail: str
    message: str
