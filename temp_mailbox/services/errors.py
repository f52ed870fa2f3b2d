"""账户服务错误类型

每种错误带有固定的 ``code``，API 层据此映射 HTTP 状态码，
``message`` 仅用于人类可读的说明。
"""


class AccountServiceError(Exception):
    code = "account_error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class DuplicateEmailError(AccountServiceError):
    code = "email_exists"


class DuplicateUsernameError(AccountServiceError):
    code = "username_exists"


class WeakPasswordError(AccountServiceError):
    code = "weak_password"


class InvalidCredentialsError(AccountServiceError):
    """邮箱不存在、账户停用、密码错误统一使用该错误，避免泄露账户是否存在"""

    code = "invalid_credentials"


class NotFoundError(AccountServiceError):
    code = "user_not_found"


class InvalidTokenError(AccountServiceError):
    code = "invalid_token"


class InternalError(AccountServiceError):
    code = "internal_error"


__all__ = [
    "AccountServiceError",
    "DuplicateEmailError",
    "DuplicateUsernameError",
    "WeakPasswordError",
    "InvalidCredentialsError",
    "NotFoundError",
    "InvalidTokenError",
    "InternalError",
]
