from __future__ import annotations

from typing import List, Tuple

from pydantic import BaseModel

from temp_mailbox.models.user_account import AccountView, UserAccount
from temp_mailbox.repository.base import (
    AccountRepository,
    RecordConflictError,
    RepositoryError,
)
from temp_mailbox.services.errors import (
    DuplicateEmailError,
    DuplicateUsernameError,
    InternalError,
    InvalidCredentialsError,
    NotFoundError,
)
from temp_mailbox.services.passwords import PasswordCodec
from temp_mailbox.services.tokens import TokenPair, TokenService
from temp_mailbox.utils.logging_config import get_logger

logger = get_logger(__name__)


class LoginResult(BaseModel):
    user: AccountView
    tokens: TokenPair


class AccountService:
    """用户账户服务

    组合仓储、密码编解码与令牌服务，负责注册、登录、资料维护等业务规则。
    服务本身无可变状态，可在多个请求线程中并发调用。
    """

    def __init__(
        self,
        repository: AccountRepository,
        token_service: TokenService,
        password_codec: PasswordCodec | None = None,
    ) -> None:
        self.repository = repository
        self.token_service = token_service
        self.password_codec = password_codec or PasswordCodec()

    # ---- 认证相关 ----

    def register(
        self,
        username: str,
        email: str,
        password: str,
        first_name: str = "",
        last_name: str = "",
    ) -> AccountView:
        """用户注册

        Raises:
            DuplicateEmailError: 邮箱已被注册
            DuplicateUsernameError: 用户名已被占用
            WeakPasswordError: 密码强度不足
        """
        if self._call("check email", self.repository.exists_by_email, email):
            raise DuplicateEmailError("email already registered")
        if self._call("check username", self.repository.exists_by_username, username):
            raise DuplicateUsernameError("username already taken")

        password_hash = self.password_codec.hash(password)
        account = UserAccount(
            username=username,
            email=email,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            is_active=True,
        )

        try:
            account = self.repository.create(account)
        except RecordConflictError as exc:
            # 并发注册时由存储层唯一约束兜底
            if self._call("check username", self.repository.exists_by_username, username):
                raise DuplicateUsernameError("username already taken") from exc
            raise DuplicateEmailError("email already registered") from exc
        except RepositoryError as exc:
            raise InternalError(f"create account failed: {exc}") from exc

        logger.info(f"Account registered: id={account.id}, username={username}")
        return account.to_view()

    def login(self, email: str, password: str) -> LoginResult:
        """用户登录

        邮箱不存在、账户已停用、密码错误均返回同一个 InvalidCredentialsError，
        且都会做一次 bcrypt 校验，耗时上不可区分。
        """
        account = self._call("get account by email", self.repository.get_by_email, email)
        if account is None or not account.is_active:
            self.password_codec.verify_dummy(password)
            raise InvalidCredentialsError("invalid email or password")
        if not self.password_codec.verify(account.password_hash, password):
            raise InvalidCredentialsError("invalid email or password")

        tokens = self.token_service.issue(account.id, account.username, account.email)
        self._record_last_login(account.id)
        return LoginResult(user=account.to_view(), tokens=tokens)

    def refresh_tokens(self, refresh_token: str) -> TokenPair:
        return self.token_service.rotate(refresh_token)

    # ---- 用户管理 ----

    def get_profile(self, account_id: int) -> AccountView:
        return self._get_existing(account_id).to_view()

    def get_account(self, account_id: int) -> AccountView:
        return self.get_profile(account_id)

    def update_profile(
        self,
        account_id: int,
        first_name: str = "",
        last_name: str = "",
        avatar: str = "",
        timezone: str = "",
        language: str = "",
    ) -> AccountView:
        """更新用户资料

        整体覆盖五个资料字段，未提供的字段会被置为空串。
        """
        account = self._get_existing(account_id)
        account.first_name = first_name
        account.last_name = last_name
        account.avatar = avatar
        account.timezone = timezone
        account.language = language

        self._call("update account", self.repository.update, account)
        return account.to_view()

    def change_password(
        self, account_id: int, current_password: str, new_password: str
    ) -> None:
        """修改密码

        Raises:
            NotFoundError: 用户不存在
            InvalidCredentialsError: 当前密码错误
            WeakPasswordError: 新密码强度不足
        """
        account = self._get_existing(account_id)
        if not self.password_codec.verify(account.password_hash, current_password):
            raise InvalidCredentialsError("current password is incorrect")

        password_hash = self.password_codec.hash(new_password)
        self._call("update password", self.repository.update_password, account_id, password_hash)
        logger.info(f"Password changed: id={account_id}")

    def list_accounts(self, offset: int, limit: int) -> Tuple[List[AccountView], int]:
        """分页查询用户列表，总数与分页分别查询，不保证两者一致"""
        accounts = self._call("list accounts", self.repository.list, offset, limit)
        total = self._call("count accounts", self.repository.count)
        return [account.to_view() for account in accounts], total

    # ---- 账户管理 ----

    def activate(self, account_id: int) -> None:
        self._ensure_exists(account_id)
        self._call("activate account", self.repository.activate, account_id)
        logger.info(f"Account activated: id={account_id}")

    def deactivate(self, account_id: int) -> None:
        self._ensure_exists(account_id)
        self._call("deactivate account", self.repository.deactivate, account_id)
        logger.info(f"Account deactivated: id={account_id}")

    # ---- 内部方法 ----

    def _record_last_login(self, account_id: int) -> None:
        """尽力更新最后登录时间

        失败只记录日志，不影响登录结果。
        """
        try:
            self.repository.update_last_login(account_id)
        except RepositoryError as exc:
            logger.warning(f"Failed to update last login for account {account_id}: {exc}")

    def _get_existing(self, account_id: int) -> UserAccount:
        account = self._call("get account", self.repository.get_by_id, account_id)
        if account is None:
            raise NotFoundError("user not found")
        return account

    def _ensure_exists(self, account_id: int) -> None:
        if not self._call("check account", self.repository.exists, account_id):
            raise NotFoundError("user not found")

    @staticmethod
    def _call(operation: str, func, *args):
        """调用仓储方法，存储层错误包装为 InternalError"""
        try:
            return func(*args)
        except RepositoryError as exc:
            logger.error(f"{operation} failed: {exc}")
            raise InternalError(f"{operation} failed") from exc
