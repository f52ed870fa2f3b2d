from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Protocol, runtime_checkable

from temp_mailbox.models.user_account import UserAccount


class RepositoryError(Exception):
    """存储层错误"""


class RecordConflictError(RepositoryError):
    """违反唯一约束（邮箱或用户名重复）"""


@runtime_checkable
class AccountRepository(Protocol):
    """用户仓储接口

    查询方法在记录不存在时返回 None（或 False），不抛异常；
    其它存储层失败抛出 RepositoryError。软删除的记录对所有查询不可见。
    仓储必须在存储层保证 email、username 唯一。
    """

    # 基础 CRUD 操作
    def create(self, account: UserAccount) -> UserAccount: ...

    def get_by_id(self, account_id: int) -> Optional[UserAccount]: ...

    def get_by_email(self, email: str) -> Optional[UserAccount]: ...

    def get_by_username(self, username: str) -> Optional[UserAccount]: ...

    def update(self, account: UserAccount) -> None: ...

    def delete(self, account_id: int) -> None: ...

    # 查询操作
    def list(self, offset: int, limit: int) -> List[UserAccount]: ...

    def count(self) -> int: ...

    def exists(self, account_id: int) -> bool: ...

    def exists_by_email(self, email: str) -> bool: ...

    def exists_by_username(self, username: str) -> bool: ...

    # 认证相关
    def update_password(self, account_id: int, password_hash: str) -> None: ...

    def update_last_login(self, account_id: int) -> None: ...

    def set_password_reset_token(
        self, account_id: int, token: str, expiry: Optional[datetime]
    ) -> None: ...

    def clear_password_reset_token(self, account_id: int) -> None: ...

    # 状态管理
    def activate(self, account_id: int) -> None: ...

    def deactivate(self, account_id: int) -> None: ...
