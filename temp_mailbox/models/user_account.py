from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict
from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    """当前 UTC 时间（带时区），所有入库时间戳统一使用"""
    return datetime.now(timezone.utc)


class UserAccount(SQLModel, table=True):
    """用户账户表

    状态流转：注册后为激活状态，可被停用、再次激活；删除为软删除（deleted_at）。
    """

    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    deleted_at: Optional[datetime] = Field(default=None, index=True)

    # 基本信息
    username: str = Field(index=True, unique=True, max_length=50)
    email: str = Field(index=True, unique=True, max_length=100)
    password_hash: str = Field(max_length=255)

    # 用户状态
    is_active: bool = Field(default=True)

    # 用户资料
    first_name: str = Field(default="", max_length=50)
    last_name: str = Field(default="", max_length=50)
    avatar: str = Field(default="", max_length=255)

    # 认证相关
    last_login_at: Optional[datetime] = None
    password_reset_token: Optional[str] = Field(default=None, max_length=255)
    password_reset_expiry: Optional[datetime] = None

    # 用户设置
    timezone: str = Field(default="UTC", max_length=50)
    language: str = Field(default="zh-CN", max_length=10)

    @property
    def full_name(self) -> str:
        if not self.first_name and not self.last_name:
            return self.username
        return f"{self.first_name} {self.last_name}"

    def is_password_reset_valid(self) -> bool:
        """检查密码重置令牌是否有效"""
        if not self.password_reset_token or self.password_reset_expiry is None:
            return False
        return utc_now() < self.password_reset_expiry

    def to_view(self) -> "AccountView":
        return AccountView.model_validate(self)


class AccountView(BaseModel):
    """对外输出的账户信息（不含密码哈希与重置令牌）"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
    updated_at: datetime
    username: str
    email: str
    is_active: bool
    first_name: str
    last_name: str
    avatar: str
    last_login_at: Optional[datetime] = None
    timezone: str
    language: str
