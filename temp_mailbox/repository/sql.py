from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator, List, Optional

from sqlalchemy import func
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, col, select

from temp_mailbox.models.db import get_session
from temp_mailbox.models.user_account import UserAccount, utc_now
from temp_mailbox.repository.base import RecordConflictError, RepositoryError


def _alive():
    return col(UserAccount.deleted_at).is_(None)


class SqlAccountRepository:
    """基于 SQLModel 的用户仓储实现，engine 由构造方注入"""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        try:
            with get_session(self._engine) as session:
                yield session
        except IntegrityError as exc:
            raise RecordConflictError(f"{operation}: unique constraint violated") from exc
        except SQLAlchemyError as exc:
            raise RepositoryError(f"{operation}: {exc}") from exc

    def create(self, account: UserAccount) -> UserAccount:
        with self._session("create account") as session:
            session.add(account)
            session.commit()
            session.refresh(account)
            return account

    def get_by_id(self, account_id: int) -> Optional[UserAccount]:
        with self._session("get account by id") as session:
            return session.exec(
                select(UserAccount).where(UserAccount.id == account_id, _alive())
            ).first()

    def get_by_email(self, email: str) -> Optional[UserAccount]:
        with self._session("get account by email") as session:
            return session.exec(
                select(UserAccount).where(UserAccount.email == email, _alive())
            ).first()

    def get_by_username(self, username: str) -> Optional[UserAccount]:
        with self._session("get account by username") as session:
            return session.exec(
                select(UserAccount).where(UserAccount.username == username, _alive())
            ).first()

    def update(self, account: UserAccount) -> None:
        account.updated_at = utc_now()
        with self._session("update account") as session:
            session.merge(account)
            session.commit()

    def delete(self, account_id: int) -> None:
        # 软删除
        self._update_fields("delete account", account_id, deleted_at=utc_now())

    def list(self, offset: int, limit: int) -> List[UserAccount]:
        with self._session("list accounts") as session:
            statement = (
                select(UserAccount)
                .where(_alive())
                .order_by(col(UserAccount.created_at).desc(), col(UserAccount.id).desc())
                .offset(offset)
                .limit(limit)
            )
            return list(session.exec(statement).all())

    def count(self) -> int:
        with self._session("count accounts") as session:
            return session.exec(
                select(func.count()).select_from(UserAccount).where(_alive())
            ).one()

    def exists(self, account_id: int) -> bool:
        return self._exists("check account", UserAccount.id == account_id)

    def exists_by_email(self, email: str) -> bool:
        return self._exists("check email", UserAccount.email == email)

    def exists_by_username(self, username: str) -> bool:
        return self._exists("check username", UserAccount.username == username)

    def update_password(self, account_id: int, password_hash: str) -> None:
        self._update_fields("update password", account_id, password_hash=password_hash)

    def update_last_login(self, account_id: int) -> None:
        self._update_fields("update last login", account_id, last_login_at=utc_now())

    def set_password_reset_token(
        self, account_id: int, token: str, expiry: Optional[datetime]
    ) -> None:
        self._update_fields(
            "set password reset token",
            account_id,
            password_reset_token=token,
            password_reset_expiry=expiry,
        )

    def clear_password_reset_token(self, account_id: int) -> None:
        self._update_fields(
            "clear password reset token",
            account_id,
            password_reset_token=None,
            password_reset_expiry=None,
        )

    def activate(self, account_id: int) -> None:
        self._update_fields("activate account", account_id, is_active=True)

    def deactivate(self, account_id: int) -> None:
        self._update_fields("deactivate account", account_id, is_active=False)

    def _exists(self, operation: str, condition: Any) -> bool:
        with self._session(operation) as session:
            found = session.exec(
                select(UserAccount.id).where(condition, _alive())
            ).first()
            return found is not None

    def _update_fields(self, operation: str, account_id: int, **values: Any) -> None:
        """按 id 更新指定字段，记录不存在时不做任何操作"""
        with self._session(operation) as session:
            account = session.exec(
                select(UserAccount).where(UserAccount.id == account_id, _alive())
            ).first()
            if account is None:
                return
            for key, value in values.items():
                setattr(account, key, value)
            account.updated_at = utc_now()
            session.add(account)
            session.commit()
