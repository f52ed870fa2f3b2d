from __future__ import annotations

import threading
from datetime import datetime
from typing import Any, Dict, List, Optional

from temp_mailbox.models.user_account import UserAccount, utc_now
from temp_mailbox.repository.base import RecordConflictError


class InMemoryAccountRepository:
    """内存版用户仓储，用于测试；与 SqlAccountRepository 满足同一接口"""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._rows: Dict[int, Dict[str, Any]] = {}
        self._next_id = 1

    def create(self, account: UserAccount) -> UserAccount:
        with self._lock:
            for row in self._rows.values():
                if row["email"] == account.email or row["username"] == account.username:
                    raise RecordConflictError("create account: unique constraint violated")
            account.id = self._next_id
            self._next_id += 1
            now = utc_now()
            account.created_at = now
            account.updated_at = now
            self._rows[account.id] = account.model_dump()
            return account

    def get_by_id(self, account_id: int) -> Optional[UserAccount]:
        return self._find(lambda row: row["id"] == account_id)

    def get_by_email(self, email: str) -> Optional[UserAccount]:
        return self._find(lambda row: row["email"] == email)

    def get_by_username(self, username: str) -> Optional[UserAccount]:
        return self._find(lambda row: row["username"] == username)

    def update(self, account: UserAccount) -> None:
        account.updated_at = utc_now()
        with self._lock:
            if account.id in self._rows:
                self._rows[account.id] = account.model_dump()

    def delete(self, account_id: int) -> None:
        self._update_fields(account_id, deleted_at=utc_now())

    def list(self, offset: int, limit: int) -> List[UserAccount]:
        with self._lock:
            rows = [row for row in self._rows.values() if row["deleted_at"] is None]
        rows.sort(key=lambda row: (row["created_at"], row["id"]), reverse=True)
        return [UserAccount(**row) for row in rows[offset:offset + limit]]

    def count(self) -> int:
        with self._lock:
            return sum(1 for row in self._rows.values() if row["deleted_at"] is None)

    def exists(self, account_id: int) -> bool:
        return self.get_by_id(account_id) is not None

    def exists_by_email(self, email: str) -> bool:
        return self.get_by_email(email) is not None

    def exists_by_username(self, username: str) -> bool:
        return self.get_by_username(username) is not None

    def update_password(self, account_id: int, password_hash: str) -> None:
        self._update_fields(account_id, password_hash=password_hash)

    def update_last_login(self, account_id: int) -> None:
        self._update_fields(account_id, last_login_at=utc_now())

    def set_password_reset_token(
        self, account_id: int, token: str, expiry: Optional[datetime]
    ) -> None:
        self._update_fields(
            account_id, password_reset_token=token, password_reset_expiry=expiry
        )

    def clear_password_reset_token(self, account_id: int) -> None:
        self._update_fields(
            account_id, password_reset_token=None, password_reset_expiry=None
        )

    def activate(self, account_id: int) -> None:
        self._update_fields(account_id, is_active=True)

    def deactivate(self, account_id: int) -> None:
        self._update_fields(account_id, is_active=False)

    def _find(self, predicate) -> Optional[UserAccount]:
        with self._lock:
            for row in self._rows.values():
                if row["deleted_at"] is None and predicate(row):
                    return UserAccount(**row)
        return None

    def _update_fields(self, account_id: int, **values: Any) -> None:
        with self._lock:
            row = self._rows.get(account_id)
            if row is None or row["deleted_at"] is not None:
                return
            row.update(values)
            row["updated_at"] = utc_now()
