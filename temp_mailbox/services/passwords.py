from __future__ import annotations

import bcrypt

from temp_mailbox.services.errors import InternalError, WeakPasswordError

# 最小密码长度
MIN_PASSWORD_LENGTH = 6
# bcrypt 只接受 72 字节以内的输入
MAX_PASSWORD_BYTES = 72
# bcrypt 算法成本
BCRYPT_COST = 12

_DUMMY_PASSWORD = "dummy-password-for-timing"


class PasswordCodec:
    """密码哈希与校验

    哈希串自带算法与成本信息（``$2b$12$...``），校验时无需额外参数。
    """

    def __init__(self, rounds: int = BCRYPT_COST) -> None:
        self.rounds = rounds
        self._dummy_hash: str | None = None

    def check_strength(self, password: str) -> None:
        if len(password) < MIN_PASSWORD_LENGTH:
            raise WeakPasswordError(
                f"password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise WeakPasswordError(
                f"password must be at most {MAX_PASSWORD_BYTES} bytes"
            )

    def hash(self, password: str) -> str:
        self.check_strength(password)
        salt = bcrypt.gensalt(rounds=self.rounds)
        try:
            return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")
        except ValueError as exc:
            raise InternalError(f"password hashing failed: {exc}") from exc

    def verify(self, hashed: str, candidate: str) -> bool:
        if not hashed:
            return False
        try:
            return bcrypt.checkpw(candidate.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            return False

    def verify_dummy(self, candidate: str) -> None:
        """对固定哈希做一次校验，账户不存在时保持与正常校验相同的耗时"""
        if self._dummy_hash is None:
            self._dummy_hash = self.hash(_DUMMY_PASSWORD)
        self.verify(self._dummy_hash, candidate)
