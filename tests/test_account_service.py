import logging

import pytest

from temp_mailbox.models.user_account import UserAccount
from temp_mailbox.repository.base import RepositoryError
from temp_mailbox.repository.memory import InMemoryAccountRepository
from temp_mailbox.services.account_service import AccountService
from temp_mailbox.services.errors import (
    DuplicateEmailError,
    DuplicateUsernameError,
    InternalError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
    WeakPasswordError,
)
from temp_mailbox.services.passwords import PasswordCodec


class BlindPrecheckRepository(InMemoryAccountRepository):
    """模拟并发注册：存在性预检查看不到已写入的记录"""

    def __init__(self) -> None:
        super().__init__()
        self.blind = True

    def exists_by_email(self, email: str) -> bool:
        return False if self.blind else super().exists_by_email(email)

    def exists_by_username(self, username: str) -> bool:
        return False if self.blind else super().exists_by_username(username)

    def create(self, account: UserAccount) -> UserAccount:
        self.blind = False
        return super().create(account)


class CountingCodec(PasswordCodec):
    def __init__(self) -> None:
        super().__init__(rounds=4)
        self.checks = 0

    def verify(self, hashed: str, candidate: str) -> bool:
        self.checks += 1
        return super().verify(hashed, candidate)


class FailingLastLoginRepository(InMemoryAccountRepository):
    def update_last_login(self, account_id: int) -> None:
        raise RepositoryError("database is locked")


class BrokenRepository(InMemoryAccountRepository):
    def exists_by_email(self, email: str) -> bool:
        raise RepositoryError("connection refused")

    def get_by_id(self, account_id: int):
        raise RepositoryError("connection refused")


def _register(service: AccountService, username="testuser", email="test@example.com", password="password123"):
    return service.register(username=username, email=email, password=password)


def test_account_lifecycle(account_service: AccountService):
    user = _register(account_service)
    assert user.id > 0
    assert user.is_active is True
    assert user.timezone == "UTC"
    assert user.language == "zh-CN"

    with pytest.raises(DuplicateEmailError):
        _register(account_service, username="another")

    result = account_service.login("test@example.com", "password123")
    assert result.user.id == user.id
    assert result.tokens.access_token
    assert result.tokens.refresh_token

    with pytest.raises(InvalidCredentialsError):
        account_service.login("test@example.com", "wrongpassword")

    account_service.change_password(user.id, "password123", "newpassword456")
    with pytest.raises(InvalidCredentialsError):
        account_service.login("test@example.com", "password123")
    assert account_service.login("test@example.com", "newpassword456").user.id == user.id

    items, total = account_service.list_accounts(0, 10)
    assert total == 1
    assert len(items) == 1


def test_register_returns_public_view(account_service: AccountService):
    user = _register(account_service)
    data = user.model_dump()

    assert "password_hash" not in data
    assert "password_reset_token" not in data
    assert "password_reset_expiry" not in data


def test_register_duplicate_username(account_service: AccountService):
    _register(account_service)

    with pytest.raises(DuplicateUsernameError):
        _register(account_service, email="other@example.com")


def test_register_weak_password_writes_nothing(account_service: AccountService, memory_repo):
    with pytest.raises(WeakPasswordError):
        _register(account_service, password="12345")

    assert memory_repo.count() == 0


def test_register_stores_hash_not_password(account_service: AccountService, memory_repo, fast_codec):
    user = _register(account_service)
    stored = memory_repo.get_by_id(user.id)

    assert stored.password_hash != "password123"
    assert fast_codec.verify(stored.password_hash, "password123")


def test_register_race_falls_back_to_storage_constraint(token_service, fast_codec):
    repo = BlindPrecheckRepository()
    service = AccountService(repo, token_service, fast_codec)
    repo.create(UserAccount(username="taken", email="taken@example.com", password_hash="x"))

    repo.blind = True
    with pytest.raises(DuplicateUsernameError):
        _register(service, username="taken", email="new@example.com")

    repo.blind = True
    with pytest.raises(DuplicateEmailError):
        _register(service, username="fresh", email="taken@example.com")


def test_login_unknown_email_is_generic_failure(account_service: AccountService):
    with pytest.raises(InvalidCredentialsError) as unknown:
        account_service.login("nobody@example.com", "password123")

    _register(account_service)
    with pytest.raises(InvalidCredentialsError) as wrong:
        account_service.login("test@example.com", "wrongpassword")

    assert unknown.value.code == wrong.value.code
    assert unknown.value.message == wrong.value.message


def test_login_failures_all_run_a_password_check(token_service):
    codec = CountingCodec()
    service = AccountService(InMemoryAccountRepository(), token_service, codec)
    user = _register(service)
    service.deactivate(user.id)
    codec.checks = 0

    for email, password in [
        ("nobody@example.com", "password123"),
        ("test@example.com", "password123"),
        ("test@example.com", "wrongpassword"),
    ]:
        with pytest.raises(InvalidCredentialsError):
            service.login(email, password)

    assert codec.checks == 3


def test_register_rejects_password_over_bcrypt_limit(account_service: AccountService, memory_repo):
    with pytest.raises(WeakPasswordError):
        _register(account_service, password="p" * 80)
    assert memory_repo.count() == 0


def test_login_records_last_login(account_service: AccountService):
    user = _register(account_service)
    assert user.last_login_at is None

    account_service.login("test@example.com", "password123")

    assert account_service.get_profile(user.id).last_login_at is not None


def test_login_survives_last_login_failure(token_service, fast_codec, caplog):
    service = AccountService(FailingLastLoginRepository(), token_service, fast_codec)
    _register(service)

    with caplog.at_level(logging.WARNING):
        result = service.login("test@example.com", "password123")

    assert result.tokens.access_token
    assert "Failed to update last login" in caplog.text


def test_login_tokens_identify_account(account_service: AccountService, token_service):
    user = _register(account_service)

    result = account_service.login("test@example.com", "password123")
    claims = token_service.validate_access(result.tokens.access_token)

    assert claims.user_id == user.id
    assert claims.username == "testuser"
    assert claims.email == "test@example.com"


def test_deactivated_account_cannot_login(account_service: AccountService):
    user = _register(account_service)

    account_service.deactivate(user.id)
    with pytest.raises(InvalidCredentialsError):
        account_service.login("test@example.com", "password123")
    assert account_service.get_profile(user.id).is_active is False

    account_service.activate(user.id)
    assert account_service.login("test@example.com", "password123").user.is_active is True


def test_activation_requires_existing_account(account_service: AccountService):
    with pytest.raises(NotFoundError):
        account_service.activate(999)
    with pytest.raises(NotFoundError):
        account_service.deactivate(999)


def test_refresh_tokens(account_service: AccountService, token_service):
    _register(account_service)
    tokens = account_service.login("test@example.com", "password123").tokens

    rotated = account_service.refresh_tokens(tokens.refresh_token)

    assert token_service.validate_access(rotated.access_token).username == "testuser"
    with pytest.raises(InvalidTokenError):
        account_service.refresh_tokens(tokens.access_token)


def test_get_profile_not_found(account_service: AccountService):
    with pytest.raises(NotFoundError):
        account_service.get_profile(404)
    with pytest.raises(NotFoundError):
        account_service.get_account(404)


def test_update_profile_replaces_all_fields(account_service: AccountService):
    user = _register(account_service)
    account_service.update_profile(
        user.id,
        first_name="Test",
        last_name="User",
        avatar="https://example.com/a.png",
        timezone="Asia/Shanghai",
        language="en-US",
    )

    updated = account_service.update_profile(user.id, first_name="Only")

    assert updated.first_name == "Only"
    assert updated.last_name == ""
    assert updated.avatar == ""
    assert updated.timezone == ""
    assert updated.language == ""
    assert account_service.get_profile(user.id) == updated


def test_update_profile_not_found(account_service: AccountService):
    with pytest.raises(NotFoundError):
        account_service.update_profile(404, first_name="x")


def test_change_password_failures(account_service: AccountService):
    user = _register(account_service)

    with pytest.raises(NotFoundError):
        account_service.change_password(404, "password123", "newpassword456")
    with pytest.raises(InvalidCredentialsError):
        account_service.change_password(user.id, "wrongpassword", "newpassword456")
    with pytest.raises(WeakPasswordError):
        account_service.change_password(user.id, "password123", "short")

    assert account_service.login("test@example.com", "password123").user.id == user.id


def test_list_accounts_pages_newest_first(account_service: AccountService):
    for idx in range(5):
        _register(account_service, username=f"user{idx}", email=f"user{idx}@example.com")

    first_page, total = account_service.list_accounts(0, 2)
    second_page, _ = account_service.list_accounts(2, 2)
    last_page, _ = account_service.list_accounts(4, 2)

    assert total == 5
    assert [u.username for u in first_page] == ["user4", "user3"]
    assert [u.username for u in second_page] == ["user2", "user1"]
    assert [u.username for u in last_page] == ["user0"]


def test_list_accounts_hides_soft_deleted(account_service: AccountService, memory_repo):
    keep = _register(account_service)
    gone = _register(account_service, username="gone", email="gone@example.com")

    memory_repo.delete(gone.id)

    items, total = account_service.list_accounts(0, 10)
    assert total == 1
    assert [u.id for u in items] == [keep.id]
    with pytest.raises(NotFoundError):
        account_service.get_profile(gone.id)


def test_repository_failures_surface_as_internal(token_service, fast_codec):
    service = AccountService(BrokenRepository(), token_service, fast_codec)

    with pytest.raises(InternalError) as register_error:
        _register(service)
    with pytest.raises(InternalError):
        service.get_profile(1)

    assert isinstance(register_error.value.__cause__, RepositoryError)
