import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from temp_mailbox.repository.memory import InMemoryAccountRepository  # noqa: E402
from temp_mailbox.services.account_service import AccountService  # noqa: E402
from temp_mailbox.services.passwords import PasswordCodec  # noqa: E402
from temp_mailbox.services.tokens import TokenService  # noqa: E402

TEST_SECRET = "test-secret-key-for-temp-mailbox-0123456789"
TEST_ISSUER = "temp-mailbox-test"


@pytest.fixture
def fast_codec():
    # 低成本 bcrypt，加快测试
    return PasswordCodec(rounds=4)


@pytest.fixture
def token_service():
    return TokenService(
        secret_key=TEST_SECRET,
        access_token_ttl=15,
        refresh_token_ttl=60 * 24 * 7,
        issuer=TEST_ISSUER,
    )


@pytest.fixture
def memory_repo():
    return InMemoryAccountRepository()


@pytest.fixture
def account_service(memory_repo, token_service, fast_codec):
    return AccountService(
        repository=memory_repo,
        token_service=token_service,
        password_codec=fast_codec,
    )
