"""User account repositories"""

from temp_mailbox.repository.base import (
    AccountRepository,
    RecordConflictError,
    RepositoryError,
)
from temp_mailbox.repository.memory import InMemoryAccountRepository
from temp_mailbox.repository.sql import SqlAccountRepository

__all__ = [
    "AccountRepository",
    "RepositoryError",
    "RecordConflictError",
    "SqlAccountRepository",
    "InMemoryAccountRepository",
]
