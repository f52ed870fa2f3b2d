"""Database models and configuration"""

from temp_mailbox.models.db import create_db_engine, get_session, init_db
from temp_mailbox.models.user_account import AccountView, UserAccount, utc_now

__all__ = [
    # Database
    "create_db_engine",
    "init_db",
    "get_session",
    # Models
    "UserAccount",
    "AccountView",
    "utc_now",
]
