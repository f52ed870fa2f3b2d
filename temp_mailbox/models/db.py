import os
from pathlib import Path

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, Session, create_engine

# ensure models registered
from temp_mailbox.models import user_account  # noqa: F401

# 默认数据库存放在当前工作目录下，可通过 TEMP_MAILBOX_DB_PATH 覆盖
DEFAULT_DB_PATH = Path(os.getenv("TEMP_MAILBOX_DB_PATH", Path.cwd() / "database.db"))
DEFAULT_DATABASE_URL = f"sqlite:///{DEFAULT_DB_PATH}"


def create_db_engine(database_url: str = DEFAULT_DATABASE_URL, echo: bool = False) -> Engine:
    """创建 engine，由调用方持有并注入到仓储实现中"""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, echo=echo, connect_args=connect_args)


def init_db(engine: Engine) -> None:
    """初始化数据库，创建所有表。"""
    SQLModel.metadata.create_all(engine)


def get_session(engine: Engine) -> Session:
    """获取 Session，用于 CRUD 操作"""
    return Session(engine, expire_on_commit=False)
