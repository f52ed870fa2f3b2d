"""
统一的日志配置模块

日志目录结构：
/logs/
└── platform/      # 服务日志
    ├── app.log       # 应用主日志
    ├── error.log     # 错误日志
    └── access.log    # HTTP访问日志
"""
import logging
import os
import sys
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from pathlib import Path
from typing import Optional

# 默认写入当前工作目录下的 logs 目录
DEFAULT_LOG_DIR = Path.cwd() / "logs"
LOG_DIR = Path(os.getenv("TEMP_MAILBOX_LOG_DIR", DEFAULT_LOG_DIR))
PLATFORM_LOG_DIR = LOG_DIR / "platform"

ACCESS_LOGGER_NAME = "temp_mailbox.access"

DETAILED_FORMAT = (
    "%(asctime)s | "
    "PID:%(process)d | "
    "Thread:%(thread)d(%(threadName)s) | "
    "%(levelname)-8s | "
    "%(name)s | "
    "[%(filename)s:%(lineno)d:%(funcName)s] | "
    "%(message)s"
)

SIMPLE_FORMAT = (
    "%(asctime)s | "
    "%(levelname)-8s | "
    "%(name)s | "
    "[%(filename)s:%(lineno)d] | "
    "%(message)s"
)

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# 兼容 "warn" 写法
_LEVEL_ALIASES = {"WARN": "WARNING"}


def setup_logging(
    log_level: str = "INFO",
    log_dir: Optional[Path] = None,
    enable_console: bool = True,
    enable_file: bool = True,
) -> None:
    """配置应用程序的日志系统"""
    log_directory = log_dir or PLATFORM_LOG_DIR
    level_name = _LEVEL_ALIASES.get(log_level.upper(), log_level.upper())
    numeric_level = getattr(logging, level_name, logging.INFO)
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(numeric_level)
    handlers = []
    if enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(logging.Formatter(SIMPLE_FORMAT, DATE_FORMAT))
        handlers.append(console_handler)
    if enable_file:
        log_directory.mkdir(parents=True, exist_ok=True)
        # 应用主日志
        app_handler = RotatingFileHandler(
            log_directory / "app.log",
            maxBytes=50 * 1024 * 1024,
            backupCount=10,
            encoding="utf-8",
        )
        app_handler.setLevel(numeric_level)
        app_handler.setFormatter(logging.Formatter(DETAILED_FORMAT, DATE_FORMAT))
        handlers.append(app_handler)
        # 错误日志
        error_handler = RotatingFileHandler(
            log_directory / "error.log",
            maxBytes=20 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(logging.Formatter(DETAILED_FORMAT, DATE_FORMAT))
        handlers.append(error_handler)
        setup_access_logging(log_directory)
    for handler in handlers:
        root_logger.addHandler(handler)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)
    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized: dir={log_directory}, level={level_name}")


def get_logger(name: str) -> logging.Logger:
    """获取指定名称的logger"""
    return logging.getLogger(name)


def setup_access_logging(log_dir: Optional[Path] = None) -> logging.Logger:
    """配置HTTP访问日志"""
    log_directory = log_dir or PLATFORM_LOG_DIR
    log_directory.mkdir(parents=True, exist_ok=True)
    access_logger = logging.getLogger(ACCESS_LOGGER_NAME)
    access_logger.setLevel(logging.INFO)
    access_logger.propagate = False
    for handler in access_logger.handlers[:]:
        access_logger.removeHandler(handler)
        handler.close()
    access_handler = TimedRotatingFileHandler(
        log_directory / "access.log",
        when="midnight",
        interval=1,
        backupCount=30,
        encoding="utf-8",
    )
    access_handler.setFormatter(logging.Formatter(DETAILED_FORMAT, DATE_FORMAT))
    access_logger.addHandler(access_handler)
    return access_logger


__all__ = [
    "setup_logging",
    "get_logger",
    "setup_access_logging",
    "ACCESS_LOGGER_NAME",
    "LOG_DIR",
    "PLATFORM_LOG_DIR",
]
