"""应用配置

所有配置项均可通过 ``TEMP_MAILBOX_<段>_<字段>`` 形式的环境变量覆盖，例如
``TEMP_MAILBOX_JWT_SECRET``、``TEMP_MAILBOX_DATABASE_URL``。
"""
from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from temp_mailbox.models.db import DEFAULT_DATABASE_URL
from temp_mailbox.utils.logging_config import PLATFORM_LOG_DIR

ENV_PREFIX = "TEMP_MAILBOX_"
DEFAULT_JWT_SECRET = "your-secret-key-change-in-production"
VALID_LOG_LEVELS = {"debug", "info", "warn", "warning", "error"}


class ConfigError(ValueError):
    """配置校验失败"""


class ServerConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix=f"{ENV_PREFIX}SERVER_")

    host: str = "localhost"
    port: int = Field(default=8080, ge=1, le=65535)
    mode: str = "debug"  # debug, release

    @field_validator("mode")
    @classmethod
    def _check_mode(cls, value: str) -> str:
        if value not in ("debug", "release"):
            raise ValueError(f"invalid server mode: {value}")
        return value


class DatabaseConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix=f"{ENV_PREFIX}DATABASE_")

    url: str = DEFAULT_DATABASE_URL
    echo: bool = False

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        if not value:
            raise ValueError("database url must not be empty")
        return value


class JWTConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix=f"{ENV_PREFIX}JWT_")

    secret: str = DEFAULT_JWT_SECRET
    access_token_ttl: int = Field(default=60, gt=0)  # 分钟，1小时
    refresh_token_ttl: int = Field(default=10080, gt=0)  # 分钟，7天
    issuer: str = "temp-mailbox-service"

    @field_validator("secret")
    @classmethod
    def _check_secret(cls, value: str) -> str:
        if not value:
            raise ValueError("jwt secret must not be empty")
        return value


class LogConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix=f"{ENV_PREFIX}LOG_")

    level: str = "info"
    # 根目录由 TEMP_MAILBOX_LOG_DIR 决定
    log_dir: Path = PLATFORM_LOG_DIR
    enable_console: bool = True
    enable_file: bool = True

    @field_validator("level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        value = value.lower()
        if value not in VALID_LOG_LEVELS:
            raise ValueError(f"invalid log level: {value}")
        return value


class AppConfig(BaseModel):
    server: ServerConfig = Field(default_factory=ServerConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    jwt: JWTConfig = Field(default_factory=JWTConfig)
    log: LogConfig = Field(default_factory=LogConfig)

    @model_validator(mode="after")
    def _check_production_secret(self) -> "AppConfig":
        if self.server.mode == "release" and self.jwt.secret == DEFAULT_JWT_SECRET:
            raise ValueError("default jwt secret is not allowed in release mode")
        return self

    @property
    def is_production(self) -> bool:
        return self.server.mode == "release"

    @property
    def server_address(self) -> str:
        return f"{self.server.host}:{self.server.port}"


def load_config() -> AppConfig:
    """从环境变量加载并校验配置

    Raises:
        ConfigError: 配置值非法
    """
    try:
        return AppConfig(
            server=ServerConfig(),
            database=DatabaseConfig(),
            jwt=JWTConfig(),
            log=LogConfig(),
        )
    except ValidationError as exc:
        raise ConfigError(f"invalid configuration: {exc}") from exc
