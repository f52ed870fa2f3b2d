from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from temp_mailbox import __version__
from temp_mailbox.api.errors import account_error_handler
from temp_mailbox.api.router import router as api_router
from temp_mailbox.config import AppConfig, load_config
from temp_mailbox.middleware import RequestLoggingMiddleware
from temp_mailbox.models.db import create_db_engine, init_db
from temp_mailbox.repository.base import AccountRepository
from temp_mailbox.repository.sql import SqlAccountRepository
from temp_mailbox.services.account_service import AccountService
from temp_mailbox.services.errors import AccountServiceError
from temp_mailbox.services.passwords import PasswordCodec
from temp_mailbox.services.tokens import TokenService
from temp_mailbox.utils.logging_config import get_logger, setup_logging

logger = get_logger(__name__)

SERVICE_NAME = "temp-mailbox-service"


def create_app(
    config: Optional[AppConfig] = None,
    repository: Optional[AccountRepository] = None,
    password_codec: Optional[PasswordCodec] = None,
) -> FastAPI:
    """创建应用并完成依赖装配

    未注入 repository 时按配置创建 engine 与 SqlAccountRepository，并建表。
    """
    config = config or load_config()
    setup_logging(
        log_level=config.log.level,
        log_dir=config.log.log_dir,
        enable_console=config.log.enable_console,
        enable_file=config.log.enable_file,
    )

    app = FastAPI(title="Temp Mailbox Service", version=__version__)

    # 添加请求日志中间件（在 CORS 之前）
    app.add_middleware(RequestLoggingMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    engine = None
    if repository is None:
        engine = create_db_engine(config.database.url, echo=config.database.echo)
        init_db(engine)
        repository = SqlAccountRepository(engine)

    token_service = TokenService(
        secret_key=config.jwt.secret,
        access_token_ttl=config.jwt.access_token_ttl,
        refresh_token_ttl=config.jwt.refresh_token_ttl,
        issuer=config.jwt.issuer,
    )
    app.state.config = config
    app.state.token_service = token_service
    app.state.account_service = AccountService(
        repository=repository,
        token_service=token_service,
        password_codec=password_codec or PasswordCodec(),
    )

    @app.on_event("shutdown")
    async def on_shutdown():
        """Release database connections when the API stops."""
        if engine is not None:
            engine.dispose()

    app.add_exception_handler(AccountServiceError, account_error_handler)
    app.include_router(api_router, prefix="/api")

    @app.get("/health")
    def health():
        return {"status": "ok", "service": SERVICE_NAME, "version": __version__}

    logger.info(f"Application initialized: mode={config.server.mode}, repository={type(repository).__name__}")
    return app


def run() -> None:
    config = load_config()
    uvicorn.run(
        "temp_mailbox.main:create_app",
        factory=True,
        host=config.server.host,
        port=config.server.port,
        reload=not config.is_production,
    )


if __name__ == "__main__":
    run()
