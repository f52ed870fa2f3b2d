from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from temp_mailbox.api.schemas import LoginRequest, RefreshRequest, RegisterRequest
from temp_mailbox.models.user_account import AccountView
from temp_mailbox.services.account_service import AccountService, LoginResult
from temp_mailbox.services.errors import InvalidTokenError
from temp_mailbox.services.tokens import TokenClaims, TokenPair, TokenService, extract_bearer_token

router = APIRouter(prefix="/auth")


def get_account_service(request: Request) -> AccountService:
    return request.app.state.account_service


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_token(authorization: Optional[str] = Header(None, alias="Authorization")) -> str:
    token = extract_bearer_token(authorization)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")
    return token


def get_current_claims(
    token: str = Depends(get_token),
    token_service: TokenService = Depends(get_token_service),
) -> TokenClaims:
    """校验访问令牌并返回声明（依赖注入）

    路由从返回的 claims.user_id 获取当前用户，显式传入服务层。
    """
    try:
        return token_service.validate_access(token)
    except InvalidTokenError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")


@router.post("/register", response_model=AccountView)
def register(payload: RegisterRequest, service: AccountService = Depends(get_account_service)):
    return service.register(
        username=payload.username,
        email=payload.email,
        password=payload.password,
        first_name=payload.first_name,
        last_name=payload.last_name,
    )


@router.post("/login", response_model=LoginResult)
def login(payload: LoginRequest, service: AccountService = Depends(get_account_service)):
    return service.login(email=payload.email, password=payload.password)


@router.post("/refresh", response_model=TokenPair)
def refresh(payload: RefreshRequest, service: AccountService = Depends(get_account_service)):
    return service.refresh_tokens(payload.refresh_token)
