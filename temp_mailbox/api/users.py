"""用户资料与账户管理 API

所有接口都要求有效的访问令牌。
"""
from fastapi import APIRouter, Depends, Query

from temp_mailbox.api.auth import get_account_service, get_current_claims
from temp_mailbox.api.schemas import (
    AccountListResponse,
    AccountStatusResponse,
    ChangePasswordRequest,
    ChangePasswordResponse,
    UpdateProfileRequest,
)
from temp_mailbox.models.user_account import AccountView
from temp_mailbox.services.account_service import AccountService
from temp_mailbox.services.tokens import TokenClaims

router = APIRouter(prefix="/users")


@router.get("/me", response_model=AccountView)
def get_profile(
    claims: TokenClaims = Depends(get_current_claims),
    service: AccountService = Depends(get_account_service),
):
    return service.get_profile(claims.user_id)


@router.put("/me", response_model=AccountView)
def update_profile(
    payload: UpdateProfileRequest,
    claims: TokenClaims = Depends(get_current_claims),
    service: AccountService = Depends(get_account_service),
):
    return service.update_profile(
        claims.user_id,
        first_name=payload.first_name,
        last_name=payload.last_name,
        avatar=payload.avatar,
        timezone=payload.timezone,
        language=payload.language,
    )


@router.post("/me/password", response_model=ChangePasswordResponse)
def change_password(
    payload: ChangePasswordRequest,
    claims: TokenClaims = Depends(get_current_claims),
    service: AccountService = Depends(get_account_service),
):
    service.change_password(
        claims.user_id,
        current_password=payload.current_password,
        new_password=payload.new_password,
    )
    return ChangePasswordResponse(changed=True)


@router.get("", response_model=AccountListResponse)
def list_accounts(
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
    claims: TokenClaims = Depends(get_current_claims),
    service: AccountService = Depends(get_account_service),
):
    items, total = service.list_accounts(offset, limit)
    return AccountListResponse(items=items, total=total, offset=offset, limit=limit)


@router.get("/{account_id}", response_model=AccountView)
def get_account(
    account_id: int,
    claims: TokenClaims = Depends(get_current_claims),
    service: AccountService = Depends(get_account_service),
):
    return service.get_account(account_id)


@router.post("/{account_id}/activate", response_model=AccountStatusResponse)
def activate_account(
    account_id: int,
    claims: TokenClaims = Depends(get_current_claims),
    service: AccountService = Depends(get_account_service),
):
    service.activate(account_id)
    return AccountStatusResponse(id=account_id, is_active=True)


@router.post("/{account_id}/deactivate", response_model=AccountStatusResponse)
def deactivate_account(
    account_id: int,
    claims: TokenClaims = Depends(get_current_claims),
    service: AccountService = Depends(get_account_service),
):
    service.deactivate(account_id)
    return AccountStatusResponse(id=account_id, is_active=False)
