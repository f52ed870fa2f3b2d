from fastapi import APIRouter

from temp_mailbox.api.auth import router as auth_router
from temp_mailbox.api.users import router as users_router


router = APIRouter()

router.include_router(auth_router)
router.include_router(users_router)


@router.get("/ping")
def ping():
    return {"msg": "pong"}
