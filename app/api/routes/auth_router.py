from typing import Optional

from fastapi import APIRouter, Depends, Form
from fastapi.responses import RedirectResponse

from app.api.dependencies.services import get_auth_service
from app.config.settings import settings
from app.services.auth_service import AuthService

router = APIRouter()


# === Login ===
@router.post(
    "/login",
    status_code=303,
    summary="使用共享口令登录"
)
async def login(
    password: Optional[str] = Form(None),
    service: AuthService = Depends(get_auth_service),
):
    service.verify_passphrase(password)
    return RedirectResponse(url=f"{settings.server.api_prefix}/files", status_code=303)


# === Logout ===
@router.get("/logout", summary="退出并返回首页")
async def logout():
    return RedirectResponse(url=f"{settings.server.api_prefix}/", status_code=303)
