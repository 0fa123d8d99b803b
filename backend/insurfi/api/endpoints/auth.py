from typing import Any
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from insurfi.api import deps
from insurfi.api.errors import http_error
from insurfi.core.exceptions import ServiceError
from insurfi.db.session import get_db
from insurfi.models.admin import AdminUser
from insurfi.schemas.admin import AdminProfile, LoginRequest, LoginResponse
from insurfi.services.admin_auth import AdminAuthService

router = APIRouter()


@router.post("/login")
async def login(
    credentials: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Any:
    service = AdminAuthService(db)
    try:
        admin, token, expires_at = await service.login(
            credentials.email, credentials.password, ip_address=deps.client_ip(request)
        )
    except ServiceError as e:
        raise http_error(e)
    return {
        "success": True,
        "message": "Login successful",
        "data": LoginResponse(admin=AdminProfile.model_validate(admin), token=token, expires_at=expires_at),
    }


@router.post("/logout")
async def logout(
    request: Request,
    token: str = Depends(deps.get_bearer_token),
    current_admin: AdminUser = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    await AdminAuthService(db).logout(token, current_admin.id, ip_address=deps.client_ip(request))
    return {"success": True, "message": "Logout successful"}


@router.get("/profile")
async def read_profile(
    current_admin: AdminUser = Depends(deps.get_current_admin),
) -> Any:
    return {"success": True, "data": AdminProfile.model_validate(current_admin)}
