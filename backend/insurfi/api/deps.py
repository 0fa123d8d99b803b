from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from insurfi.api.errors import http_error
from insurfi.core.exceptions import AuthenticationError
from insurfi.db.session import get_db
from insurfi.models.admin import AdminUser
from insurfi.services.admin_auth import AdminAuthService

bearer_scheme = HTTPBearer(auto_error=False)


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    return credentials.credentials if credentials else None


async def get_current_admin(
    token: Optional[str] = Depends(get_bearer_token),
    db: AsyncSession = Depends(get_db),
) -> AdminUser:
    try:
        return await AdminAuthService(db).resolve(token)
    except AuthenticationError as e:
        raise http_error(e)


def client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None
