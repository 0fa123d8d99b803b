from pydantic import BaseModel
from datetime import datetime
from typing import Optional
from insurfi.models.admin import AdminRole


class LoginRequest(BaseModel):
    email: str
    password: str


class AdminProfile(BaseModel):
    id: int
    email: str
    name: str
    role: AdminRole
    last_login: Optional[datetime] = None

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    admin: AdminProfile
    token: str
    expires_at: datetime
