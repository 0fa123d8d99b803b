from fastapi import APIRouter

router = APIRouter()

from insurfi.api.endpoints import admin_claims, auth, claims

router.include_router(claims.router, prefix="/claims", tags=["claims"])
router.include_router(auth.router, prefix="/admin/auth", tags=["admin-auth"])
router.include_router(admin_claims.router, prefix="/admin/claims", tags=["admin-claims"])
