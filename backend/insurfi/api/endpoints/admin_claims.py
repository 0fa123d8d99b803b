from typing import Any
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from insurfi.api import deps
from insurfi.api.errors import http_error
from insurfi.core.exceptions import ServiceError
from insurfi.db.session import get_db
from insurfi.models.admin import AdminUser
from insurfi.schemas.claim import PaymentRequest, StatusUpdateRequest
from insurfi.services.claim_service import ClaimService

router = APIRouter()


@router.get("")
async def read_claims(
    page: int = 1,
    limit: int = 10,
    status: str = "all",
    policy_type: str = "all",
    current_admin: AdminUser = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    service = ClaimService(db)
    try:
        return {"success": True, "data": await service.list_claims(page, limit, status, policy_type)}
    except ServiceError as e:
        raise http_error(e)


@router.get("/statistics")
async def read_claims_statistics(
    current_admin: AdminUser = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    service = ClaimService(db)
    try:
        return {"success": True, "data": await service.statistics()}
    except ServiceError as e:
        raise http_error(e)


@router.get("/{claim_id}")
async def read_claim_details(
    claim_id: str,
    current_admin: AdminUser = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Full claim record including documents as data URLs."""
    service = ClaimService(db)
    try:
        return {"success": True, "data": await service.get_claim_details(claim_id)}
    except ServiceError as e:
        raise http_error(e)


@router.patch("/{claim_id}/status")
async def update_claim_status(
    claim_id: str,
    request: StatusUpdateRequest,
    current_admin: AdminUser = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    service = ClaimService(db)
    try:
        status = await service.update_status(
            claim_id,
            request.status,
            admin_id=current_admin.id,
            admin_notes=request.admin_notes,
            payout_amount=request.payout_amount,
            expected_version=request.version,
        )
    except ServiceError as e:
        raise http_error(e)
    return {"success": True, "message": f"Claim {status.value} successfully", "data": {"status": status}}


@router.post("/{claim_id}/payment")
async def process_claim_payment(
    claim_id: str,
    request: PaymentRequest,
    current_admin: AdminUser = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    service = ClaimService(db)
    try:
        status = await service.process_payment(
            claim_id,
            admin_id=current_admin.id,
            payout_amount=request.payout_amount,
            payment_method=request.payment_method,
            transaction_hash=request.transaction_hash,
        )
    except ServiceError as e:
        raise http_error(e)
    return {"success": True, "message": "Payment processed successfully", "data": {"status": status}}
