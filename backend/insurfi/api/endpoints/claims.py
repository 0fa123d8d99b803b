from typing import Any, List, Optional
from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
from insurfi.api.errors import http_error
from insurfi.core.exceptions import ServiceError, ValidationError
from insurfi.db.session import get_db
from insurfi.schemas.claim import Attachment, DocumentUploadRequest, NotificationResponse
from insurfi.services.claim_service import ClaimService, decode_file_data
from insurfi.services.notifications import NotificationSink

router = APIRouter()


async def _read_attachments(service: ClaimService, documents: List[UploadFile]) -> List[Attachment]:
    if len(documents) > service.max_upload_files:
        raise ValidationError(
            f"Too many files. Maximum {service.max_upload_files} files allowed.",
            context={"files": len(documents), "max_files": service.max_upload_files},
        )
    attachments = []
    for upload in documents:
        # one byte past the limit is enough to reject the file
        content = await upload.read(service.max_upload_size + 1)
        attachments.append(
            Attachment(
                filename=upload.filename or "document",
                content=content,
                mime_type=upload.content_type or "application/octet-stream",
            )
        )
    return attachments


@router.post("/submit", status_code=201)
async def submit_claim(
    wallet_address: Optional[str] = Form(None),
    policy_type: Optional[str] = Form(None),
    policy_id: Optional[str] = Form(None),
    claim_amount: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    incident_date: Optional[str] = Form(None),
    documents: Optional[List[UploadFile]] = File(None),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Submit a claim with up to ten supporting documents (multipart field ``documents``)."""
    service = ClaimService(db)
    claim_data = {
        "wallet_address": wallet_address,
        "policy_type": policy_type,
        "policy_id": policy_id,
        "claim_amount": claim_amount,
        "description": description,
        "incident_date": incident_date,
    }
    try:
        attachments = await _read_attachments(service, documents or [])
        result = await service.submit_claim(claim_data, attachments)
    except ServiceError as e:
        raise http_error(e)
    return {"success": True, "message": "Claim submitted successfully", "data": result}


@router.get("/wallet/{wallet_address}")
async def read_wallet_claims(
    wallet_address: str,
    page: int = 1,
    limit: int = 10,
    status: str = "all",
    db: AsyncSession = Depends(get_db),
) -> Any:
    service = ClaimService(db)
    try:
        return {"success": True, "data": await service.list_wallet_claims(wallet_address, page, limit, status)}
    except ServiceError as e:
        raise http_error(e)


@router.get("/notifications/{wallet_address}")
async def read_notifications(
    wallet_address: str,
    unread_only: bool = False,
    db: AsyncSession = Depends(get_db),
) -> Any:
    notifications = await NotificationSink(db).list_for_wallet(wallet_address, unread_only=unread_only)
    return {
        "success": True,
        "data": [NotificationResponse.model_validate(n) for n in notifications],
    }


@router.get("/{claim_id}/status")
async def read_claim_status(
    claim_id: str,
    wallet_address: str = "",
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Claim state for its owner, with the processing timeline and policy snapshot."""
    service = ClaimService(db)
    try:
        return {"success": True, "data": await service.get_claim_status(claim_id, wallet_address)}
    except ServiceError as e:
        raise http_error(e)


@router.post("/{claim_id}/documents", status_code=201)
async def upload_claim_document(
    claim_id: str,
    request: DocumentUploadRequest,
    db: AsyncSession = Depends(get_db),
) -> Any:
    service = ClaimService(db)
    try:
        result = await service.add_document(
            claim_id=claim_id,
            wallet_address=request.wallet_address,
            document_type=request.document_type,
            file_name=request.file_name,
            content=decode_file_data(request.file_data),
            mime_type=request.mime_type,
            declared_size=request.file_size,
        )
    except ServiceError as e:
        raise http_error(e)
    return {"success": True, "message": "Document uploaded successfully", "data": result}
