from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal
from insurfi.models.claim import ClaimStatus, PolicyType


class Attachment(BaseModel):
    filename: str
    content: bytes
    mime_type: str

    @property
    def size(self) -> int:
        return len(self.content)


class FileInfo(BaseModel):
    name: str
    size: int
    type: str


class SubmissionResult(BaseModel):
    claim_id: str
    status: ClaimStatus
    submitted_at: datetime
    documents_uploaded: int
    documents_submitted: int
    files_info: List[FileInfo] = []


class DocumentUploadRequest(BaseModel):
    wallet_address: str
    document_type: str
    file_name: str
    file_data: str = Field(description="base64-encoded file content")
    file_size: Optional[int] = None
    mime_type: str


class DocumentUploadResult(BaseModel):
    document_id: int
    claim_id: str
    document_type: str
    file_size: int
    uploaded_at: datetime


class StatusUpdateRequest(BaseModel):
    status: str
    admin_notes: Optional[str] = None
    payout_amount: Optional[Decimal] = None
    version: Optional[int] = None


class PaymentRequest(BaseModel):
    payout_amount: Decimal
    payment_method: Optional[str] = None
    transaction_hash: Optional[str] = None


class TimelineStep(BaseModel):
    status: str
    date: Optional[datetime] = None
    completed: bool
    description: str


class ClaimSummary(BaseModel):
    claim_id: str
    policy_type: PolicyType
    claim_amount: Decimal
    description: str
    incident_date: date
    status: ClaimStatus
    created_at: datetime
    payout_amount: Optional[Decimal] = None
    payout_date: Optional[datetime] = None
    admin_notes: Optional[str] = None
    formatted_amount: str
    formatted_payout: Optional[str] = None
    days_since_submission: int


class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total_claims: int
    per_page: int


class ClaimPage(BaseModel):
    claims: List[ClaimSummary]
    pagination: Pagination


class ClaimStatusView(BaseModel):
    claim_id: str
    policy_type: PolicyType
    policy_id: int
    claim_amount: Decimal
    description: str
    incident_date: date
    status: ClaimStatus
    created_at: datetime
    reviewed_at: Optional[datetime] = None
    payout_amount: Optional[Decimal] = None
    payout_date: Optional[datetime] = None
    admin_notes: Optional[str] = None
    documents_count: int
    formatted_amount: str
    formatted_payout: Optional[str] = None
    policy_details: Optional[dict] = None
    timeline: List[TimelineStep]


class NotificationResponse(BaseModel):
    id: int
    type: str
    title: str
    message: str
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True
