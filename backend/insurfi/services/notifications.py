"""
Notification sink: turns claim events into wallet-facing messages.
Rows are added to the caller's session and committed with the caller's unit of work.
"""
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from insurfi.models.audit import Notification, NotificationType
from insurfi.models.claim import ClaimStatus

ADMIN_CHANNEL = "admin"


class NotificationSink:
    def __init__(self, db: AsyncSession):
        self.db = db

    def notify(self, wallet_address: str, type: NotificationType, title: str, message: str) -> Notification:
        notification = Notification(
            wallet_address=wallet_address,
            type=NotificationType(type).value,
            title=title,
            message=message,
        )
        self.db.add(notification)
        return notification

    def claim_submitted(self, wallet_address: str, claim_id: str, policy_type: str) -> None:
        self.notify(
            wallet_address,
            NotificationType.CLAIM_SUBMITTED,
            "Claim Submitted Successfully",
            f"Your claim {claim_id} has been submitted and is being reviewed.",
        )
        self.notify(
            ADMIN_CHANNEL,
            NotificationType.NEW_CLAIM,
            "New Claim Submitted",
            f"New {policy_type} insurance claim {claim_id} submitted by {wallet_address[:8]}...",
        )

    def status_changed(
        self,
        wallet_address: str,
        claim_id: str,
        status: ClaimStatus,
        admin_notes: Optional[str] = None,
        payout_amount: Optional[Decimal] = None,
    ) -> None:
        status = ClaimStatus(status)
        if status == ClaimStatus.APPROVED:
            suffix = f" for ${payout_amount}" if payout_amount is not None else ""
            message = f"Your claim {claim_id} has been approved{suffix}."
        elif status == ClaimStatus.REJECTED:
            message = f"Your claim {claim_id} has been rejected. {admin_notes or ''}".rstrip()
        elif status == ClaimStatus.PROCESSING_PAYMENT:
            message = f"Your claim {claim_id} is being processed for payment."
        else:
            suffix = f" (${payout_amount})" if payout_amount is not None else ""
            message = f"Your claim {claim_id} has been paid{suffix}."

        self.notify(wallet_address, NotificationType.CLAIM_UPDATE, f"Claim {status.value}", message)

    def payment_processed(self, wallet_address: str, claim_id: str, payout_amount: Decimal) -> None:
        self.notify(
            wallet_address,
            NotificationType.PAYMENT_PROCESSED,
            "Payment Processed",
            f"Your claim {claim_id} has been paid. Amount: ${payout_amount}",
        )

    def document_uploaded(self, wallet_address: str, claim_id: str, document_type: str) -> None:
        self.notify(
            wallet_address,
            NotificationType.DOCUMENT_UPLOADED,
            "Document Uploaded",
            f"Document uploaded for claim {claim_id}: {document_type}",
        )

    async def list_for_wallet(self, wallet_address: str, unread_only: bool = False, limit: int = 50) -> List[Notification]:
        query = select(Notification).where(Notification.wallet_address == wallet_address)
        if unread_only:
            query = query.where(Notification.is_read.is_(False))
        query = query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit)
        result = await self.db.execute(query)
        return result.scalars().all()
