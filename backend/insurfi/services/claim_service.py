"""
Claim lifecycle service: submission with document intake, admin review,
payout settlement and the wallet/admin read views.
"""
import base64
import binascii
import datetime
import logging
import math
import uuid
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from insurfi.core.config import settings
from insurfi.core.exceptions import (
    ClaimNotFound,
    Conflict,
    Forbidden,
    InvalidTransition,
    PolicyNotFound,
    StorageFailure,
    ValidationError,
)
from insurfi.models.admin import AdminUser
from insurfi.models.claim import Claim, ClaimDocument, ClaimStatus, PolicyType, utcnow
from insurfi.schemas.claim import (
    Attachment,
    ClaimPage,
    ClaimStatusView,
    DocumentUploadResult,
    FileInfo,
    Pagination,
    SubmissionResult,
)
from insurfi.services.audit import AuditLog
from insurfi.services.formatting import (
    as_utc,
    days_since,
    format_currency,
    format_file_size,
    format_wallet,
    to_money,
)
from insurfi.services.lifecycle import (
    PAYABLE,
    PAYOUT_ELIGIBLE,
    build_timeline,
    check_transition,
    parse_status,
)
from insurfi.services.notifications import NotificationSink
from insurfi.services.policies import PolicyRepository

logger = logging.getLogger(__name__)

SUPPORTING_DOCUMENT = "supporting_document"
REQUIRED_FIELDS = ("wallet_address", "policy_type", "policy_id", "claim_amount", "description", "incident_date")
MAX_PAGE_SIZE = 100
CLAIM_ID_ATTEMPTS = 5
# Numeric(15, 2) leaves 13 digits before the decimal point
MAX_AMOUNT = Decimal("9999999999999.99")


def parse_amount(value, field: str = "claim_amount") -> Decimal:
    """Positive currency amount, rounded to cents."""
    context = {"field": field, "value": str(value)}
    try:
        amount = Decimal(str(value).strip())
        if not amount.is_finite():
            raise ValidationError(f"{field} must be a number", context=context)
        amount = to_money(amount)
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number", context=context) from None
    if amount <= 0:
        raise ValidationError(f"{field} must be greater than zero", context=context)
    if amount > MAX_AMOUNT:
        raise ValidationError(f"{field} must not exceed {MAX_AMOUNT}", context=context)
    return amount


def parse_policy_type(value) -> PolicyType:
    try:
        return PolicyType(str(value).strip().lower())
    except ValueError:
        raise ValidationError(
            "Invalid policy type. Must be home, car, or travel",
            context={"field": "policy_type", "value": str(value)},
        ) from None


def parse_incident_date(value, today: datetime.date = None) -> datetime.date:
    if isinstance(value, datetime.datetime):
        incident = value.date()
    elif isinstance(value, datetime.date):
        incident = value
    else:
        try:
            incident = datetime.date.fromisoformat(str(value).strip())
        except ValueError:
            raise ValidationError(
                "incident_date must be a valid date (YYYY-MM-DD)",
                context={"field": "incident_date", "value": str(value)},
            ) from None
    today = today or utcnow().date()
    if incident > today:
        raise ValidationError(
            "incident_date cannot be in the future",
            context={"field": "incident_date", "value": incident.isoformat()},
        )
    return incident


def decode_file_data(file_data: str) -> bytes:
    """Decode a base64 payload, tolerating a ``data:<mime>;base64,`` prefix."""
    if file_data.startswith("data:") and "," in file_data:
        file_data = file_data.split(",", 1)[1]
    try:
        return base64.b64decode(file_data, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("file_data is not valid base64", context={"field": "file_data"}) from None


class ClaimService:
    def __init__(
        self,
        db: AsyncSession,
        *,
        max_upload_size: int = None,
        max_upload_files: int = None,
        allowed_mime_types: Iterable[str] = None,
        notifier: NotificationSink = None,
        audit: AuditLog = None,
        policies: PolicyRepository = None,
    ):
        self.db = db
        self.max_upload_size = max_upload_size if max_upload_size is not None else settings.MAX_UPLOAD_SIZE
        self.max_upload_files = max_upload_files if max_upload_files is not None else settings.MAX_UPLOAD_FILES
        self.allowed_mime_types = frozenset(allowed_mime_types or settings.ALLOWED_MIME_TYPES)
        self.notifier = notifier or NotificationSink(db)
        self.audit = audit or AuditLog(db)
        self.policies = policies or PolicyRepository(db)

    # ------------------------------------------------------------------
    # Wallet operations
    # ------------------------------------------------------------------

    async def submit_claim(self, claim_data: Dict[str, Any], attachments: List[Attachment] = None) -> SubmissionResult:
        """
        Create a pending claim and store its initial documents.

        The claim row is committed before any document. A document that fails to
        store is logged and skipped; the claim keeps the number that actually landed.
        """
        attachments = list(attachments or [])
        fields = self._validate_submission(claim_data)
        self._validate_attachments(attachments)

        wallet_address = fields["wallet_address"]
        policy = await self.policies.get_owned(fields["policy_id"], wallet_address, fields["policy_type"])
        if policy is None:
            logger.warning(
                "Claim rejected: policy %s (%s) not owned by %s",
                fields["policy_id"], fields["policy_type"].value, wallet_address,
            )
            raise PolicyNotFound(
                "Policy not found or does not belong to this wallet",
                context={"policy_id": fields["policy_id"], "policy_type": fields["policy_type"].value},
            )

        claim_id = await self._generate_claim_id()
        submitted_at = utcnow()
        claim = Claim(
            claim_id=claim_id,
            wallet_address=wallet_address,
            policy_type=fields["policy_type"],
            policy_id=fields["policy_id"],
            claim_amount=fields["claim_amount"],
            description=fields["description"],
            incident_date=fields["incident_date"],
            documents_count=len(attachments),
            status=ClaimStatus.PENDING,
            version=1,
            created_at=submitted_at,
        )
        self.db.add(claim)
        await self._commit("submit claim", claim_id=claim_id)
        logger.info("Claim %s submitted by %s", claim_id, wallet_address, extra={"claim_id": claim_id})

        stored: List[Attachment] = []
        for attachment in attachments:
            try:
                await self._store_document(claim_id, wallet_address, SUPPORTING_DOCUMENT, attachment)
            except SQLAlchemyError:
                await self.db.rollback()
                logger.error(
                    "Failed to store document %s for claim %s",
                    attachment.filename, claim_id, exc_info=True, extra={"claim_id": claim_id},
                )
                continue
            stored.append(attachment)

        if len(stored) != len(attachments):
            logger.warning(
                "Claim %s stored %d of %d documents", claim_id, len(stored), len(attachments),
                extra={"claim_id": claim_id},
            )
            await self._sync_documents_count(claim_id)

        try:
            self.notifier.claim_submitted(wallet_address, claim_id, fields["policy_type"].value)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.error("Failed to record notifications for claim %s", claim_id, exc_info=True)

        return SubmissionResult(
            claim_id=claim_id,
            status=ClaimStatus.PENDING,
            submitted_at=submitted_at,
            documents_uploaded=len(stored),
            documents_submitted=len(attachments),
            files_info=[FileInfo(name=a.filename, size=a.size, type=a.mime_type) for a in stored],
        )

    async def add_document(
        self,
        claim_id: str,
        wallet_address: str,
        document_type: str,
        file_name: str,
        content: bytes,
        mime_type: str,
        declared_size: Optional[int] = None,
    ) -> DocumentUploadResult:
        """Attach a supplementary document to a claim owned by ``wallet_address``."""
        for field, value in (("wallet_address", wallet_address), ("document_type", document_type), ("file_name", file_name)):
            if not value or not str(value).strip():
                raise ValidationError(f"{field} is required", context={"field": field})
        if not content:
            raise ValidationError("file_data is required", context={"field": "file_data"})
        if declared_size is not None and declared_size != len(content):
            raise ValidationError(
                "file_size does not match the decoded file data",
                context={"file_size": declared_size, "actual_size": len(content)},
            )
        attachment = Attachment(filename=file_name, content=content, mime_type=mime_type)
        self._validate_attachments([attachment])

        claim = await self._get_claim(claim_id)
        if claim.wallet_address != wallet_address:
            logger.warning("Wallet %s tried to upload to claim %s", wallet_address, claim_id)
            raise Forbidden("Claim does not belong to this wallet", context={"claim_id": claim_id})

        try:
            document = await self._store_document(claim_id, wallet_address, document_type.strip(), attachment)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Failed to store document for claim %s", claim_id, exc_info=True)
            raise StorageFailure("Document could not be stored", context={"claim_id": claim_id}) from e
        document_id = document.id
        uploaded_at = document.created_at

        await self._sync_documents_count(claim_id)
        try:
            self.notifier.document_uploaded(wallet_address, claim_id, document_type.strip())
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.error("Failed to record upload notification for claim %s", claim_id, exc_info=True)
        logger.info("Document %s added to claim %s", document_id, claim_id, extra={"claim_id": claim_id})

        return DocumentUploadResult(
            document_id=document_id,
            claim_id=claim_id,
            document_type=document_type.strip(),
            file_size=attachment.size,
            uploaded_at=uploaded_at,
        )

    async def list_wallet_claims(
        self,
        wallet_address: str,
        page: int = 1,
        limit: int = 10,
        status: str = "all",
        now: datetime.datetime = None,
    ) -> ClaimPage:
        if not wallet_address:
            raise ValidationError("Wallet address is required", context={"field": "wallet_address"})
        self._check_paging(page, limit)

        filters = [Claim.wallet_address == wallet_address]
        if status != "all":
            filters.append(Claim.status == parse_status(status))

        total = (await self.db.execute(select(func.count(Claim.id)).where(*filters))).scalar_one()
        result = await self.db.execute(
            select(Claim)
            .where(*filters)
            .order_by(Claim.created_at.desc(), Claim.id.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        )
        claims = [
            {
                "claim_id": c.claim_id,
                "policy_type": c.policy_type,
                "claim_amount": c.claim_amount,
                "description": c.description,
                "incident_date": c.incident_date,
                "status": c.status,
                "created_at": as_utc(c.created_at),
                "payout_amount": c.payout_amount,
                "payout_date": as_utc(c.payout_date),
                "admin_notes": c.admin_notes,
                "formatted_amount": format_currency(c.claim_amount),
                "formatted_payout": format_currency(c.payout_amount),
                "days_since_submission": days_since(c.created_at, now),
            }
            for c in result.scalars().all()
        ]
        return ClaimPage(claims=claims, pagination=self._pagination(page, limit, total))

    async def get_claim_status(self, claim_id: str, wallet_address: str) -> ClaimStatusView:
        if not claim_id or not wallet_address:
            raise ValidationError("Claim ID and wallet address are required")
        result = await self.db.execute(
            select(Claim).where(Claim.claim_id == claim_id, Claim.wallet_address == wallet_address)
        )
        claim = result.scalars().first()
        if claim is None:
            raise ClaimNotFound("Claim not found", context={"claim_id": claim_id})

        policy = await self.policies.get(claim.policy_id, claim.policy_type)
        return ClaimStatusView(
            claim_id=claim.claim_id,
            policy_type=claim.policy_type,
            policy_id=claim.policy_id,
            claim_amount=claim.claim_amount,
            description=claim.description,
            incident_date=claim.incident_date,
            status=claim.status,
            created_at=as_utc(claim.created_at),
            reviewed_at=as_utc(claim.reviewed_at),
            payout_amount=claim.payout_amount,
            payout_date=as_utc(claim.payout_date),
            admin_notes=claim.admin_notes,
            documents_count=claim.documents_count,
            formatted_amount=format_currency(claim.claim_amount),
            formatted_payout=format_currency(claim.payout_amount),
            policy_details=policy.details() if policy else None,
            timeline=build_timeline(claim),
        )

    # ------------------------------------------------------------------
    # Admin operations
    # ------------------------------------------------------------------

    async def update_status(
        self,
        claim_id: str,
        status: str,
        admin_id: int,
        admin_notes: Optional[str] = None,
        payout_amount=None,
        expected_version: Optional[int] = None,
    ) -> ClaimStatus:
        """Move a claim along the review state machine. Returns the new status."""
        target = parse_status(status)
        payout = None
        if payout_amount is not None:
            payout = parse_amount(payout_amount, "payout_amount")
            if target not in PAYOUT_ELIGIBLE:
                raise ValidationError(
                    f"payout_amount is not allowed for status {target.value}",
                    context={"status": target.value},
                )

        claim = await self._get_claim(claim_id)
        current = ClaimStatus(claim.status)
        try:
            check_transition(current, target)
        except InvalidTransition:
            logger.warning(
                "Rejected transition %s -> %s for claim %s", current.value, target.value, claim_id,
                extra={"claim_id": claim_id, "admin_id": admin_id},
            )
            raise

        now = utcnow()
        values = {
            "status": target,
            "reviewed_by": admin_id,
            "reviewed_at": now,
            "admin_notes": admin_notes,
        }
        if payout is not None:
            values["payout_amount"] = payout
        if target == ClaimStatus.PAID:
            values["payout_date"] = now

        wallet_address = claim.wallet_address
        await self._conditional_update(claim, values, expected_version)

        self.notifier.status_changed(wallet_address, claim_id, target, admin_notes, payout)
        self.audit.record(
            admin_id,
            "update_claim_status",
            "claim",
            claim_id,
            {
                "from_status": current.value,
                "status": target.value,
                "admin_notes": admin_notes,
                "payout_amount": str(payout) if payout is not None else None,
            },
        )
        await self._commit("update claim status", claim_id=claim_id)
        logger.info(
            "Claim %s moved %s -> %s by admin %s", claim_id, current.value, target.value, admin_id,
            extra={"claim_id": claim_id, "admin_id": admin_id, "status": target.value},
        )
        return target

    async def process_payment(
        self,
        claim_id: str,
        admin_id: int,
        payout_amount,
        payment_method: Optional[str] = None,
        transaction_hash: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> ClaimStatus:
        """Settle an approved claim. Always records the amount paid out."""
        if payout_amount is None or str(payout_amount).strip() == "":
            raise ValidationError("Payout amount is required", context={"field": "payout_amount"})
        payout = parse_amount(payout_amount, "payout_amount")

        claim = await self._get_claim(claim_id)
        current = ClaimStatus(claim.status)
        if current not in PAYABLE:
            logger.warning(
                "Payment refused for claim %s in status %s", claim_id, current.value,
                extra={"claim_id": claim_id, "admin_id": admin_id},
            )
            raise InvalidTransition(
                "Claim not approved for payment",
                context={"from_status": current.value, "to_status": ClaimStatus.PAID.value},
            )

        wallet_address = claim.wallet_address
        await self._conditional_update(
            claim,
            {
                "status": ClaimStatus.PAID,
                "payout_amount": payout,
                "payout_date": utcnow(),
                "reviewed_by": admin_id,
            },
            expected_version,
        )

        self.notifier.payment_processed(wallet_address, claim_id, payout)
        self.audit.record(
            admin_id,
            "process_payment",
            "claim",
            claim_id,
            {
                "from_status": current.value,
                "payout_amount": str(payout),
                "payment_method": payment_method,
                "transaction_hash": transaction_hash,
            },
        )
        await self._commit("process payment", claim_id=claim_id)
        logger.info(
            "Claim %s paid %s by admin %s", claim_id, payout, admin_id,
            extra={"claim_id": claim_id, "admin_id": admin_id, "status": ClaimStatus.PAID.value},
        )
        return ClaimStatus.PAID

    async def list_claims(
        self,
        page: int = 1,
        limit: int = 10,
        status: str = "all",
        policy_type: str = "all",
    ) -> Dict[str, Any]:
        self._check_paging(page, limit)
        filters = []
        if status != "all":
            filters.append(Claim.status == parse_status(status))
        if policy_type != "all":
            filters.append(Claim.policy_type == parse_policy_type(policy_type))

        total = (await self.db.execute(select(func.count(Claim.id)).where(*filters))).scalar_one()
        result = await self.db.execute(
            select(Claim, AdminUser.name)
            .outerjoin(AdminUser, Claim.reviewed_by == AdminUser.id)
            .where(*filters)
            .order_by(Claim.created_at.desc(), Claim.id.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        )
        claims = []
        for claim, reviewer_name in result.all():
            row = self._claim_row(claim)
            row["reviewed_by_name"] = reviewer_name
            row["formatted_wallet"] = format_wallet(claim.wallet_address)
            row["formatted_amount"] = format_currency(claim.claim_amount)
            claims.append(row)

        return {"claims": claims, "pagination": self._pagination(page, limit, total).model_dump()}

    async def get_claim_details(self, claim_id: str) -> Dict[str, Any]:
        result = await self.db.execute(
            select(Claim, AdminUser.name, AdminUser.email)
            .outerjoin(AdminUser, Claim.reviewed_by == AdminUser.id)
            .where(Claim.claim_id == claim_id)
        )
        row = result.first()
        if row is None:
            raise ClaimNotFound("Claim not found", context={"claim_id": claim_id})
        claim, reviewer_name, reviewer_email = row

        documents = await self.db.execute(
            select(ClaimDocument)
            .where(ClaimDocument.claim_id == claim_id)
            .order_by(ClaimDocument.created_at, ClaimDocument.id)
        )
        policy = await self.policies.get(claim.policy_id, claim.policy_type)

        details = self._claim_row(claim)
        details.update(
            reviewed_by_name=reviewer_name,
            reviewed_by_email=reviewer_email,
            formatted_wallet=format_wallet(claim.wallet_address),
            formatted_amount=format_currency(claim.claim_amount),
            formatted_payout=format_currency(claim.payout_amount),
            policy_details=policy.details() if policy else None,
            documents=[self._document_view(doc) for doc in documents.scalars().all()],
            timeline=build_timeline(claim),
        )
        return details

    async def statistics(self, now: datetime.datetime = None) -> Dict[str, Any]:
        """Aggregates by status and policy type plus a trailing twelve-month trend."""
        now = as_utc(now or utcnow())

        status_rows = await self.db.execute(
            select(Claim.status, func.count(Claim.id), func.sum(Claim.claim_amount))
            .group_by(Claim.status)
        )
        by_status = []
        for status, count, total in status_rows.all():
            total = to_money(total or 0)
            by_status.append({
                "status": ClaimStatus(status).value,
                "count": count,
                "total_amount": total,
                "avg_amount": to_money(total / count) if count else to_money(0),
            })

        type_rows = await self.db.execute(
            select(Claim.policy_type, func.count(Claim.id), func.sum(Claim.claim_amount))
            .group_by(Claim.policy_type)
        )
        by_type = [
            {
                "policy_type": PolicyType(policy_type).value,
                "count": count,
                "total_amount": to_money(total or 0),
            }
            for policy_type, count, total in type_rows.all()
        ]

        since = self._twelve_months_before(now)
        recent = await self.db.execute(
            select(Claim.created_at, Claim.status, Claim.claim_amount, Claim.payout_amount)
            .where(Claim.created_at >= since)
        )
        months: Dict[str, Dict[str, Any]] = {}
        for created_at, status, amount, payout in recent.all():
            key = as_utc(created_at).strftime("%Y-%m")
            bucket = months.setdefault(key, {
                "month": key,
                "claims_count": 0,
                "total_amount": to_money(0),
                "approved_count": 0,
                "total_paid": to_money(0),
            })
            bucket["claims_count"] += 1
            bucket["total_amount"] += to_money(amount)
            if ClaimStatus(status) == ClaimStatus.APPROVED:
                bucket["approved_count"] += 1
            if ClaimStatus(status) == ClaimStatus.PAID and payout is not None:
                bucket["total_paid"] += to_money(payout)

        monthly_trends = [months[key] for key in sorted(months, reverse=True)]
        return {"by_status": by_status, "by_type": by_type, "monthly_trends": monthly_trends}

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _validate_submission(self, claim_data: Dict[str, Any]) -> Dict[str, Any]:
        missing = [
            name for name in REQUIRED_FIELDS
            if claim_data.get(name) is None or str(claim_data.get(name)).strip() == ""
        ]
        if missing:
            raise ValidationError("All required fields must be provided", context={"missing": missing})

        try:
            policy_id = int(str(claim_data["policy_id"]).strip())
        except ValueError:
            raise ValidationError(
                "policy_id must be an integer",
                context={"field": "policy_id", "value": str(claim_data["policy_id"])},
            ) from None

        return {
            "wallet_address": str(claim_data["wallet_address"]).strip(),
            "policy_type": parse_policy_type(claim_data["policy_type"]),
            "policy_id": policy_id,
            "claim_amount": parse_amount(claim_data["claim_amount"]),
            "description": str(claim_data["description"]).strip(),
            "incident_date": parse_incident_date(claim_data["incident_date"]),
        }

    def _validate_attachments(self, attachments: List[Attachment]) -> None:
        if len(attachments) > self.max_upload_files:
            raise ValidationError(
                f"Too many files. Maximum {self.max_upload_files} files allowed.",
                context={"files": len(attachments), "max_files": self.max_upload_files},
            )
        for attachment in attachments:
            if attachment.size > self.max_upload_size:
                raise ValidationError(
                    f"File too large. Maximum size is {self.max_upload_size} bytes per file.",
                    context={"file_name": attachment.filename, "size": attachment.size, "max_size": self.max_upload_size},
                )
            if attachment.mime_type not in self.allowed_mime_types:
                raise ValidationError(
                    "Invalid file type. Only images, PDFs, and documents are allowed.",
                    context={"file_name": attachment.filename, "mime_type": attachment.mime_type},
                )

    async def _store_document(
        self, claim_id: str, wallet_address: str, document_type: str, attachment: Attachment
    ) -> ClaimDocument:
        document = ClaimDocument(
            claim_id=claim_id,
            document_type=document_type,
            file_name=attachment.filename,
            file_data=base64.b64encode(attachment.content).decode("ascii"),
            file_size=attachment.size,
            mime_type=attachment.mime_type,
            uploaded_by=wallet_address,
            created_at=utcnow(),
        )
        self.db.add(document)
        await self.db.commit()
        return document

    async def _sync_documents_count(self, claim_id: str) -> int:
        """Recount attached documents from storage and persist the result."""
        count = (
            await self.db.execute(
                select(func.count(ClaimDocument.id)).where(ClaimDocument.claim_id == claim_id)
            )
        ).scalar_one()
        await self.db.execute(
            update(Claim)
            .where(Claim.claim_id == claim_id)
            .values(documents_count=count)
            .execution_options(synchronize_session=False)
        )
        await self._commit("documents count", claim_id=claim_id)
        return count

    async def _conditional_update(self, claim: Claim, values: Dict[str, Any], expected_version: Optional[int]) -> None:
        """Write ``values`` only if nobody else touched the claim since it was read."""
        seen_version = claim.version
        if expected_version is not None and expected_version != seen_version:
            raise Conflict(
                "Claim was modified by another request",
                context={"claim_id": claim.claim_id, "expected_version": expected_version, "version": seen_version},
            )
        try:
            result = await self.db.execute(
                update(Claim)
                .where(Claim.claim_id == claim.claim_id, Claim.version == seen_version)
                .values(version=seen_version + 1, updated_at=utcnow(), **values)
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Storage failure updating claim %s", claim.claim_id, exc_info=True)
            raise StorageFailure("Claim update failed", context={"claim_id": claim.claim_id}) from e
        if result.rowcount == 0:
            await self.db.rollback()
            raise Conflict(
                "Claim was modified by another request",
                context={"claim_id": claim.claim_id, "version": seen_version},
            )

    async def _commit(self, action: str, **context) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Storage failure during %s %s", action, context, exc_info=True)
            raise StorageFailure(f"Storage failure during {action}", context=context) from e

    async def _get_claim(self, claim_id: str) -> Claim:
        result = await self.db.execute(
            select(Claim).where(Claim.claim_id == claim_id).execution_options(populate_existing=True)
        )
        claim = result.scalars().first()
        if claim is None:
            raise ClaimNotFound("Claim not found", context={"claim_id": claim_id})
        return claim

    async def _generate_claim_id(self) -> str:
        prefix = settings.CLAIM_ID_PREFIX
        for _ in range(CLAIM_ID_ATTEMPTS):
            candidate = f"{prefix}-{utcnow():%Y%m%d}-{uuid.uuid4().hex[:8].upper()}"
            taken = await self.db.execute(select(Claim.id).where(Claim.claim_id == candidate))
            if taken.first() is None:
                return candidate
        raise StorageFailure("Could not allocate a unique claim id")

    @staticmethod
    def _check_paging(page: int, limit: int) -> None:
        if page < 1:
            raise ValidationError("page must be at least 1", context={"page": page})
        if limit < 1 or limit > MAX_PAGE_SIZE:
            raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}", context={"limit": limit})

    @staticmethod
    def _pagination(page: int, limit: int, total: int) -> Pagination:
        return Pagination(
            current_page=page,
            total_pages=math.ceil(total / limit),
            total_claims=total,
            per_page=limit,
        )

    @staticmethod
    def _twelve_months_before(now: datetime.datetime) -> datetime.datetime:
        try:
            return now.replace(year=now.year - 1)
        except ValueError:
            # Feb 29
            return now.replace(year=now.year - 1, day=28)

    @staticmethod
    def _claim_row(claim: Claim) -> Dict[str, Any]:
        return {
            "claim_id": claim.claim_id,
            "wallet_address": claim.wallet_address,
            "policy_type": PolicyType(claim.policy_type).value,
            "policy_id": claim.policy_id,
            "claim_amount": claim.claim_amount,
            "description": claim.description,
            "incident_date": claim.incident_date,
            "documents_count": claim.documents_count,
            "status": ClaimStatus(claim.status).value,
            "admin_notes": claim.admin_notes,
            "payout_amount": claim.payout_amount,
            "payout_date": as_utc(claim.payout_date),
            "reviewed_at": as_utc(claim.reviewed_at),
            "reviewed_by": claim.reviewed_by,
            "version": claim.version,
            "created_at": as_utc(claim.created_at),
        }

    @staticmethod
    def _document_view(doc: ClaimDocument) -> Dict[str, Any]:
        is_image = doc.mime_type.startswith("image/")
        is_pdf = doc.mime_type == "application/pdf"
        return {
            "id": doc.id,
            "document_type": doc.document_type,
            "file_name": doc.file_name,
            "file_size": doc.file_size,
            "mime_type": doc.mime_type,
            "created_at": as_utc(doc.created_at),
            "file_data": doc.file_data,
            "is_image": is_image,
            "is_pdf": is_pdf,
            "is_document": not is_image and not is_pdf,
            "download_url": f"data:{doc.mime_type};base64,{doc.file_data}",
            "formatted_size": format_file_size(doc.file_size),
        }
