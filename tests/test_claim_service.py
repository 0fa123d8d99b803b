"""Claim submission tests: validation, ownership and best-effort document intake."""
import base64
from datetime import date, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import func
from sqlalchemy.exc import OperationalError
from sqlalchemy.future import select

from conftest import (
    CAR_POLICY_ID,
    WALLET_A,
    WALLET_B,
    claim_payload,
    fetch_claim,
    fetch_documents,
    make_attachment,
)
from insurfi.core.exceptions import PolicyNotFound, ValidationError
from insurfi.models.claim import Claim, ClaimStatus, PolicyType
from insurfi.services.claim_service import ClaimService, parse_amount, parse_incident_date
from insurfi.services.notifications import ADMIN_CHANNEL, NotificationSink

MAX_SIZE = 10 * 1024 * 1024


async def _claim_count(db) -> int:
    return (await db.execute(select(func.count(Claim.id)))).scalar_one()


class FlakyStorageService(ClaimService):
    """Fails to store the attachments whose file names are listed in ``failing``."""

    def __init__(self, db, failing):
        super().__init__(db)
        self.failing = set(failing)

    async def _store_document(self, claim_id, wallet_address, document_type, attachment):
        if attachment.filename in self.failing:
            raise OperationalError("INSERT INTO claim_documents", {}, Exception("disk I/O error"))
        return await super()._store_document(claim_id, wallet_address, document_type, attachment)


@pytest.mark.asyncio
async def test_submit_claim_with_two_documents(service, db):
    result = await service.submit_claim(
        claim_payload(),
        [make_attachment("photo1.jpg", 2048), make_attachment("estimate.pdf", 4096, "application/pdf")],
    )

    assert result.claim_id.startswith("CLM-")
    assert result.status == ClaimStatus.PENDING
    assert result.documents_uploaded == 2
    assert result.documents_submitted == 2
    assert [(f.name, f.size, f.type) for f in result.files_info] == [
        ("photo1.jpg", 2048, "image/jpeg"),
        ("estimate.pdf", 4096, "application/pdf"),
    ]

    claim = await fetch_claim(db, result.claim_id)
    assert claim.wallet_address == WALLET_A
    assert claim.policy_type == PolicyType.HOME
    assert claim.claim_amount == Decimal("1500.00")
    assert claim.incident_date == date(2024, 3, 1)
    assert claim.status == ClaimStatus.PENDING
    assert claim.documents_count == 2
    assert claim.version == 1

    documents = await fetch_documents(db, result.claim_id)
    assert sorted(d.file_name for d in documents) == ["estimate.pdf", "photo1.jpg"]
    photo = next(d for d in documents if d.file_name == "photo1.jpg")
    assert photo.uploaded_by == WALLET_A
    assert photo.document_type == "supporting_document"
    assert base64.b64decode(photo.file_data) == b"\x01" * 2048


@pytest.mark.asyncio
async def test_submission_notifies_wallet_and_admins(service, db):
    result = await service.submit_claim(claim_payload())

    wallet_messages = await NotificationSink(db).list_for_wallet(WALLET_A)
    assert [(n.type, n.title) for n in wallet_messages] == [("claim_submitted", "Claim Submitted Successfully")]
    assert result.claim_id in wallet_messages[0].message

    admin_messages = await NotificationSink(db).list_for_wallet(ADMIN_CHANNEL)
    assert admin_messages[0].type == "new_claim"
    assert admin_messages[0].message == f"New home insurance claim {result.claim_id} submitted by 0xAAA000..."


@pytest.mark.asyncio
async def test_claim_ids_are_unique(service):
    ids = {(await service.submit_claim(claim_payload())).claim_id for _ in range(5)}
    assert len(ids) == 5


@pytest.mark.asyncio
async def test_submit_without_documents(service, db):
    result = await service.submit_claim(claim_payload(policy_type="car", policy_id=CAR_POLICY_ID))
    assert result.documents_uploaded == 0
    assert result.files_info == []
    assert (await fetch_claim(db, result.claim_id)).documents_count == 0


@pytest.mark.asyncio
async def test_policy_type_is_case_insensitive(service, db):
    result = await service.submit_claim(claim_payload(policy_type="HOME"))
    assert (await fetch_claim(db, result.claim_id)).policy_type == PolicyType.HOME


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", ["0", "0.00", "-10", "ten", "NaN"])
async def test_rejects_non_positive_amount(service, db, amount):
    with pytest.raises(ValidationError):
        await service.submit_claim(claim_payload(claim_amount=amount))
    assert await _claim_count(db) == 0


@pytest.mark.asyncio
async def test_smallest_amount_is_accepted(service, db):
    result = await service.submit_claim(claim_payload(claim_amount="0.01"))
    assert (await fetch_claim(db, result.claim_id)).claim_amount == Decimal("0.01")


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["wallet_address", "policy_type", "policy_id", "claim_amount", "description", "incident_date"])
async def test_missing_field(service, db, field):
    payload = claim_payload()
    del payload[field]
    with pytest.raises(ValidationError) as excinfo:
        await service.submit_claim(payload)
    assert excinfo.value.context["missing"] == [field]
    assert await _claim_count(db) == 0


@pytest.mark.asyncio
async def test_blank_field_counts_as_missing(service):
    with pytest.raises(ValidationError):
        await service.submit_claim(claim_payload(description="   "))


@pytest.mark.asyncio
async def test_invalid_policy_type(service, db):
    with pytest.raises(ValidationError) as excinfo:
        await service.submit_claim(claim_payload(policy_type="boat"))
    assert str(excinfo.value) == "Invalid policy type. Must be home, car, or travel"
    assert await _claim_count(db) == 0


@pytest.mark.asyncio
async def test_non_numeric_policy_id(service):
    with pytest.raises(ValidationError):
        await service.submit_claim(claim_payload(policy_id="seven"))


@pytest.mark.asyncio
@pytest.mark.parametrize("incident_date", ["2024-02-30", "yesterday", "01/03/2024"])
async def test_invalid_incident_date(service, incident_date):
    with pytest.raises(ValidationError):
        await service.submit_claim(claim_payload(incident_date=incident_date))


@pytest.mark.asyncio
async def test_future_incident_date(service, db):
    tomorrow = (date.today() + timedelta(days=2)).isoformat()
    with pytest.raises(ValidationError):
        await service.submit_claim(claim_payload(incident_date=tomorrow))
    assert await _claim_count(db) == 0


@pytest.mark.asyncio
async def test_foreign_policy_creates_nothing(service, db):
    with pytest.raises(PolicyNotFound):
        await service.submit_claim(claim_payload(wallet_address=WALLET_B), [make_attachment()])
    assert await _claim_count(db) == 0
    assert await NotificationSink(db).list_for_wallet(WALLET_B) == []


@pytest.mark.asyncio
async def test_policy_type_must_match_policy(service, db):
    with pytest.raises(PolicyNotFound):
        await service.submit_claim(claim_payload(policy_type="car"))
    assert await _claim_count(db) == 0


@pytest.mark.asyncio
async def test_unknown_policy(service):
    with pytest.raises(PolicyNotFound):
        await service.submit_claim(claim_payload(policy_id="999"))


@pytest.mark.asyncio
async def test_file_at_size_limit_is_accepted(service, db):
    result = await service.submit_claim(claim_payload(), [make_attachment("scan.pdf", MAX_SIZE, "application/pdf")])
    assert result.documents_uploaded == 1
    assert result.files_info[0].size == MAX_SIZE


@pytest.mark.asyncio
async def test_file_over_size_limit_rejects_submission(service, db):
    with pytest.raises(ValidationError) as excinfo:
        await service.submit_claim(
            claim_payload(),
            [make_attachment("ok.jpg"), make_attachment("scan.pdf", MAX_SIZE + 1, "application/pdf")],
        )
    assert excinfo.value.context["file_name"] == "scan.pdf"
    assert await _claim_count(db) == 0


@pytest.mark.asyncio
async def test_ten_files_accepted(service, db):
    attachments = [make_attachment(f"photo{i}.jpg", 16) for i in range(10)]
    result = await service.submit_claim(claim_payload(), attachments)
    assert result.documents_uploaded == 10
    assert (await fetch_claim(db, result.claim_id)).documents_count == 10


@pytest.mark.asyncio
async def test_eleven_files_rejected(service, db):
    attachments = [make_attachment(f"photo{i}.jpg", 16) for i in range(11)]
    with pytest.raises(ValidationError):
        await service.submit_claim(claim_payload(), attachments)
    assert await _claim_count(db) == 0


@pytest.mark.asyncio
async def test_disallowed_mime_type(service, db):
    with pytest.raises(ValidationError) as excinfo:
        await service.submit_claim(claim_payload(), [make_attachment("run.exe", 64, "application/x-msdownload")])
    assert excinfo.value.context["mime_type"] == "application/x-msdownload"
    assert await _claim_count(db) == 0


@pytest.mark.asyncio
async def test_limits_are_configurable(db, admin):
    service = ClaimService(db, max_upload_size=100, max_upload_files=1, allowed_mime_types=["text/plain"])
    with pytest.raises(ValidationError):
        await service.submit_claim(claim_payload(), [make_attachment("a.txt", 101, "text/plain")])
    with pytest.raises(ValidationError):
        await service.submit_claim(claim_payload(), [make_attachment("a.jpg", 10)])
    with pytest.raises(ValidationError):
        await service.submit_claim(
            claim_payload(), [make_attachment("a.txt", 10, "text/plain"), make_attachment("b.txt", 10, "text/plain")]
        )
    result = await service.submit_claim(claim_payload(), [make_attachment("a.txt", 100, "text/plain")])
    assert result.documents_uploaded == 1


@pytest.mark.asyncio
async def test_failed_document_is_skipped(db, admin):
    service = FlakyStorageService(db, failing={"photo2.jpg"})
    result = await service.submit_claim(
        claim_payload(),
        [make_attachment("photo1.jpg"), make_attachment("photo2.jpg"), make_attachment("photo3.jpg")],
    )

    assert result.status == ClaimStatus.PENDING
    assert result.documents_submitted == 3
    assert result.documents_uploaded == 2
    assert [f.name for f in result.files_info] == ["photo1.jpg", "photo3.jpg"]

    claim = await fetch_claim(db, result.claim_id)
    documents = await fetch_documents(db, result.claim_id)
    assert claim.documents_count == len(documents) == 2
    assert sorted(d.file_name for d in documents) == ["photo1.jpg", "photo3.jpg"]


@pytest.mark.asyncio
async def test_all_documents_failing_still_keeps_claim(db, admin):
    service = FlakyStorageService(db, failing={"a.jpg", "b.jpg"})
    result = await service.submit_claim(claim_payload(), [make_attachment("a.jpg"), make_attachment("b.jpg")])

    assert result.documents_uploaded == 0
    claim = await fetch_claim(db, result.claim_id)
    assert claim.status == ClaimStatus.PENDING
    assert claim.documents_count == 0
    assert await NotificationSink(db).list_for_wallet(WALLET_A)


def test_parse_amount_rounds_to_cents():
    assert parse_amount("10.005") == Decimal("10.01")
    assert parse_amount(" 42 ") == Decimal("42.00")


def test_parse_amount_upper_bound():
    assert parse_amount("9999999999999.99") == Decimal("9999999999999.99")
    for value in ("10000000000000", "1e14", "1e30", "Infinity"):
        with pytest.raises(ValidationError):
            parse_amount(value)


@pytest.mark.asyncio
async def test_huge_amount_creates_nothing(service, db):
    with pytest.raises(ValidationError):
        await service.submit_claim(claim_payload(claim_amount="1e30"))
    assert await _claim_count(db) == 0


def test_parse_incident_date_today_is_allowed():
    today = date(2024, 6, 1)
    assert parse_incident_date("2024-06-01", today=today) == today
    with pytest.raises(ValidationError):
        parse_incident_date("2024-06-02", today=today)
