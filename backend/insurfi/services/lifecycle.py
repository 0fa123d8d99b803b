"""
Claim state machine and the derived status timeline.

    pending -> approved | rejected
    approved -> processing_payment | paid
    processing_payment -> paid

``rejected`` and ``paid`` are terminal.
"""
from typing import Any, Dict, List

from insurfi.core.exceptions import InvalidTransition, ValidationError
from insurfi.models.claim import ClaimStatus

TRANSITIONS = {
    ClaimStatus.PENDING: frozenset({ClaimStatus.APPROVED, ClaimStatus.REJECTED}),
    ClaimStatus.APPROVED: frozenset({ClaimStatus.PROCESSING_PAYMENT, ClaimStatus.PAID}),
    ClaimStatus.PROCESSING_PAYMENT: frozenset({ClaimStatus.PAID}),
    ClaimStatus.REJECTED: frozenset(),
    ClaimStatus.PAID: frozenset(),
}

PAYOUT_ELIGIBLE = frozenset({ClaimStatus.APPROVED, ClaimStatus.PROCESSING_PAYMENT, ClaimStatus.PAID})
PAYABLE = frozenset({ClaimStatus.APPROVED, ClaimStatus.PROCESSING_PAYMENT})
DECIDED = frozenset({
    ClaimStatus.APPROVED,
    ClaimStatus.REJECTED,
    ClaimStatus.PROCESSING_PAYMENT,
    ClaimStatus.PAID,
})


def parse_status(value) -> ClaimStatus:
    try:
        return ClaimStatus(value)
    except ValueError:
        raise ValidationError(
            "Invalid status",
            context={"status": value, "allowed": [s.value for s in ClaimStatus]},
        ) from None


def can_transition(current: ClaimStatus, target: ClaimStatus) -> bool:
    return target in TRANSITIONS[ClaimStatus(current)]


def check_transition(current: ClaimStatus, target: ClaimStatus) -> None:
    current = ClaimStatus(current)
    target = ClaimStatus(target)
    if not can_transition(current, target):
        raise InvalidTransition(
            f"Cannot move claim from {current.value} to {target.value}",
            context={"from_status": current.value, "to_status": target.value},
        )


def build_timeline(claim) -> List[Dict[str, Any]]:
    """Processing steps shown to the wallet, derived from the claim's current state."""
    status = ClaimStatus(claim.status)
    timeline = [
        {
            "status": "submitted",
            "date": claim.created_at,
            "completed": True,
            "description": "Claim submitted successfully",
        },
        {
            # every stored claim has entered review, rejected ones included
            "status": "under_review",
            "date": claim.created_at,
            "completed": status in TRANSITIONS,
            "description": "Claim is being reviewed by our team",
        },
        {
            "status": "decision",
            "date": claim.reviewed_at,
            "completed": status in DECIDED,
            "description": "Claim rejected" if status == ClaimStatus.REJECTED else "Claim approved",
        },
    ]

    if status in PAYOUT_ELIGIBLE:
        timeline.append({
            "status": "processing_payment",
            "date": claim.reviewed_at,
            "completed": status in (ClaimStatus.PROCESSING_PAYMENT, ClaimStatus.PAID),
            "description": "Payment is being processed",
        })

    if status == ClaimStatus.PAID:
        timeline.append({
            "status": "paid",
            "date": claim.payout_date,
            "completed": True,
            "description": "Payment completed",
        })

    return timeline
