from .admin import AdminUser, AdminSession, AdminRole
from .claim import Claim, ClaimDocument, ClaimStatus, PolicyType
from .policy import Policy, PolicyStatus
from .audit import Notification, NotificationType, AdminActivity

__all__ = [
    "AdminUser",
    "AdminSession",
    "AdminRole",
    "Claim",
    "ClaimDocument",
    "ClaimStatus",
    "PolicyType",
    "Policy",
    "PolicyStatus",
    "Notification",
    "NotificationType",
    "AdminActivity",
]
