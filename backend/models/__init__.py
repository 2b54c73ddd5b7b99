"""Pydantic models for data validation and type checking."""

from models.business import (
    DocumentStatus,
    Enrollment,
    EnrollmentStatus,
    Installment,
    Invoice,
    Quote,
)
from models.notification import (
    ConditionResult,
    DispatchResult,
    FocusConfig,
    FocusPreference,
    LocalTime,
    NotificationIntent,
    NotificationRule,
    TokenRecord,
)

__all__ = [
    "NotificationRule",
    "TokenRecord",
    "FocusConfig",
    "FocusPreference",
    "LocalTime",
    "ConditionResult",
    "NotificationIntent",
    "DispatchResult",
    "Enrollment",
    "EnrollmentStatus",
    "Invoice",
    "DocumentStatus",
    "Installment",
    "Quote",
]
