"""Pydantic models for the business records queried by condition handlers.

These tables are written elsewhere; the dispatcher only reads them, so the
models are lenient (unknown columns ignored, missing optionals defaulted).
"""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from shared.utils import parse_datetime


class EnrollmentStatus:
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    EXPIRED = "expired"


class DocumentStatus:
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    PENDING_SDI = "pending_sdi"
    SEALED_SDI = "sealed_sdi"
    VOID = "void"


class _BusinessRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | None = None


class Enrollment(_BusinessRecord):
    """Enrollment row (enrollments table)."""

    status: str
    end_date: datetime | None = None
    lessons_remaining: int = 0
    appointments: list[dict] = Field(default_factory=list)

    @field_validator("end_date", mode="before")
    @classmethod
    def _parse_end_date(cls, value):
        return parse_datetime(value)

    @field_validator("lessons_remaining", mode="before")
    @classmethod
    def _default_lessons(cls, value):
        return 0 if value is None else value

    @field_validator("appointments", mode="before")
    @classmethod
    def _default_appointments(cls, value):
        return value or []


class Invoice(_BusinessRecord):
    """Invoice row (invoices table)."""

    status: str
    is_ghost: bool = False
    is_deleted: bool = False
    issue_date: datetime | None = None

    @field_validator("is_ghost", "is_deleted", mode="before")
    @classmethod
    def _default_flags(cls, value):
        return bool(value)

    @field_validator("issue_date", mode="before")
    @classmethod
    def _parse_issue_date(cls, value):
        return parse_datetime(value)


class Installment(BaseModel):
    """Payment instalment embedded in a quote.

    Instalments are stored as JSON written by the web client, so both the
    camelCase keys it uses and snake_case keys are accepted.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    description: str = ""
    due_date: datetime | None = Field(
        default=None, validation_alias=AliasChoices("due_date", "dueDate")
    )
    amount: float = 0.0
    is_paid: bool = Field(default=False, validation_alias=AliasChoices("is_paid", "isPaid"))

    @field_validator("description", mode="before")
    @classmethod
    def _none_description(cls, value):
        return value or ""

    @field_validator("due_date", mode="before")
    @classmethod
    def _parse_due_date(cls, value):
        return parse_datetime(value)

    @field_validator("is_paid", mode="before")
    @classmethod
    def _default_paid(cls, value):
        return bool(value)


class Quote(_BusinessRecord):
    """Quote row (quotes table) with its instalment plan."""

    status: str
    installments: list[Installment] = Field(default_factory=list)

    @field_validator("installments", mode="before")
    @classmethod
    def _default_installments(cls, value):
        return value or []
