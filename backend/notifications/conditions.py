"""
Condition handlers for notification rules.

Each rule kind maps to one handler in CONDITION_HANDLERS. A handler queries
the business tables and answers whether the rule should notify today, how
many records triggered it, and the message body to send.

New kinds are added by decorating a function with ``@register_condition``;
existing handlers never need to change.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Callable

from config.dispatch_settings import (
    BALANCE_DUE_AFTER_DAYS,
    ENROLLMENTS_TABLE,
    EXPIRY_LOOKAHEAD_DAYS,
    INSTALLMENT_LOOKAHEAD_DAYS,
    INVOICES_TABLE,
    LOW_LESSONS_THRESHOLD,
    QUOTES_TABLE,
)
from models.business import (
    DocumentStatus,
    Enrollment,
    EnrollmentStatus,
    Invoice,
    Quote,
)
from models.notification import (
    CUSTOM_RULE_KIND,
    ConditionResult,
    LocalTime,
    NotificationRule,
)
from models.types import RuleKind
from notifications.error_logger import log_notification_error


@dataclass(frozen=True)
class EvaluationContext:
    """What a handler may look at: the data store and the tick's local time."""

    supabase: Any
    now: LocalTime

    @property
    def today(self) -> date:
        return self.now.local_now.date()

    def local_date(self, value: datetime) -> date:
        """Calendar date of a stored timestamp in the business time zone."""
        if value.tzinfo is not None:
            return value.astimezone(self.now.local_now.tzinfo).date()
        return value.date()


ConditionHandler = Callable[[NotificationRule, EvaluationContext], ConditionResult]

CONDITION_HANDLERS: dict[RuleKind, ConditionHandler] = {}


def register_condition(kind: RuleKind) -> Callable[[ConditionHandler], ConditionHandler]:
    """Register a handler for a rule kind."""

    def decorator(handler: ConditionHandler) -> ConditionHandler:
        if kind in CONDITION_HANDLERS:
            raise ValueError(f"Condition handler already registered for {kind!r}")
        CONDITION_HANDLERS[kind] = handler
        return handler

    return decorator


def _plural(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


def _count_result(count: int, message: str) -> ConditionResult:
    return ConditionResult(should_send=count > 0, count=count, message=message)


def _fetch_rows(supabase: Any, table: str, columns: str, **equals: Any) -> list[dict[str, Any]]:
    query = supabase.table(table).select(columns)
    for column, value in equals.items():
        query = query.eq(column, value)
    response = query.execute()
    return response.data or []


def _active_enrollments(context: EvaluationContext) -> list[Enrollment]:
    rows = _fetch_rows(
        context.supabase,
        ENROLLMENTS_TABLE,
        "id, status, end_date, lessons_remaining",
        status=EnrollmentStatus.ACTIVE,
    )
    return [Enrollment.model_validate(row) for row in rows]


@register_condition(CUSTOM_RULE_KIND)
def custom_reminder(rule: NotificationRule, context: EvaluationContext) -> ConditionResult:
    """Static reminder: always sent, body is the rule description."""
    return ConditionResult(should_send=True, count=1, message=rule.description)


@register_condition("payment_required")
def payment_pending(rule: NotificationRule, context: EvaluationContext) -> ConditionResult:
    rows = _fetch_rows(
        context.supabase, ENROLLMENTS_TABLE, "id, status", status=EnrollmentStatus.PENDING
    )
    count = len(rows)
    verb = _plural(count, "enrollment is", "enrollments are")
    return _count_result(count, f"{count} {verb} awaiting payment.")


@register_condition("expiry")
def expiring_soon(rule: NotificationRule, context: EvaluationContext) -> ConditionResult:
    today = context.today
    horizon = today + timedelta(days=EXPIRY_LOOKAHEAD_DAYS)

    count = 0
    for enrollment in _active_enrollments(context):
        if enrollment.end_date is None:
            continue
        if today <= context.local_date(enrollment.end_date) <= horizon:
            count += 1

    noun = _plural(count, "enrollment expires", "enrollments expire")
    return _count_result(count, f"{count} {noun} within {EXPIRY_LOOKAHEAD_DAYS} days.")


@register_condition("balance_due")
def balance_outstanding(rule: NotificationRule, context: EvaluationContext) -> ConditionResult:
    """Deposit-only (ghost) draft invoices still waiting for the balance."""
    rows = _fetch_rows(
        context.supabase,
        INVOICES_TABLE,
        "id, status, is_ghost, is_deleted, issue_date",
        is_ghost=True,
        status=DocumentStatus.DRAFT,
    )

    count = 0
    for invoice in (Invoice.model_validate(row) for row in rows):
        if invoice.is_deleted or not invoice.is_ghost or invoice.issue_date is None:
            continue
        age = (context.today - context.local_date(invoice.issue_date)).days
        if age > BALANCE_DUE_AFTER_DAYS:
            count += 1

    noun = _plural(count, "deposit invoice is", "deposit invoices are")
    return _count_result(
        count,
        f"{count} {noun} waiting for the balance for more than {BALANCE_DUE_AFTER_DAYS} days.",
    )


@register_condition("low_lessons")
def low_remaining_sessions(rule: NotificationRule, context: EvaluationContext) -> ConditionResult:
    count = sum(
        1
        for enrollment in _active_enrollments(context)
        if enrollment.lessons_remaining <= LOW_LESSONS_THRESHOLD
    )
    noun = _plural(count, "active enrollment has", "active enrollments have")
    return _count_result(
        count, f"{count} {noun} {LOW_LESSONS_THRESHOLD} or fewer lessons remaining."
    )


@register_condition("institutional_billing")
def installment_due(rule: NotificationRule, context: EvaluationContext) -> ConditionResult:
    """Unpaid instalments of accepted (paid) quotes due within the look-ahead."""
    rows = _fetch_rows(
        context.supabase, QUOTES_TABLE, "id, status, installments", status=DocumentStatus.PAID
    )
    horizon = context.today + timedelta(days=INSTALLMENT_LOOKAHEAD_DAYS)

    count = 0
    for quote in (Quote.model_validate(row) for row in rows):
        for installment in quote.installments:
            if installment.is_paid or installment.due_date is None:
                continue
            # Overdue instalments are still unpaid, so they count too
            if context.local_date(installment.due_date) <= horizon:
                count += 1

    noun = _plural(count, "institutional instalment is", "institutional instalments are")
    return _count_result(
        count, f"{count} {noun} due within {INSTALLMENT_LOOKAHEAD_DAYS} days."
    )


def evaluate_rule(rule: NotificationRule, context: EvaluationContext) -> ConditionResult:
    """
    Run the rule's condition handler.

    Never raises: an unknown kind or a failing handler yields
    should_send=False (with ``error`` set for failures) so the remaining
    rules of the tick are still evaluated.
    """
    handler = CONDITION_HANDLERS.get(rule.kind)
    if handler is None:
        print(f"  ⚠️  No condition handler for rule kind {rule.kind!r}, skipping")
        return ConditionResult(should_send=False)

    try:
        return handler(rule, context)
    except Exception as e:
        error_file = log_notification_error(
            error_type="evaluation",
            error_message=str(e),
            context={
                "rule_id": rule.id,
                "rule_kind": rule.kind,
                "local_date": context.now.local_date,
            },
        )
        print(f"  ✗ Condition check failed for rule {rule.id}. Details logged to: {error_file}")
        return ConditionResult(should_send=False, error=str(e))
