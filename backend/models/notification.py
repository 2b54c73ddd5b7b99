"""Pydantic models for the notification dispatcher."""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.types import (
    ClockString,
    DateString,
    DayList,
    DayOfWeek,
    PushToken,
    RuleID,
    RuleKind,
)

CLOCK_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

CUSTOM_RULE_KIND: RuleKind = "custom"


def _check_day_range(days: DayList) -> DayList:
    for day in days:
        if day < 0 or day > 6:
            raise ValueError(f"day-of-week out of range: {day}")
    return days


def _check_clock(value: str) -> str:
    if not CLOCK_PATTERN.match(value):
        raise ValueError(f"time must be HH:MM, got {value!r}")
    return value


class NotificationRule(BaseModel):
    """Scheduled trigger rule stored in the notification_rules table."""

    model_config = ConfigDict(str_strip_whitespace=True)

    id: RuleID
    label: str = Field(..., min_length=1)
    description: str = ""
    enabled: bool = True
    days: DayList = Field(default_factory=list)
    time: ClockString
    last_sent_date: DateString | None = None
    is_custom: bool = False
    push_enabled: bool = True

    @field_validator("days", mode="before")
    @classmethod
    def _default_days(cls, value):
        return value or []

    @field_validator("days")
    @classmethod
    def _check_days(cls, value: DayList) -> DayList:
        return _check_day_range(value)

    @field_validator("time")
    @classmethod
    def _check_time(cls, value: str) -> str:
        return _check_clock(value)

    @field_validator("description", mode="before")
    @classmethod
    def _none_description(cls, value: str | None) -> str:
        return value or ""

    @property
    def kind(self) -> RuleKind:
        """Registry key used to pick the condition handler."""
        return CUSTOM_RULE_KIND if self.is_custom else self.id


class FocusConfig(BaseModel):
    """Focus-mode settings embedded in a user's preferences (JSON column)."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    enabled: bool = False
    days: DayList = Field(default_factory=list)
    time: ClockString | None = None

    @field_validator("days", mode="before")
    @classmethod
    def _default_days(cls, value):
        return value or []

    @field_validator("days")
    @classmethod
    def _check_days(cls, value: DayList) -> DayList:
        return _check_day_range(value)

    @field_validator("time")
    @classmethod
    def _check_time(cls, value: str | None) -> str | None:
        if not value:
            return None
        return _check_clock(value)


class FocusPreference(BaseModel):
    """
    One user's focus-mode briefing schedule (user_preferences table).

    Exposes the same days / time / last_sent_date schedule as a rule so the
    dedup gate can decide whether the briefing is due.
    """

    model_config = ConfigDict(extra="ignore")

    user_id: str = Field(..., min_length=1)
    focus_config: FocusConfig = Field(default_factory=FocusConfig)
    focus_last_sent_date: DateString | None = None

    @field_validator("focus_config", mode="before")
    @classmethod
    def _default_config(cls, value):
        return value or {}

    @property
    def is_active(self) -> bool:
        return self.focus_config.enabled and self.focus_config.time is not None

    @property
    def days(self) -> DayList:
        return self.focus_config.days

    @property
    def time(self) -> ClockString:
        return self.focus_config.time or ""

    @property
    def last_sent_date(self) -> DateString | None:
        return self.focus_last_sent_date


class TokenRecord(BaseModel):
    """Registered push address (fcm_tokens table)."""

    model_config = ConfigDict(str_strip_whitespace=True)

    token: PushToken = Field(..., min_length=1)
    user_id: str | None = None
    updated_at: datetime | None = None


class LocalTime(BaseModel):
    """Business-local view of one tick instant."""

    local_date: DateString
    day_of_week: DayOfWeek = Field(..., ge=0, le=6)
    minute_of_day: ClockString
    local_now: datetime


class ConditionResult(BaseModel):
    """Outcome of evaluating one rule's condition handler."""

    should_send: bool
    count: int = 0
    message: str = ""
    error: str | None = None


class NotificationIntent(BaseModel):
    """Channel-agnostic notification for one fired rule.

    ``recipients`` lists the user ids whose devices receive it; None sends
    it to every registered device.
    """

    rule_id: RuleID
    title: str
    body: str
    data: dict[str, str] = Field(default_factory=dict)
    tag: str
    recipients: list[str] | None = None


class DispatchResult(BaseModel):
    """Aggregated delivery outcome of one tick."""

    success_count: int = 0
    failure_count: int = 0
    message_count: int = 0
    stale_tokens: list[PushToken] = Field(default_factory=list)
    error: str | None = None
