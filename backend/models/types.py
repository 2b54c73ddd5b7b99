"""Shared type definitions for type checking.

Uses NewType for IDs to provide compile-time type safety - prevents mixing
different ID types (e.g., passing a push token where a RuleID is expected).

Uses TypeAlias for simple structural types stored as strings.
"""

from typing import NewType, TypeAlias

# ID types using NewType for type safety
RuleID = NewType("RuleID", str)
PushToken = NewType("PushToken", str)

# Structural aliases using TypeAlias
DayOfWeek: TypeAlias = int  # 0=Sunday .. 6=Saturday
DayList: TypeAlias = list[DayOfWeek]
DateString: TypeAlias = str  # YYYY-MM-DD, business-local
ClockString: TypeAlias = str  # HH:MM, 24-hour
RuleKind: TypeAlias = str  # condition registry key
