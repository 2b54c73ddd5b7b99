"""Exceptions raised by the fatal phases of a notification tick."""


class DispatcherError(Exception):
    """Base class for dispatcher failures."""


class TimeResolutionError(DispatcherError):
    """The injected clock or the configured time zone is unusable."""


class RuleLoadError(DispatcherError):
    """The notification_rules table could not be read."""


class TokenLoadError(DispatcherError):
    """The fcm_tokens table could not be read."""


class PreferenceLoadError(DispatcherError):
    """The user_preferences table could not be read (focus briefings skipped)."""
