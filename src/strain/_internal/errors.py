"""Custom exception hierarchy for Strain."""

from __future__ import annotations


class StrainError(Exception):
    """Base exception for all Strain errors.

    Anything that stops a run from starting, or aborts it, is raised as a
    subclass of this class. Failures of individual requests are never
    raised; they are recorded as metrics instead.
    """


class ConfigError(StrainError):
    """Raised when a load configuration or engine setting is invalid.

    Examples:
        - The target URL is malformed or not http/https.
        - The HTTP method is not a known verb.
        - ``clients`` is below 1.
        - A header name or value is not a string.
        - The payload cannot be serialized to JSON.
    """


class MetricsError(StrainError):
    """Raised when a metric namespace cannot be registered or used.

    Examples:
        - The recorder already holds a registered run.
        - Two metrics in the same run share a title.
        - A notification targets a title that was never registered.
    """


class EngineError(StrainError):
    """Raised when the run loop fails for a reason other than cancellation."""
