"""HTTP request execution."""

from __future__ import annotations

from strain.http.executor import HttpExecutor, Outcome, RequestResult, classify

__all__ = [
    "HttpExecutor",
    "Outcome",
    "RequestResult",
    "classify",
]
