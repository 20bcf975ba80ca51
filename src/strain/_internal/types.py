"""Shared type aliases for Strain."""

from __future__ import annotations

from typing import Any

# HTTP headers dictionary.
Headers = dict[str, str]

# Structured request payload, serialized to bytes once per run.
PostData = Any
