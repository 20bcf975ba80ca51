"""Strain: sustained parallel HTTP traffic generation with live metrics."""

from __future__ import annotations

from strain._internal.config import EngineSettings, load_settings
from strain._internal.errors import ConfigError, EngineError, MetricsError, StrainError
from strain.engine.load_config import LoadConfig
from strain.engine.manager import Manager
from strain.engine.runner import RunnerState, RunResult, ScenarioRunner
from strain.engine.session import run_load
from strain.http.executor import HttpExecutor, Outcome, RequestResult, classify
from strain.metrics.models import HttpTitles, MetricGroup, RunStats
from strain.metrics.recorder import InMemoryRecorder, MetricsRecorder

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "EngineError",
    "EngineSettings",
    "HttpExecutor",
    "HttpTitles",
    "InMemoryRecorder",
    "LoadConfig",
    "Manager",
    "MetricGroup",
    "MetricsError",
    "MetricsRecorder",
    "Outcome",
    "RequestResult",
    "RunResult",
    "RunStats",
    "RunnerState",
    "ScenarioRunner",
    "StrainError",
    "classify",
    "load_settings",
    "run_load",
]
