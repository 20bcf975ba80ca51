"""Metric namespace definitions and run statistics dataclasses."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum

__all__ = [
    "Graph",
    "HttpTitles",
    "LatencySummary",
    "Metric",
    "MetricGroup",
    "MetricKind",
    "RunStats",
]


class MetricKind(Enum):
    """How a metric accumulates notifications."""

    COUNTER = "counter"
    HISTOGRAM = "histogram"


@dataclass(frozen=True)
class Metric:
    """A single named metric.

    Attributes:
        title: Name used with ``notify``. Unique within a run.
        kind: Counter (running total) or histogram (distribution).
    """

    title: str
    kind: MetricKind


@dataclass(frozen=True)
class Graph:
    """A group of metrics plotted together under one unit."""

    title: str
    unit: str
    metrics: tuple[Metric, ...] = ()


@dataclass(frozen=True)
class MetricGroup:
    """The metric namespace declared for one run.

    Attributes:
        name: Human-readable namespace name, e.g. ``"HTTP (run-1)"``.
        graphs: Ordered graphs, each with ordered metric definitions.
    """

    name: str
    graphs: tuple[Graph, ...] = ()

    def iter_metrics(self) -> list[Metric]:
        """Return every metric of every graph, in declaration order."""
        return [metric for graph in self.graphs for metric in graph.metrics]

    def to_dict(self) -> dict[str, object]:
        """Serialize the namespace in its export format."""
        return {
            "name": self.name,
            "graphs": [
                {
                    "title": graph.title,
                    "unit": graph.unit,
                    "metrics": [{"title": m.title, "kind": m.kind.value} for m in graph.metrics],
                }
                for graph in self.graphs
            ],
        }


@dataclass(frozen=True)
class LatencySummary:
    """Distribution summary of a latency histogram, in microseconds."""

    count: int = 0
    min: float = 0.0
    max: float = 0.0
    mean: float = 0.0
    p50: float = 0.0
    p90: float = 0.0
    p95: float = 0.0
    p99: float = 0.0


@dataclass(frozen=True)
class RunStats:
    """Point-in-time view of a run's metrics.

    Attributes:
        run_id: Identifier of the run.
        elapsed_seconds: Seconds since the run started.
        success: Requests answered with a 2xx status.
        fail: Requests answered with any other status.
        other_fail: Requests that got no response at all.
        latency: Latency distribution over all attempts.
    """

    run_id: str
    elapsed_seconds: float
    success: int = 0
    fail: int = 0
    other_fail: int = 0
    latency: LatencySummary = field(default_factory=LatencySummary)

    @property
    def total_requests(self) -> int:
        """Completed attempts of every outcome."""
        return self.success + self.fail + self.other_fail

    @property
    def requests_per_second(self) -> float:
        """Average throughput since the run started."""
        return self.total_requests / max(self.elapsed_seconds, 0.001)

    @property
    def error_rate(self) -> float:
        """Fraction of attempts that were not successful."""
        total = self.total_requests
        return (self.fail + self.other_fail) / total if total else 0.0

    def to_dict(self) -> dict[str, object]:
        data = asdict(self)
        data["total_requests"] = self.total_requests
        data["requests_per_second"] = self.requests_per_second
        data["error_rate"] = self.error_rate
        return data


@dataclass(frozen=True)
class HttpTitles:
    """Titles of the four metrics every HTTP run owns."""

    success: str = ".http_ok"
    fail: str = ".http_fail"
    other_fail: str = ".http_other_fail"
    latency: str = ".latency"
