"""JSON export of a finished run."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import numpy as np

from strain._internal.logging import get_logger

if TYPE_CHECKING:
    from pathlib import Path

    from strain.engine.runner import RunResult
    from strain.metrics.models import RunStats

logger = get_logger("metrics.export")


def throughput_series(snapshots: list[RunStats]) -> list[dict[str, float]]:
    """Per-interval request rate derived from cumulative snapshots.

    Snapshots hold running totals, so the rate of interval ``i`` is the
    difference of totals over the difference of elapsed time.

    Args:
        snapshots: Chronological snapshots of one run.

    Returns:
        One ``{"elapsed_seconds", "requests_per_second", "error_rate"}``
        entry per snapshot.
    """
    if not snapshots:
        return []

    elapsed = np.array([0.0] + [s.elapsed_seconds for s in snapshots], dtype=np.float64)
    totals = np.array([0] + [s.total_requests for s in snapshots], dtype=np.float64)
    errors = np.array([0] + [s.fail + s.other_fail for s in snapshots], dtype=np.float64)

    d_time = np.maximum(np.diff(elapsed), 0.001)
    d_total = np.diff(totals)
    d_errors = np.diff(errors)
    rates = d_total / d_time
    error_rates = np.divide(d_errors, d_total, out=np.zeros_like(d_errors), where=d_total > 0)

    return [
        {
            "elapsed_seconds": float(t),
            "requests_per_second": float(r),
            "error_rate": float(e),
        }
        for t, r, e in zip(elapsed[1:], rates, error_rates, strict=True)
    ]


def result_to_dict(result: RunResult) -> dict[str, object]:
    """Serialize a run result, including its metric namespace."""
    return {
        "run_id": result.run_id,
        "state": result.state.name.lower(),
        "url": result.config.url,
        "method": result.config.method,
        "clients": result.config.clients,
        "started_at": result.started_at,
        "duration_seconds": result.duration_seconds,
        "namespace": result.group.to_dict(),
        "summary": result.final_stats.to_dict() if result.final_stats else None,
        "snapshots": [s.to_dict() for s in result.snapshots],
        "throughput": throughput_series(result.snapshots),
    }


def write_json_report(result: RunResult, path: Path) -> Path:
    """Write ``result`` as indented JSON, creating parent directories.

    Returns:
        The path written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(result_to_dict(result), indent=2))
    logger.info("Report written to %s", path)
    return path
