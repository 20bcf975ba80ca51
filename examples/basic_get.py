"""Basic GET run, the simplest possible use of the engine.

Ten workers hit one endpoint for thirty seconds. The CLI equivalent is:

    strain run http://localhost:8080/ --clients 10 --duration 30
"""

from __future__ import annotations

from strain import LoadConfig, run_load

if __name__ == "__main__":
    result = run_load(LoadConfig(url="http://localhost:8080/", clients=10), 30.0)

    stats = result.final_stats
    if stats is not None:
        print(f"{stats.total_requests} requests, {stats.requests_per_second:.1f} req/s")
        print(f"ok={stats.success} fail={stats.fail} other_fail={stats.other_fail}")
        print(f"p95 latency: {stats.latency.p95 / 1000:.1f}ms")
