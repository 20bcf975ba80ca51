"""POST a JSON payload from inside an existing event loop.

Shows the async API: the caller owns the stop event and decides when the
run ends. Here a timer stops it; a real application might wire the event
to its own shutdown path.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from strain import EngineSettings, LoadConfig, ScenarioRunner
from strain.metrics.export import write_json_report


async def main() -> None:
    config = LoadConfig(
        url="http://localhost:8080/api/items",
        method="POST",
        clients=25,
        headers={"Content-Type": "application/json", "Authorization": "Bearer demo-token"},
        post_data={"name": "widget", "quantity": 3},
    )
    runner = ScenarioRunner(settings=EngineSettings(tick_interval=0.5))

    stop = asyncio.Event()
    asyncio.get_running_loop().call_later(20.0, stop.set)
    result = await runner.run(config, stop)

    path = write_json_report(result, Path("results") / f"{result.run_id}.json")
    print(f"Report: {path}")


if __name__ == "__main__":
    asyncio.run(main())
