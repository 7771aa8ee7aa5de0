"""Example FastAPI application with telemetry diagnostics endpoints.

Run with:
    uvicorn examples.fastapi_example:app --reload

Endpoints:
    /diagnostics/logs                 - NDJSON history (all entries)
    /diagnostics/logs?level=<level>   - NDJSON history at or above a level
    /diagnostics/logs?since=<ts>      - NDJSON history since a Unix timestamp
    /diagnostics/logs/recent          - NDJSON recent buffer
    /diagnostics/logs/statistics      - counts by level and category
    /diagnostics/logs/persisted       - NDJSON entries from the SQLite store
    /diagnostics/performance          - per-operation timing statistics
    /diagnostics/session              - current session

Instrumentation:
    Handlers time their work with ``telemetry.timed`` and anything logged
    through the standard ``logging`` module is bridged into the same history.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from telemetripy import (
    LoggerConfig,
    PerformanceWarning,
    Sink,
    SQLiteEntryStore,
    TelemetryHandler,
    TelemetryLogger,
)
from telemetripy.adapters.frameworks.fastapi import create_diagnostics_router

Path("logs").mkdir(exist_ok=True)
store = SQLiteEntryStore("logs/entries.db")
telemetry = TelemetryLogger(
    LoggerConfig(
        file_path=Path("logs/example.log"),
        targets={Sink.CONSOLE, Sink.FILE, Sink.PERSISTENT_STORE},
        slow_operation_ms=40,
        real_time=True,
    ),
    store=store,
)
logger = logging.getLogger("example")
logger.addHandler(TelemetryHandler(telemetry))
logger.setLevel(logging.INFO)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    telemetry.start()
    telemetry.subscribe(
        lambda n: print(f"notification: {n}"),  # noqa: T201
        kinds=[PerformanceWarning],
    )
    yield
    telemetry.close()
    await store.close()


app = FastAPI(title="Telemetry Example", lifespan=lifespan)
app.include_router(create_diagnostics_router(telemetry, store), prefix="/diagnostics")


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint timed as the "root" operation."""
    with telemetry.timed("root"):
        await asyncio.sleep(0.01)
        telemetry.info("Root visited", "Http")
        return {"message": "Hello! Check /diagnostics/logs and /diagnostics/performance."}


@app.get("/users")
async def get_users() -> dict[str, list[dict[str, str]]]:
    """Slow enough to raise a performance warning."""
    with telemetry.timed("fetch_users"):
        await asyncio.sleep(0.05)
        logger.info("users fetched", extra={"count": 2})
        return {
            "users": [
                {"id": "1", "name": "Alice"},
                {"id": "2", "name": "Bob"},
            ]
        }


@app.get("/error")
async def error_endpoint() -> dict[str, str]:
    """Logs the failure through the stdlib bridge, then raises."""
    try:
        raise ValueError("Intentional error for demonstration")
    except ValueError:
        logger.exception("error endpoint failed")
        raise
