"""FastAPI adapter exposing read-only diagnostics endpoints."""

from dataclasses import asdict

from fastapi import APIRouter, Query, Response

from telemetripy.adapters.frameworks.query_params import (
    parse_level_param,
    parse_time_param,
)
from telemetripy.adapters.storage.sqlite_entries import SQLiteEntryStore
from telemetripy.core.encoding.ndjson import encode_logs
from telemetripy.runtime.engine import TelemetryLogger

NDJSON_MEDIA_TYPE = "application/x-ndjson"


def create_diagnostics_router(
    telemetry: TelemetryLogger,
    store: SQLiteEntryStore | None = None,
) -> APIRouter:
    """Create a FastAPI router for diagnostics panels.

    Args:
        telemetry: The logger whose in-memory state is served.
        store: Persistent store to serve from /logs/persisted, if any.

    Returns:
        APIRouter with /logs, /logs/recent, /logs/statistics, /performance
        and /session, plus /logs/persisted when a store is given.
    """
    router = APIRouter()

    @router.get("/logs")
    async def get_logs(
        category: str = Query(default=""),
        level: str | None = Query(default=None),
        since: str | None = Query(default=None),
        until: str | None = Query(default=None),
    ) -> Response:
        """Return matching history entries as NDJSON."""
        entries = telemetry.get_logs(
            category=category,
            min_level=parse_level_param(level),
            start_time=parse_time_param(since),
            end_time=parse_time_param(until),
        )
        return Response(content=encode_logs(entries), media_type=NDJSON_MEDIA_TYPE)

    @router.get("/logs/recent")
    async def get_recent_logs() -> Response:
        """Return the recent buffer as NDJSON."""
        return Response(
            content=encode_logs(telemetry.recent_logs()),
            media_type=NDJSON_MEDIA_TYPE,
        )

    @router.get("/logs/statistics")
    async def get_log_statistics() -> dict[str, object]:
        return asdict(telemetry.get_log_statistics())

    @router.get("/performance")
    async def get_performance() -> dict[str, dict[str, int]]:
        return {
            operation: asdict(stat)
            for operation, stat in telemetry.get_performance_statistics().items()
        }

    @router.get("/session")
    async def get_session() -> dict[str, str | None]:
        session = telemetry.current_session()
        if session is None:
            return {"session_id": "", "start_time": None}
        return {"session_id": session.id, "start_time": session.start_time.isoformat()}

    if store is not None:

        @router.get("/logs/persisted")
        async def get_persisted_logs(since: float = Query(default=0)) -> Response:
            """Return persisted entries newer than a Unix timestamp as NDJSON."""
            entries = [e async for e in store.read(since=since)]
            return Response(content=encode_logs(entries), media_type=NDJSON_MEDIA_TYPE)

    return router
