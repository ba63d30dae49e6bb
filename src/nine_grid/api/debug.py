"""Debug endpoints backing the log panel."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from fastapi import APIRouter, Request

if TYPE_CHECKING:
    from nine_grid.containers import AppContainer
    from nine_grid.domain.logs import LogEntry

router = APIRouter(prefix="/debug", tags=["debug"])


@router.get("/logs")
async def list_logs(request: Request, limit: int | None = None) -> dict[str, object]:
    """Return log entries, newest first."""
    container: AppContainer = request.app.state.container
    entries = container.log_sink.entries()
    if limit is not None:
        entries = entries[: max(limit, 0)]
    return {"logs": [_serialize_entry(entry) for entry in entries]}


@router.delete("/logs")
async def clear_logs(request: Request) -> dict[str, object]:
    """Clear every log entry."""
    container: AppContainer = request.app.state.container
    container.log_sink.clear()
    return {"logs": []}


@router.get("/status")
async def debug_status(request: Request) -> dict[str, object]:
    """Report authentication, storage connection and bucket status."""
    container: AppContainer = request.app.state.container
    principal = container.identity_service.principal
    connection = await asyncio.to_thread(container.grid_store.test_connection)
    bucket = await asyncio.to_thread(container.grid_store.bucket_status)
    return {
        "auth": {
            "authenticated": principal is not None,
            "user_id": principal.id if principal else None,
            "email": principal.email if principal else None,
        },
        "connection": {
            "status": "connected" if connection.connected else "error",
            "buckets": connection.bucket_names,
            "error": connection.error,
        },
        "bucket": {
            "name": bucket.name,
            "url": bucket.url,
            "status": "exists" if bucket.exists else "error",
            "error": bucket.error,
        },
    }


def _serialize_entry(entry: LogEntry) -> dict[str, object]:
    return {
        "id": entry.id,
        "timestamp": entry.timestamp.isoformat(),
        "level": entry.level.value,
        "message": entry.message,
        "details": entry.details,
    }
