# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Change stream endpoint.

- GET /changes/{table} - Server-Sent Events for committed writes on a table

Each event is named after its operation (``insert``, ``update``) and
carries the serialized ChangeEvent as JSON. Consumers are expected to
refetch their lists on any event. Comment lines are sent periodically to
keep idle connections open.
"""

import asyncio
import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import StreamingResponse

from src.api.dependencies import get_acting_admin
from src.infrastructure.events import (
    ChangeEvent,
    ChangeNotificationBus,
    ChangeOp,
    Tables,
    get_change_bus,
)

logger = logging.getLogger(__name__)

router = APIRouter()

KEEPALIVE_SECONDS = 15.0


def format_sse(event: ChangeEvent) -> str:
    """Render a change event as one SSE message."""
    data = json.dumps(event.to_dict(), default=str)
    return f"id: {event.event_id}\nevent: {event.op.value.lower()}\ndata: {data}\n\n"


def _parse_ops(ops: str | None) -> set[ChangeOp] | None:
    if not ops:
        return None
    try:
        return {ChangeOp(op.strip().upper()) for op in ops.split(",") if op.strip()}
    except ValueError as e:
        raise HTTPException(
            status_code=422,
            detail=f"Unknown operation in ops: {ops}",
        ) from e


@router.get(
    "/{table}",
    summary="Stream table changes",
    description="""
    Server-Sent Events stream of committed writes on one table.

    `ops` optionally restricts the stream, e.g. `ops=INSERT,UPDATE`.
    Tables: registration_requests, users, user_profiles, approval_logs,
    companies.
    """,
    responses={404: {"description": "Unknown table"}},
)
async def stream_changes(
    table: str,
    request: Request,
    ops: str | None = Query(None),
    admin_id: str = Depends(get_acting_admin),
    bus: ChangeNotificationBus = Depends(get_change_bus),
) -> StreamingResponse:
    """Stream change events for a table."""
    if table not in Tables.ALL:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown table: {table}",
        )
    event_types = _parse_ops(ops)
    subscription = bus.subscribe(table, event_types)
    logger.info("Change stream opened: table=%s, admin=%s", table, admin_id)

    async def event_generator():
        """Forward subscription events until the client goes away."""
        try:
            yield ": connected\n\n"
            while not await request.is_disconnected():
                try:
                    event = await asyncio.wait_for(subscription.get(), KEEPALIVE_SECONDS)
                except asyncio.TimeoutError:
                    yield ": keepalive\n\n"
                    continue
                if event is None:
                    break
                yield format_sse(event)
        finally:
            subscription.close()
            logger.info("Change stream closed: table=%s, admin=%s", table, admin_id)

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        },
    )
