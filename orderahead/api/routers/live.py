# orderahead/api/routers/live.py
import asyncio

import anyio
from anyio import to_thread
from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status
from fastapi.concurrency import run_in_threadpool

from orderahead.data.database import SessionLocal
from orderahead.domain.errors import NotFoundError
from orderahead.realtime import get_change_feed
from orderahead.repos.business_repo import BusinessRepo
from orderahead.utils.logging import get_logger
from orderahead.utils.settings import LIVE_FEED_THREADS

logger = get_logger(__name__)

router = APIRouter(tags=["live"])

#how long one blocking read on the feed may take before we look at the socket again
POLL_SECONDS = 0.5

_feed_limiter: anyio.CapacityLimiter | None = None


def feed_limiter() -> anyio.CapacityLimiter:
    """
    Threads for blocking feed reads. Kept apart from the default threadpool
    that sync routes (order intake included) run in, so open dashboards
    never take a worker away from a customer placing an order.
    """
    global _feed_limiter
    if _feed_limiter is None:
        _feed_limiter = anyio.CapacityLimiter(LIVE_FEED_THREADS)
    return _feed_limiter


def _check_owner(business_id: int, owner_id: str):
    db = SessionLocal()
    try:
        BusinessRepo(db).get_owned(business_id, owner_id)
    finally:
        db.close()


async def _wait_for_disconnect(websocket: WebSocket):
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


@router.websocket("/businesses/{business_id}/orders/live")
async def live_orders(websocket: WebSocket, business_id: int, owner_id: str = Query(...)):
    """
    Streams one JSON OrderEvent per order insert/update of the business.
    Clients load /businesses/{id}/orders first and treat events as upserts.
    """
    try:
        await run_in_threadpool(_check_owner, business_id, owner_id)
    except (NotFoundError, PermissionError) as e:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=str(e))
        return

    await websocket.accept()
    subscription = get_change_feed().subscribe(business_id)
    disconnected = asyncio.create_task(_wait_for_disconnect(websocket))

    logger.info(f"Live dashboard opened for business {business_id}")
    try:
        while not disconnected.done():
            event = await to_thread.run_sync(subscription.get, POLL_SECONDS, limiter=feed_limiter())
            if event is not None:
                await websocket.send_text(event.model_dump_json())
    except WebSocketDisconnect:
        pass
    finally:
        disconnected.cancel()
        subscription.close()
        logger.info(f"Live dashboard closed for business {business_id}")
