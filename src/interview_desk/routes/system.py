"""System routes — connection diagnostics and reset."""

import logging

from fastapi import APIRouter, Request

from interview_desk import database as db

router = APIRouter()
log = logging.getLogger(__name__)


@router.get("/status")
async def connection_status(request: Request):
    """Whether the backend is configured and answers a one-row read."""
    desk = request.app.state.desk
    if desk.config_error is not None:
        return {"configured": False, "connected": False, "detail": desk.config_error.message}
    await db.ping(desk.store)
    return {"configured": True, "connected": True}


@router.post("/reset")
async def reset_connection(request: Request):
    """Rebuild the backend client and ping it; refetch the directory on success."""
    desk = request.app.state.desk.require()
    await desk.store.reset()
    await db.ping(desk.store)
    log.info("Backend connection re-established")
    if desk.session.is_authenticated:
        await desk.directory.refresh(force=True)
    return {"status": "connected"}
