"""
API routes exposing the monitor's store and scheduler controls.
"""
import logging
from typing import Any, Optional
from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request
from error_sanitizer import sanitizer
from config import IS_PRODUCTION, SERVICE_VERSION
from models import Severity
from scheduler import PollingScheduler
from snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)

def get_store(request: Request) -> SnapshotStore:
    """Dependency to get the snapshot store."""
    return request.app.state.store

def get_scheduler(request: Request) -> PollingScheduler:
    """Dependency to get the polling scheduler."""
    return request.app.state.scheduler

def _parse_severity(severity: Optional[str]) -> Optional[Severity]:
    if severity is None or severity == "all":
        return None
    try:
        return Severity(severity)
    except ValueError:
        allowed = ", ".join(["all"] + [s.value for s in Severity])
        raise HTTPException(status_code=400, detail=f"Unknown severity '{severity}', expected one of: {allowed}")

def create_router() -> APIRouter:
    """Create and configure API router."""
    router = APIRouter()

    @router.get("/")
    async def root():
        """Root endpoint."""
        return {"message": "TrinityChain Node Monitor API", "status": "running", "version": SERVICE_VERSION}

    @router.get("/info/health")
    async def health(store: SnapshotStore = Depends(get_store),
                     scheduler: PollingScheduler = Depends(get_scheduler)):
        """Scheduler state and the overall error indicator."""
        view = store.view
        return {
            "status": "ERROR" if view.error else ("UP" if view.snapshot else "STARTING"),
            "polling": scheduler.status(),
            "error": view.error,
            "last_error": view.last_error,
            "log_counts": store.log.counts(),
            "last_update": view.last_update.isoformat() if view.last_update else None
        }

    @router.get("/info/view")
    async def full_view(store: SnapshotStore = Depends(get_store)):
        """Everything derived in the last applied cycle, read in one go."""
        return store.view.to_dict()

    @router.get("/info/snapshot")
    async def snapshot(store: SnapshotStore = Depends(get_store)):
        """Latest normalized chain statistics."""
        view = store.view
        if not view.snapshot:
            return {"error": "Snapshot not available", "stale": view.error}
        return {
            **view.snapshot.to_dict(),
            "stale": view.error,
            "last_update": view.last_update.isoformat() if view.last_update else None
        }

    @router.get("/info/blocks")
    async def blocks(q: Optional[str] = Query(None, description="Block index, hash or previous hash fragment"),
                     store: SnapshotStore = Depends(get_store)):
        """Recent blocks, newest first, optionally searched by index or hash."""
        view = store.view
        matches = store.find_blocks(q)
        return {
            "blocks": [b.to_dict() for b in matches],
            "shown": len(matches),
            "total": len(view.blocks),
            "stale": view.error
        }

    @router.get("/info/chart")
    async def chart(store: SnapshotStore = Depends(get_store)):
        """Difficulty, transaction and reward series."""
        view = store.view
        return {"points": [p.to_dict() for p in view.chart], "stale": view.error}

    @router.get("/info/network")
    async def network(store: SnapshotStore = Depends(get_store)):
        """Block time / rate series plus network information."""
        view = store.view
        return {
            "points": [p.to_dict() for p in view.network],
            "summary": view.summary.to_dict(),
            "network_info": view.network_info.to_dict(),
            "api_stats": view.api_stats.to_dict() if view.api_stats else None,
            "stale": view.error
        }

    @router.get("/info/peers")
    async def peers(store: SnapshotStore = Depends(get_store)):
        """Peers reported by the node."""
        view = store.view
        return {
            "peerCount": len(view.peers),
            "peers": [p.to_api_response() for p in view.peers]
        }

    @router.get("/logs")
    async def logs(severity: Optional[str] = Query(None),
                   store: SnapshotStore = Depends(get_store)):
        """Diagnostic log, oldest entry first."""
        selected = _parse_severity(severity)
        entries = store.log.list(selected)
        return {
            "entries": [e.to_dict() for e in entries],
            "shown": len(entries),
            "total": len(store.log),
            "capacity": store.log.capacity
        }

    @router.delete("/logs")
    async def clear_logs(store: SnapshotStore = Depends(get_store)):
        store.log.clear()
        return {"cleared": True}

    @router.post("/polling/start")
    async def start_polling(scheduler: PollingScheduler = Depends(get_scheduler)):
        result = await scheduler.start()
        return {"polling": scheduler.status(), "cycle": result.to_dict() if result else None}

    @router.post("/polling/stop")
    async def stop_polling(scheduler: PollingScheduler = Depends(get_scheduler)):
        scheduler.stop()
        return {"polling": scheduler.status()}

    @router.post("/polling/trigger")
    async def trigger_poll(scheduler: PollingScheduler = Depends(get_scheduler)):
        """Run a cycle immediately (the dashboard's refresh button)."""
        try:
            result = await scheduler.trigger_now()
        except Exception as e:
            logger.error("Manual poll failed", extra={"error": str(e)}, exc_info=True)
            error_response = sanitizer.create_safe_error_response(
                e,
                status_code=503,
                is_production=IS_PRODUCTION,
                context={"endpoint": "polling/trigger"}
            )
            raise HTTPException(status_code=503, detail=error_response["message"])
        return {"cycle": result.to_dict()}

    @router.put("/polling/interval")
    async def set_interval(interval_ms: Any = Body(None, embed=True),
                           scheduler: PollingScheduler = Depends(get_scheduler)):
        try:
            scheduler.set_interval(interval_ms)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {"polling": scheduler.status()}

    @router.put("/polling/node")
    async def set_node(node_url: str = Body(..., embed=True),
                       scheduler: PollingScheduler = Depends(get_scheduler)):
        if not node_url.startswith(("http://", "https://")):
            raise HTTPException(status_code=400, detail="Node URL must start with http:// or https://")
        scheduler.set_node_url(node_url)
        return {"polling": scheduler.status()}

    return router
