"""
TrinityChain Node Monitor API Server

FastAPI application that polls a TrinityChain node and serves derived
metrics and diagnostics.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import (
    API_HOST, API_PORT, NODE_URL, POLL_INTERVAL_MS, AUTO_START, CORS_ORIGINS,
    DEBUG_MODE, SERVICE_VERSION
)
from diagnostic_log import DiagnosticLog
from models import Severity
from node_client import NodeClient
from routes import create_router
from scheduler import PollingScheduler
from snapshot_store import SnapshotStore

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if DEBUG_MODE else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

def create_app(client: Optional[NodeClient] = None, auto_start: bool = AUTO_START) -> FastAPI:
    """Build the application; the lifespan owns client, store and scheduler."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        logger.info("Starting TrinityChain Node Monitor", extra={"node_url": NODE_URL})

        node_client = client or NodeClient(NODE_URL)
        store = SnapshotStore(DiagnosticLog())
        scheduler = PollingScheduler(node_client, store, interval_ms=POLL_INTERVAL_MS)
        app.state.store = store
        app.state.scheduler = scheduler

        store.log.append("Diagnostic log initialized", Severity.INFO)
        if auto_start:
            await scheduler.start()
        else:
            logger.info("Auto start disabled - waiting for /polling/start")

        yield

        # Shutdown
        logger.info("Shutting down TrinityChain Node Monitor")
        await scheduler.close()
        await node_client.close()

    app = FastAPI(
        title="TrinityChain Node Monitor API",
        description="Polls a TrinityChain node and serves chart series and a diagnostic log",
        version=SERVICE_VERSION,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )

    app.include_router(create_router())
    return app

app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=API_HOST,
        port=API_PORT,
        reload=False,
        log_level="info"
    )
