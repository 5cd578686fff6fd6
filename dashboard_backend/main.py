# file: dashboard_backend/main.py

import asyncio
import logging
import uvicorn
from fastapi import FastAPI, HTTPException, Query, WebSocket
from contextlib import asynccontextmanager
from typing import List, Optional

from dashboard_backend.aggregator import Aggregator
from dashboard_backend.aqi import severity_band
from dashboard_backend.calitate_aer_api import CalitateAerClient
from dashboard_backend.config import Settings, load_settings
from dashboard_backend.copernicus_api import CopernicusClient
from dashboard_backend.fallback import FallbackGenerator
from dashboard_backend.health import ProviderHealth
from dashboard_backend.models import (AirQualitySample, HistoricalPoint, ProviderStatus, SeverityBand, Snapshot,
                                      SnapshotNotice, Station, WeatherReport)
from dashboard_backend.scheduler import RefreshScheduler
from dashboard_backend.snapshot_store import SnapshotStore

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')


def create_app(settings: Optional[Settings] = None, store: Optional[SnapshotStore] = None,
               health: Optional[ProviderHealth] = None) -> FastAPI:
    settings = settings or load_settings()
    health = health or ProviderHealth()
    providers = []
    if store is None:
        air_quality = CalitateAerClient(settings, health)
        weather = CopernicusClient(settings, health)
        providers = [air_quality, weather]
        store = SnapshotStore(Aggregator(air_quality, weather, FallbackGenerator(settings), settings))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Build the first snapshot, then refresh it on a fixed interval until shutdown."""
        scheduler = RefreshScheduler(store, settings.refresh_interval_seconds)
        await store.refresh()
        scheduler.start()
        yield
        await scheduler.stop()
        for provider in providers:
            await provider.close()

    app = FastAPI(
        title="Bucharest Air Dashboard",
        description="Aggregated air quality and weather snapshot for the Bucharest region.",
        version="0.1",
        lifespan=lifespan
    )
    app.state.store = store
    app.state.health = health

    def current_snapshot() -> Snapshot:
        snapshot = store.get_snapshot()
        if snapshot is None:
            raise HTTPException(status_code=503, detail="Snapshot not built yet")
        return snapshot

    @app.get("/snapshot", response_model=Snapshot)
    async def snapshot():
        """Latest aggregated snapshot."""
        return current_snapshot()

    @app.post("/snapshot/refresh", response_model=SnapshotNotice)
    async def refresh():
        """Run an aggregation cycle now instead of waiting for the next scheduled one."""
        rebuilt = await store.refresh()
        if rebuilt is None:
            raise HTTPException(status_code=503, detail=store.last_error or "Snapshot was superseded")
        return SnapshotNotice(cycle_id=rebuilt.cycle_id, last_updated=rebuilt.last_updated)

    @app.get("/snapshot/air_quality", response_model=List[AirQualitySample])
    async def air_quality():
        return current_snapshot().air_quality

    @app.get("/snapshot/weather", response_model=WeatherReport)
    async def weather():
        return current_snapshot().weather

    @app.get("/snapshot/historical", response_model=List[HistoricalPoint])
    async def historical():
        return current_snapshot().historical

    @app.get("/snapshot/stations", response_model=List[Station])
    async def stations():
        return current_snapshot().stations

    @app.get("/severity", response_model=SeverityBand)
    async def severity(index: float = Query(..., ge=0, description="Air quality index to classify")):
        """Severity band (label and colour) for an index value."""
        return severity_band(index)

    @app.get("/health/providers", response_model=List[ProviderStatus])
    async def provider_health():
        """Absorbed upstream failures per provider."""
        return health.report()

    @app.websocket("/ws/snapshots")
    async def snapshot_updates(websocket: WebSocket):
        """Push a notice every time the snapshot is replaced."""
        await websocket.accept()
        queue = store.subscribe()
        logging.info("Snapshot subscriber connected")
        try:
            latest = store.get_snapshot()
            if latest is not None:
                notice = SnapshotNotice(cycle_id=latest.cycle_id, last_updated=latest.last_updated)
                await websocket.send_json(notice.model_dump(mode="json"))
            while True:
                receive = asyncio.ensure_future(websocket.receive())
                update = asyncio.ensure_future(queue.get())
                done, pending = await asyncio.wait({receive, update}, return_when=asyncio.FIRST_COMPLETED)
                for task in pending:
                    task.cancel()
                if update in done:
                    await websocket.send_json(update.result().model_dump(mode="json"))
                if receive in done and receive.result()["type"] == "websocket.disconnect":
                    break
        finally:
            store.unsubscribe(queue)
            logging.info("Snapshot subscriber disconnected")

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000, log_level="info")
