from contextlib import asynccontextmanager
from time import perf_counter
from typing import Any

from fastapi import FastAPI, Request

from domoticz_bridge.core import settings
from domoticz_bridge.routers import config, context, device, log, tool_call
from domoticz_bridge.services.log_service import log_http_request, start_log_worker, stop_log_worker
from domoticz_bridge.services.sync_service import SYNC_STATE, SyncLoop


@asynccontextmanager
async def lifespan(app: FastAPI):
    start_log_worker()
    sync_loop = SyncLoop(state=SYNC_STATE)
    app.state.sync_loop = sync_loop
    sync_loop.start()
    try:
        yield
    finally:
        await sync_loop.stop()
        stop_log_worker()


app = FastAPI(title=settings.APP_NAME, version="0.1.0", lifespan=lifespan)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = perf_counter()
    response = await call_next(request)
    log_http_request(
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round((perf_counter() - started) * 1000, 2),
        client_ip=request.client.host if request.client else None,
    )
    return response


@app.get("/health")
async def health() -> dict[str, Any]:
    return {
        "service": settings.APP_NAME,
        "status": "ok",
        "controller_base_url": settings.DOMOTICZ_BASE_URL,
        "sync_phase": SYNC_STATE.phase,
        "version": SYNC_STATE.version,
    }


app.include_router(context.router)
app.include_router(tool_call.router)
app.include_router(device.router)
app.include_router(config.router)
app.include_router(log.router)
