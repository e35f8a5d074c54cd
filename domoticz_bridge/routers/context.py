from typing import Any

from fastapi import APIRouter

from domoticz_bridge.models.schemas import SyncStatusView
from domoticz_bridge.services.context_service import build_function_schemas, build_instructions
from domoticz_bridge.services.sync_service import SYNC_STATE

router = APIRouter(prefix="/v1", tags=["context"])


@router.get("/status", response_model=SyncStatusView)
async def get_status() -> SyncStatusView:
    return SYNC_STATE.status_view()


@router.get("/context/instructions")
async def get_instructions() -> dict[str, Any]:
    return {"instructions": build_instructions(SYNC_STATE.snapshot)}


@router.get("/context/functions")
async def get_functions() -> dict[str, Any]:
    return {"functions": build_function_schemas(SYNC_STATE.snapshot)}


@router.get("/context/snapshot")
async def get_snapshot() -> dict[str, Any]:
    snapshot = SYNC_STATE.snapshot
    return {"snapshot": snapshot.model_dump(mode="json") if snapshot else None}
