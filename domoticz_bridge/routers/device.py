from fastapi import APIRouter

from domoticz_bridge.models.schemas import (
    LightControlRequest,
    SceneControlRequest,
    ShutterControlRequest,
    ToolCallResponse,
)
from domoticz_bridge.services.action_service import run_update_lights, run_update_scenes, run_update_shutters

router = APIRouter(prefix="/v1/device", tags=["device"])


@router.post("/lights/control", response_model=ToolCallResponse)
async def control_light_api(req: LightControlRequest) -> ToolCallResponse:
    outcome = await run_update_lights(req.action, req.ids, trace_id=req.trace_id)
    return ToolCallResponse(success=outcome.success, message=outcome.message, trace_id=req.trace_id)


@router.post("/shutters/control", response_model=ToolCallResponse)
async def control_shutter_api(req: ShutterControlRequest) -> ToolCallResponse:
    outcome = await run_update_shutters(req.action, req.ids, trace_id=req.trace_id)
    return ToolCallResponse(success=outcome.success, message=outcome.message, trace_id=req.trace_id)


@router.post("/scenes/control", response_model=ToolCallResponse)
async def control_scene_api(req: SceneControlRequest) -> ToolCallResponse:
    outcome = await run_update_scenes(req.action, req.ids, trace_id=req.trace_id)
    return ToolCallResponse(success=outcome.success, message=outcome.message, trace_id=req.trace_id)
