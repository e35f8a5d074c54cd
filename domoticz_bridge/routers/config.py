from typing import Any

from fastapi import APIRouter

from domoticz_bridge.models.schemas import ControllerConfigUpdateRequest, ControllerConfigView
from domoticz_bridge.services.config_service import get_controller_config_view, update_controller_config_response

router = APIRouter(prefix="/v1/config", tags=["system"])


@router.get("/controller", response_model=ControllerConfigView)
async def get_controller_config() -> ControllerConfigView:
    return get_controller_config_view()


@router.put("/controller")
async def update_controller_config(req: ControllerConfigUpdateRequest) -> dict[str, Any]:
    return update_controller_config_response(req)
