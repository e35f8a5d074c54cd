from typing import Any

from fastapi import HTTPException

from domoticz_bridge.core import settings
from domoticz_bridge.models.schemas import ControllerConfigUpdateRequest, ControllerConfigView


def get_controller_config_view() -> ControllerConfigView:
    with settings.runtime_config_lock:
        return ControllerConfigView(
            base_url=settings.DOMOTICZ_BASE_URL,
            username=settings.DOMOTICZ_USERNAME,
            password_set=bool(settings.DOMOTICZ_PASSWORD),
            timeout_sec=settings.DOMOTICZ_TIMEOUT_SEC,
            sync_interval_sec=settings.SYNC_INTERVAL_SEC,
        )


def apply_controller_config_update(req: ControllerConfigUpdateRequest) -> list[str]:
    """Change connection settings in memory; the next controller call picks them up."""
    updated_fields: list[str] = []
    with settings.runtime_config_lock:
        if req.base_url is not None:
            normalized = req.base_url.strip().rstrip("/")
            if not normalized:
                raise HTTPException(status_code=400, detail="base_url cannot be empty")
            settings.DOMOTICZ_BASE_URL = normalized
            updated_fields.append("base_url")

        if req.username is not None:
            settings.DOMOTICZ_USERNAME = req.username.strip()
            updated_fields.append("username")

        if req.password is not None:
            settings.DOMOTICZ_PASSWORD = req.password
            updated_fields.append("password")

        if req.timeout_sec is not None:
            settings.DOMOTICZ_TIMEOUT_SEC = req.timeout_sec
            updated_fields.append("timeout_sec")

    return updated_fields


def update_controller_config_response(req: ControllerConfigUpdateRequest) -> dict[str, Any]:
    updated_fields = apply_controller_config_update(req)
    return {
        "success": True,
        "updated_fields": updated_fields,
        "config": get_controller_config_view().model_dump(mode="json"),
    }
