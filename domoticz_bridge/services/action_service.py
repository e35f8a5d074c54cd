from collections.abc import Awaitable, Callable, Iterable
from time import perf_counter
from typing import Any

from fastapi import HTTPException
from pydantic import BaseModel, ValidationError

from domoticz_bridge.core.errors import CommandRejected, ControllerError
from domoticz_bridge.models.schemas import SwitchArguments, ToolCallRequest, ToolCallResponse
from domoticz_bridge.services.controller_client import DomoticzClient, build_controller_client
from domoticz_bridge.services.log_service import log_operation


SWITCH_LIGHT_COMMAND = "switchlight"
SWITCH_SCENE_COMMAND = "switchscene"
DONE_MESSAGE = "Done."
REJECTED_MESSAGE = "Error: bad_request"

SHUTTER_PROGRESSIVE = {
    "Open": "Opening",
    "Close": "Closing",
    "Stop": "Stopping",
}


class ActionOutcome(BaseModel):
    success: bool
    message: str
    completed_ids: list[int]


def _as_id_list(ids: int | Iterable[int]) -> list[int]:
    if isinstance(ids, int):
        return [ids]
    return list(ids)


async def _switch_each(
    *,
    function_name: str,
    command: str,
    action: str,
    ids: int | Iterable[int],
    success_message: str,
    client: DomoticzClient | None,
    trace_id: str | None = None,
) -> ActionOutcome:
    target_ids = _as_id_list(ids)
    controller = client or build_controller_client()
    completed: list[int] = []
    started = perf_counter()

    try:
        for idx in target_ids:
            await controller.execute(command, idx, action)
            completed.append(idx)
    except CommandRejected as ex:
        outcome = ActionOutcome(success=False, message=REJECTED_MESSAGE, completed_ids=completed)
        error_detail = ex.to_error_detail()
    except ControllerError as ex:
        outcome = ActionOutcome(success=False, message=f"Error: {ex.message}", completed_ids=completed)
        error_detail = ex.to_error_detail()
    else:
        outcome = ActionOutcome(success=True, message=success_message, completed_ids=completed)
        error_detail = None

    log_operation(
        event_type="action",
        source="assistant",
        action=f"action.{function_name}",
        duration_ms=round((perf_counter() - started) * 1000, 2),
        trace_id=trace_id,
        success=outcome.success,
        detail={
            "switchcmd": action,
            "ids": target_ids,
            "completed_ids": completed,
            "error": error_detail,
        },
    )
    return outcome


def shutter_progress_message(action: str) -> str:
    return f"{SHUTTER_PROGRESSIVE.get(action, action + 'ing')}."


async def run_update_lights(
    action: str,
    ids: int | Iterable[int],
    *,
    client: DomoticzClient | None = None,
    trace_id: str | None = None,
) -> ActionOutcome:
    return await _switch_each(
        function_name="update_lights",
        command=SWITCH_LIGHT_COMMAND,
        action=action,
        ids=ids,
        success_message=DONE_MESSAGE,
        client=client,
        trace_id=trace_id,
    )


async def run_update_shutters(
    action: str,
    ids: int | Iterable[int],
    *,
    client: DomoticzClient | None = None,
    trace_id: str | None = None,
) -> ActionOutcome:
    return await _switch_each(
        function_name="update_shutters",
        command=SWITCH_LIGHT_COMMAND,
        action=action,
        ids=ids,
        success_message=shutter_progress_message(action),
        client=client,
        trace_id=trace_id,
    )


async def run_update_scenes(
    action: str,
    ids: int | Iterable[int],
    *,
    client: DomoticzClient | None = None,
    trace_id: str | None = None,
) -> ActionOutcome:
    return await _switch_each(
        function_name="update_scenes",
        command=SWITCH_SCENE_COMMAND,
        action=action,
        ids=ids,
        success_message=DONE_MESSAGE,
        client=client,
        trace_id=trace_id,
    )


async def update_lights(action: str, ids: int | Iterable[int], *, client: DomoticzClient | None = None) -> str:
    return (await run_update_lights(action, ids, client=client)).message


async def update_shutters(action: str, ids: int | Iterable[int], *, client: DomoticzClient | None = None) -> str:
    return (await run_update_shutters(action, ids, client=client)).message


async def update_scenes(action: str, ids: int | Iterable[int], *, client: DomoticzClient | None = None) -> str:
    return (await run_update_scenes(action, ids, client=client)).message


FUNCTIONS: dict[str, Callable[..., Awaitable[ActionOutcome]]] = {
    "update_lights": run_update_lights,
    "update_shutters": run_update_shutters,
    "update_scenes": run_update_scenes,
}


def list_function_names() -> list[str]:
    return sorted(FUNCTIONS)


def _parse_arguments(arguments: dict[str, Any]) -> SwitchArguments:
    try:
        return SwitchArguments.model_validate(arguments)
    except ValidationError as ex:
        raise HTTPException(status_code=400, detail=f"invalid arguments: {ex.errors()[0]['msg']}") from ex


async def execute_tool_call(req: ToolCallRequest, *, client: DomoticzClient | None = None) -> ToolCallResponse:
    handler = FUNCTIONS.get(req.tool_name)
    if handler is None:
        raise HTTPException(status_code=400, detail=f"tool not allowed: {req.tool_name}")

    arguments = _parse_arguments(req.arguments)
    outcome = await handler(arguments.action, arguments.ids, client=client, trace_id=req.trace_id)
    return ToolCallResponse(success=outcome.success, message=outcome.message, trace_id=req.trace_id)
