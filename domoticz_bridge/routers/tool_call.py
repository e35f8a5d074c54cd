from typing import Any

from fastapi import APIRouter

from domoticz_bridge.models.schemas import ToolCallRequest, ToolCallResponse
from domoticz_bridge.services.action_service import execute_tool_call, list_function_names

router = APIRouter(prefix="/v1", tags=["tool-call"])


@router.post("/tools/call", response_model=ToolCallResponse)
async def call_tool(req: ToolCallRequest) -> ToolCallResponse:
    return await execute_tool_call(req)


@router.get("/tools/whitelist")
async def list_whitelist() -> dict[str, Any]:
    return {"tools": list_function_names()}
