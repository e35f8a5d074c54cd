from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator


LightState = Literal["on", "off"]
ShutterState = Literal["opened", "closed", "unknown"]
SensorType = Literal["temperature", "humidity", "pressure", "air_quality"]
SceneState = Literal["enabled", "disabled"]
SyncPhase = Literal["idle", "syncing"]


# Controller response records. Field names follow the Domoticz JSON API;
# optional measurements stay None when the device does not report them.


class ControllerVersion(BaseModel):
    version: str | None = None

    model_config = {"extra": "ignore"}


class ControllerSettings(BaseModel):
    temp_unit: int | None = Field(default=None, alias="TempUnit")

    model_config = {"extra": "ignore"}


class ControllerPlan(BaseModel):
    idx: int
    name: str = Field(default="", alias="Name")

    model_config = {"extra": "ignore"}


class ControllerDevice(BaseModel):
    idx: int
    name: str = Field(default="", alias="Name")
    description: str | None = Field(default=None, alias="Description")
    type: str = Field(default="", alias="Type")
    switch_type: str | None = Field(default=None, alias="SwitchType")
    status: str | None = Field(default=None, alias="Status")
    plan_ids: list[int] = Field(default_factory=list, alias="PlanIDs")
    temp: int | float | None = Field(default=None, alias="Temp")
    humidity: int | float | None = Field(default=None, alias="Humidity")
    barometer: int | float | None = Field(default=None, alias="Barometer")
    data: str | None = Field(default=None, alias="Data")

    model_config = {"extra": "ignore"}


class ControllerScene(BaseModel):
    idx: int
    name: str = Field(default="", alias="Name")
    type: str = Field(default="", alias="Type")
    status: str | None = Field(default=None, alias="Status")

    model_config = {"extra": "ignore"}


# Canonical entities published in a snapshot.


class Floor(BaseModel):
    id: int
    name: str

    model_config = {"frozen": True}


class Room(BaseModel):
    id: int
    name: str
    floor_id: int | None = None

    model_config = {"frozen": True}


class Light(BaseModel):
    id: int
    name: str
    description: str | None = None
    state: LightState
    room_id: int | None = None

    model_config = {"frozen": True}


class Shutter(BaseModel):
    id: int
    name: str
    description: str | None = None
    state: ShutterState
    room_id: int | None = None

    model_config = {"frozen": True}


class Sensor(BaseModel):
    name: str
    description: str | None = None
    type: SensorType
    value: str
    unit: str
    room_id: int | None = None

    model_config = {"frozen": True}


class Scene(BaseModel):
    id: int
    name: str
    state: SceneState | None = None

    model_config = {"frozen": True}


class Snapshot(BaseModel):
    floors: list[Floor] = Field(default_factory=list)
    rooms: list[Room] = Field(default_factory=list)
    lights: list[Light] = Field(default_factory=list)
    shutters: list[Shutter] = Field(default_factory=list)
    sensors: list[Sensor] = Field(default_factory=list)
    scenes: list[Scene] = Field(default_factory=list)
    temperature_unit: str = "°C"
    built_at: str | None = None

    model_config = {"frozen": True}

    def entity_counts(self) -> dict[str, int]:
        return {
            "floors": len(self.floors),
            "rooms": len(self.rooms),
            "lights": len(self.lights),
            "shutters": len(self.shutters),
            "sensors": len(self.sensors),
            "scenes": len(self.scenes),
        }


# Host-facing API models.


class ToolCallRequest(BaseModel):
    tool_name: str = Field(min_length=1, description="Function name, e.g. update_lights")
    arguments: dict[str, Any] = Field(default_factory=dict, description="Function arguments")
    trace_id: str | None = Field(default=None, description="Optional trace id for logs")

    model_config = {
        "json_schema_extra": {
            "example": {
                "tool_name": "update_lights",
                "arguments": {"action": "On", "ids": [12, 14]},
                "trace_id": "req-001",
            }
        }
    }


class ToolCallResponse(BaseModel):
    success: bool = Field(description="Whether every command was accepted")
    message: str = Field(description="Text handed back to the assistant")
    trace_id: str | None = Field(default=None, description="Trace id echoed from request")


class SwitchArguments(BaseModel):
    action: str = Field(min_length=1, description="Controller switch command, e.g. On/Off/Open/Close/Stop")
    ids: list[int] = Field(min_length=1, description="Device or scene ids, applied in order")

    @field_validator("ids", mode="before")
    @classmethod
    def _wrap_single_id(cls, value: Any) -> Any:
        if isinstance(value, (int, str)):
            return [value]
        return value


class LightControlRequest(BaseModel):
    action: Literal["On", "Off"]
    ids: list[int] = Field(min_length=1)
    trace_id: str | None = None


class ShutterControlRequest(BaseModel):
    action: Literal["Open", "Close", "Stop"]
    ids: list[int] = Field(min_length=1)
    trace_id: str | None = None


class SceneControlRequest(BaseModel):
    action: Literal["On", "Off"]
    ids: list[int] = Field(min_length=1)
    trace_id: str | None = None


class SyncStatusView(BaseModel):
    version: str | None = None
    errors: list[str] = Field(default_factory=list)
    phase: SyncPhase = "idle"
    last_synced_at: str | None = None
    entity_counts: dict[str, int] = Field(default_factory=dict)


class ControllerConfigView(BaseModel):
    base_url: str
    username: str
    password_set: bool
    timeout_sec: float
    sync_interval_sec: float


class ControllerConfigUpdateRequest(BaseModel):
    base_url: str | None = None
    username: str | None = None
    password: str | None = None
    timeout_sec: float | None = Field(default=None, gt=0)


class OperationLogItem(BaseModel):
    event_id: str
    created_at: str
    event_type: str
    source: str
    action: str
    method: str | None = None
    path: str | None = None
    status_code: int | None = None
    duration_ms: float | None = None
    client_ip: str | None = None
    trace_id: str | None = None
    success: bool | None = None
    detail: dict[str, Any] = Field(default_factory=dict)
