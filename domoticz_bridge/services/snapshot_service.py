from collections.abc import Callable
from datetime import datetime
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from domoticz_bridge.core.errors import ControllerError, ResponseFormatError
from domoticz_bridge.models.schemas import (
    ControllerDevice,
    ControllerPlan,
    ControllerScene,
    ControllerSettings,
    ControllerVersion,
    Floor,
    Light,
    Room,
    Scene,
    Sensor,
    Shutter,
    Snapshot,
)
from domoticz_bridge.services.classifier import classify_device, classify_scene, temperature_unit_label
from domoticz_bridge.services.controller_client import DomoticzClient
from domoticz_bridge.services.log_service import log_operation


RecordT = TypeVar("RecordT", bound=BaseModel)


def _result_rows(payload: dict[str, Any], command: str) -> list[Any]:
    rows = payload.get("result")
    if rows is None:
        return []
    if not isinstance(rows, list):
        raise ResponseFormatError(f"{command} returned a non-list result", command=command)
    return rows


def _parse(model: type[RecordT], raw: Any, command: str) -> RecordT:
    try:
        return model.model_validate(raw)
    except ValidationError as ex:
        raise ResponseFormatError(f"{command} returned an unexpected record: {ex.errors()[0]['msg']}", command=command) from ex


async def _read_records(
    client: DomoticzClient,
    command: str,
    model: type[RecordT],
    params: dict[str, Any] | None = None,
) -> list[RecordT]:
    payload = await client.query(command, params)
    return [_parse(model, row, command) for row in _result_rows(payload, command)]


async def _refresh_version(client: DomoticzClient, on_version: Callable[[str], None] | None) -> None:
    try:
        payload = await client.query("getversion")
        version = _parse(ControllerVersion, payload, "getversion").version
    except ControllerError as ex:
        log_operation(
            event_type="sync",
            source="controller",
            action="sync.version",
            success=False,
            detail=ex.to_error_detail(),
        )
        return

    if version and on_version is not None:
        on_version(version)


async def _read_floors_and_rooms(client: DomoticzClient) -> tuple[list[Floor], list[Room]]:
    floors: list[Floor] = []
    rooms: dict[int, Room] = {}

    for plan in await _read_records(client, "getfloorplans", ControllerPlan):
        floors.append(Floor(id=plan.idx, name=plan.name))
        for room_plan in await _read_records(client, "getfloorplanplans", ControllerPlan, {"idx": plan.idx}):
            if room_plan.idx not in rooms:
                rooms[room_plan.idx] = Room(id=room_plan.idx, name=room_plan.name, floor_id=plan.idx)

    # Plans that were never placed on a floor still act as rooms.
    for room_plan in await _read_records(client, "getplans", ControllerPlan):
        if room_plan.idx not in rooms:
            rooms[room_plan.idx] = Room(id=room_plan.idx, name=room_plan.name, floor_id=None)

    return floors, list(rooms.values())


def _log_duplicate(kind: str, key: Any) -> None:
    log_operation(
        event_type="sync",
        source="controller",
        action="sync.duplicate",
        success=False,
        detail={"entity": kind, "key": str(key)},
    )


async def build_snapshot(
    client: DomoticzClient,
    *,
    on_version: Callable[[str], None] | None = None,
) -> Snapshot:
    """Read the controller in dependency order and assemble one snapshot.

    The version read is best effort and reported through ``on_version`` as
    soon as it is known. Every later read must succeed, otherwise the
    ``ControllerError`` propagates and nothing built so far escapes.
    """
    await _refresh_version(client, on_version)

    controller_settings = _parse(ControllerSettings, await client.query("getsettings"), "getsettings")
    temperature_unit = temperature_unit_label(controller_settings.temp_unit)

    floors, rooms = await _read_floors_and_rooms(client)
    room_index = {room.id: room for room in rooms}

    lights: dict[int, Light] = {}
    shutters: dict[int, Shutter] = {}
    sensors: dict[tuple[str, str], Sensor] = {}
    for device in await _read_records(client, "getdevices", ControllerDevice):
        for entity in classify_device(device, room_index=room_index, temperature_unit=temperature_unit):
            if isinstance(entity, Light):
                bucket, key = lights, entity.id
            elif isinstance(entity, Shutter):
                bucket, key = shutters, entity.id
            else:
                bucket, key = sensors, (entity.name, entity.type)
            if key in bucket:
                _log_duplicate(type(entity).__name__.lower(), key)
                continue
            bucket[key] = entity

    scenes: dict[int, Scene] = {}
    for record in await _read_records(client, "getscenes", ControllerScene):
        scene = classify_scene(record)
        if scene.id in scenes:
            _log_duplicate("scene", scene.id)
            continue
        scenes[scene.id] = scene

    return Snapshot(
        floors=floors,
        rooms=rooms,
        lights=list(lights.values()),
        shutters=list(shutters.values()),
        sensors=list(sensors.values()),
        scenes=list(scenes.values()),
        temperature_unit=temperature_unit,
        built_at=datetime.now().isoformat(timespec="seconds"),
    )
