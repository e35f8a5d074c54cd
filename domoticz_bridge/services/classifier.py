"""Turn raw Domoticz records into canonical entities.

Nothing in here performs I/O. A device record yields zero, one or several
entities; a scene record always yields exactly one ``Scene``.
"""

import re
from collections.abc import Iterable, Mapping

from domoticz_bridge.models.schemas import (
    ControllerDevice,
    ControllerScene,
    Light,
    Room,
    Scene,
    Sensor,
    Shutter,
)


ClassifiedEntity = Light | Shutter | Sensor

NO_PLAN_ID = 0
LIGHT_SWITCH_TYPE = "On/Off"
SHUTTER_SWITCH_TYPES = ("Blinds", "Blinds + Stop")
TEMPERATURE_TYPE_PREFIX = "Temp"
AIR_QUALITY_TYPE_PREFIX = "Air Quality"
GROUP_SCENE_TYPE = "Group"

FAHRENHEIT_FLAG = 1
HUMIDITY_UNIT = "%"
PRESSURE_UNIT = "hPa"

_MEASUREMENT_RE = re.compile(r"^\s*(?P<value>[-+]?\d+(?:[.,]\d+)?)\s*(?P<unit>.*?)\s*$")


def temperature_unit_label(temp_unit_flag: int | None) -> str:
    return "°F" if temp_unit_flag == FAHRENHEIT_FLAG else "°C"


def resolve_room_id(plan_ids: Iterable[int], room_index: Mapping[int, Room]) -> int | None:
    """First non-sentinel plan membership, if it names a known room."""
    for plan_id in plan_ids:
        if plan_id == NO_PLAN_ID:
            continue
        return plan_id if plan_id in room_index else None
    return None


def light_state(status: str | None) -> str:
    return "on" if status == "On" else "off"


def shutter_state(status: str | None) -> str:
    # Stopped blinds have no known position; unrecognised statuses map to opened.
    if status == "Closed":
        return "closed"
    if status == "Stopped":
        return "unknown"
    return "opened"


def scene_state(scene_type: str, status: str | None) -> str | None:
    if scene_type != GROUP_SCENE_TYPE:
        return None
    return "enabled" if status == "On" else "disabled"


def parse_measurement(raw: str | None) -> tuple[str, str]:
    """Split a reading such as ``"412 ppm"`` into value and unit."""
    text = (raw or "").strip()
    match = _MEASUREMENT_RE.match(text)
    if not match:
        return text, ""
    return match.group("value"), match.group("unit")


def _description(device: ControllerDevice) -> str | None:
    text = (device.description or "").strip()
    return text or None


def classify_device(
    device: ControllerDevice,
    *,
    room_index: Mapping[int, Room],
    temperature_unit: str,
) -> list[ClassifiedEntity]:
    room_id = resolve_room_id(device.plan_ids, room_index)
    description = _description(device)

    if device.switch_type == LIGHT_SWITCH_TYPE:
        return [
            Light(
                id=device.idx,
                name=device.name,
                description=description,
                state=light_state(device.status),
                room_id=room_id,
            )
        ]

    if device.switch_type in SHUTTER_SWITCH_TYPES:
        return [
            Shutter(
                id=device.idx,
                name=device.name,
                description=description,
                state=shutter_state(device.status),
                room_id=room_id,
            )
        ]

    if device.type.startswith(TEMPERATURE_TYPE_PREFIX):
        readings = (
            ("temperature", device.temp, temperature_unit),
            ("humidity", device.humidity, HUMIDITY_UNIT),
            ("pressure", device.barometer, PRESSURE_UNIT),
        )
        return [
            Sensor(
                name=device.name,
                description=description,
                type=sensor_type,
                value=str(value),
                unit=unit,
                room_id=room_id,
            )
            for sensor_type, value, unit in readings
            if value is not None
        ]

    if device.type.startswith(AIR_QUALITY_TYPE_PREFIX):
        value, unit = parse_measurement(device.data)
        return [
            Sensor(
                name=device.name,
                description=description,
                type="air_quality",
                value=value,
                unit=unit,
                room_id=room_id,
            )
        ]

    # Other categories (meters, selectors, ...) are not exposed.
    return []


def classify_scene(scene: ControllerScene) -> Scene:
    return Scene(id=scene.idx, name=scene.name, state=scene_state(scene.type, scene.status))
