import json
from typing import Any

from pydantic import BaseModel

from domoticz_bridge.models.schemas import Snapshot
from domoticz_bridge.services.catalog_defaults import (
    BASE_INSTRUCTIONS,
    DEFAULT_INSTRUCTIONS,
    FLOORS_MODEL,
    LIGHTS_MODEL,
    ROOMS_MODEL,
    SCENES_MODEL,
    SENSORS_MODEL,
    SHUTTERS_MODEL,
    UPDATE_LIGHTS_FUNCTION,
    UPDATE_SCENES_FUNCTION,
    UPDATE_SHUTTERS_FUNCTION,
)


# (heading, snapshot attribute, reference model), in rendering order.
CONTEXT_SECTIONS: tuple[tuple[str, str, dict[str, Any]], ...] = (
    ("Lights", "lights", LIGHTS_MODEL),
    ("Scenes", "scenes", SCENES_MODEL),
    ("Sensors", "sensors", SENSORS_MODEL),
    ("Shutters", "shutters", SHUTTERS_MODEL),
    ("Rooms", "rooms", ROOMS_MODEL),
    ("Floors", "floors", FLOORS_MODEL),
)

FUNCTION_SCHEMAS: tuple[tuple[str, dict[str, Any]], ...] = (
    ("lights", UPDATE_LIGHTS_FUNCTION),
    ("scenes", UPDATE_SCENES_FUNCTION),
    ("shutters", UPDATE_SHUTTERS_FUNCTION),
)

DEVICE_LISTS = ("lights", "shutters", "sensors", "scenes")


def _to_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def has_devices(snapshot: Snapshot | None) -> bool:
    if snapshot is None:
        return False
    return any(getattr(snapshot, name) for name in DEVICE_LISTS)


def build_instructions(snapshot: Snapshot | None) -> list[str]:
    instructions = [BASE_INSTRUCTIONS]
    if not has_devices(snapshot):
        instructions.append(DEFAULT_INSTRUCTIONS)
        return instructions

    for heading, attribute, model in CONTEXT_SECTIONS:
        entities: list[BaseModel] = getattr(snapshot, attribute)
        if not entities:
            continue
        instructions.append(f"# {heading}")
        instructions.append(f"* Model: {_to_json(model)}")
        instructions.append(f"* Data: {_to_json([x.model_dump(mode='json') for x in entities])}")
    return instructions


def build_function_schemas(snapshot: Snapshot | None) -> list[dict[str, Any]]:
    if snapshot is None:
        return []
    return [schema for attribute, schema in FUNCTION_SCHEMAS if getattr(snapshot, attribute)]


def build_context(snapshot: Snapshot | None) -> dict[str, Any]:
    return {
        "instructions": build_instructions(snapshot),
        "functions": build_function_schemas(snapshot),
    }
