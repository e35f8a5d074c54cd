from typing import Any


BASE_INSTRUCTIONS = """
You are a home automation assistant, focused solely on managing connected devices in the home.
When asked to calculate an average, **round to the nearest whole number** without explaining the calculation.
"""

DEFAULT_INSTRUCTIONS = """
Currently, no connected devices have been assigned to you.
Your sole task is to ask the user to install one or more connected devices in the home before proceeding.
"""


def _switch_function(name: str, description: str, actions: list[str], id_description: str) -> dict[str, Any]:
    return {
        "name": name,
        "description": description,
        "parameters": {
            "type": "object",
            "properties": {
                "action": {
                    "type": "string",
                    "enum": actions,
                    "description": "Command sent to every target.",
                },
                "ids": {
                    "type": "array",
                    "items": {"type": "integer"},
                    "minItems": 1,
                    "description": id_description,
                },
            },
            "required": ["action", "ids"],
        },
    }


UPDATE_LIGHTS_FUNCTION = _switch_function(
    "update_lights",
    "Turn one or more lights on or off.",
    ["On", "Off"],
    "Ids of the lights to update, taken from the Lights data.",
)
UPDATE_SHUTTERS_FUNCTION = _switch_function(
    "update_shutters",
    "Open, close or stop one or more shutters.",
    ["Open", "Close", "Stop"],
    "Ids of the shutters to update, taken from the Shutters data.",
)
UPDATE_SCENES_FUNCTION = _switch_function(
    "update_scenes",
    "Enable or disable one or more scenes.",
    ["On", "Off"],
    "Ids of the scenes to update, taken from the Scenes data.",
)


def _reference_model(properties: dict[str, Any]) -> dict[str, Any]:
    return {"type": "array", "items": {"type": "object", "properties": properties}}


_ROOM_ID = {"type": ["integer", "null"], "description": "Id of the room holding the entity, if any."}

LIGHTS_MODEL = _reference_model(
    {
        "id": {"type": "integer", "description": "Light id used with update_lights."},
        "name": {"type": "string"},
        "description": {"type": ["string", "null"], "description": "Where the light is, as described by the owner."},
        "state": {"type": "string", "enum": ["on", "off"]},
        "room_id": _ROOM_ID,
    }
)
SHUTTERS_MODEL = _reference_model(
    {
        "id": {"type": "integer", "description": "Shutter id used with update_shutters."},
        "name": {"type": "string"},
        "description": {"type": ["string", "null"], "description": "Where the shutter is, as described by the owner."},
        "state": {
            "type": "string",
            "enum": ["opened", "closed", "unknown"],
            "description": "unknown means the shutter was stopped part way.",
        },
        "room_id": _ROOM_ID,
    }
)
SENSORS_MODEL = _reference_model(
    {
        "name": {"type": "string"},
        "description": {"type": ["string", "null"]},
        "type": {"type": "string", "enum": ["temperature", "humidity", "pressure", "air_quality"]},
        "value": {"type": "string", "description": "Latest reading."},
        "unit": {"type": "string"},
        "room_id": _ROOM_ID,
    }
)
SCENES_MODEL = _reference_model(
    {
        "id": {"type": "integer", "description": "Scene id used with update_scenes."},
        "name": {"type": "string"},
        "state": {
            "type": ["string", "null"],
            "enum": ["enabled", "disabled", None],
            "description": "null means the status of the scene is unknown, not that it is disabled.",
        },
    }
)
ROOMS_MODEL = _reference_model(
    {
        "id": {"type": "integer"},
        "name": {"type": "string"},
        "floor_id": {"type": ["integer", "null"], "description": "Id of the floor holding the room, if any."},
    }
)
FLOORS_MODEL = _reference_model(
    {
        "id": {"type": "integer"},
        "name": {"type": "string"},
    }
)
