from __future__ import annotations

import unittest

from domoticz_bridge.models.schemas import ControllerDevice, ControllerScene, Light, Room, Sensor, Shutter
from domoticz_bridge.services.classifier import (
    classify_device,
    classify_scene,
    parse_measurement,
    resolve_room_id,
    temperature_unit_label,
)


ROOMS = {
    5: Room(id=5, name="Salon", floor_id=1),
    7: Room(id=7, name="Chambre", floor_id=2),
}


def _device(**fields) -> ControllerDevice:
    raw = {"idx": "12", "Name": "Device", "Type": "Light/Switch", "PlanIDs": [0]}
    raw.update(fields)
    return ControllerDevice.model_validate(raw)


def _classify(device: ControllerDevice, unit: str = "°C") -> list:
    return classify_device(device, room_index=ROOMS, temperature_unit=unit)


class TestRoomResolution(unittest.TestCase):
    def test_skips_no_plan_sentinel(self) -> None:
        self.assertEqual(5, resolve_room_id([0, 0, 5], ROOMS))

    def test_only_sentinels_means_no_room(self) -> None:
        self.assertIsNone(resolve_room_id([0, 0], ROOMS))
        self.assertIsNone(resolve_room_id([], ROOMS))

    def test_first_membership_wins(self) -> None:
        self.assertEqual(7, resolve_room_id([7, 5], ROOMS))

    def test_unknown_room_is_unassigned(self) -> None:
        self.assertIsNone(resolve_room_id([42], ROOMS))


class TestDeviceClassification(unittest.TestCase):
    def test_on_off_switch_becomes_light(self) -> None:
        entities = _classify(_device(SwitchType="On/Off", Status="On", Description="Plafonnier", PlanIDs=[0, 5]))
        self.assertEqual(1, len(entities))
        light = entities[0]
        self.assertIsInstance(light, Light)
        self.assertEqual(12, light.id)
        self.assertEqual("on", light.state)
        self.assertEqual("Plafonnier", light.description)
        self.assertEqual(5, light.room_id)

    def test_light_is_off_unless_status_is_on(self) -> None:
        for status in ("Off", "Set Level: 40 %", None):
            with self.subTest(status=status):
                entities = _classify(_device(SwitchType="On/Off", Status=status))
                self.assertEqual("off", entities[0].state)

    def test_empty_description_is_none(self) -> None:
        entities = _classify(_device(SwitchType="On/Off", Status="On", Description=""))
        self.assertIsNone(entities[0].description)

    def test_shutter_state_mapping(self) -> None:
        expected = {
            "Closed": "closed",
            "Stopped": "unknown",
            "Open": "opened",
            "Moving up": "opened",
            "": "opened",
        }
        for switch_type in ("Blinds", "Blinds + Stop"):
            for status, state in expected.items():
                with self.subTest(switch_type=switch_type, status=status):
                    entities = _classify(_device(SwitchType=switch_type, Status=status))
                    self.assertEqual(1, len(entities))
                    self.assertIsInstance(entities[0], Shutter)
                    self.assertEqual(state, entities[0].state)

    def test_temperature_only_device_yields_one_sensor(self) -> None:
        entities = _classify(_device(Name="Thermo salon", Type="Temp", Temp=21.5, PlanIDs=[5]))
        self.assertEqual(1, len(entities))
        sensor = entities[0]
        self.assertIsInstance(sensor, Sensor)
        self.assertEqual("temperature", sensor.type)
        self.assertEqual("21.5", sensor.value)
        self.assertEqual("°C", sensor.unit)
        self.assertEqual(5, sensor.room_id)

    def test_temp_hum_baro_device_fans_out(self) -> None:
        device = _device(Name="Station", Type="Temp + Humidity + Baro", Temp=68.0, Humidity=45, Barometer=1013.2)
        entities = _classify(device, unit="°F")
        self.assertEqual(["temperature", "humidity", "pressure"], [x.type for x in entities])
        self.assertEqual({"Station"}, {x.name for x in entities})
        self.assertEqual(["°F", "%", "hPa"], [x.unit for x in entities])
        self.assertEqual("45", entities[1].value)

    def test_zero_reading_is_kept(self) -> None:
        entities = _classify(_device(Type="Temp", Temp=0))
        self.assertEqual(1, len(entities))
        self.assertEqual("0", entities[0].value)

    def test_air_quality_strips_unit(self) -> None:
        entities = _classify(_device(Name="CO2", Type="Air Quality", Data="612 ppm", PlanIDs=[7]))
        self.assertEqual(1, len(entities))
        sensor = entities[0]
        self.assertEqual("air_quality", sensor.type)
        self.assertEqual("612", sensor.value)
        self.assertEqual("ppm", sensor.unit)
        self.assertEqual(7, sensor.room_id)

    def test_unknown_category_is_ignored(self) -> None:
        self.assertEqual([], _classify(_device(Type="P1 Smart Meter", SwitchType=None)))
        self.assertEqual([], _classify(_device(Type="Light/Switch", SwitchType="Selector")))


class TestHelpers(unittest.TestCase):
    def test_parse_measurement(self) -> None:
        self.assertEqual(("612", "ppm"), parse_measurement("612 ppm"))
        self.assertEqual(("3.5", "µg/m³"), parse_measurement(" 3.5 µg/m³ "))
        self.assertEqual(("42", ""), parse_measurement("42"))
        self.assertEqual(("n/a", ""), parse_measurement("n/a"))
        self.assertEqual(("", ""), parse_measurement(None))

    def test_temperature_unit_flag(self) -> None:
        self.assertEqual("°F", temperature_unit_label(1))
        self.assertEqual("°C", temperature_unit_label(0))
        self.assertEqual("°C", temperature_unit_label(None))


class TestSceneClassification(unittest.TestCase):
    def test_group_scene_exposes_state(self) -> None:
        on = classify_scene(ControllerScene.model_validate({"idx": "3", "Name": "Soirée", "Type": "Group", "Status": "On"}))
        off = classify_scene(ControllerScene.model_validate({"idx": "4", "Name": "Nuit", "Type": "Group", "Status": "Off"}))
        self.assertEqual((3, "enabled"), (on.id, on.state))
        self.assertEqual("disabled", off.state)

    def test_plain_scene_state_is_unknown(self) -> None:
        scene = classify_scene(ControllerScene.model_validate({"idx": "9", "Name": "Départ", "Type": "Scene", "Status": "Off"}))
        self.assertIsNone(scene.state)


if __name__ == "__main__":
    unittest.main()
