from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from domoticz_bridge.core import settings
from domoticz_bridge.services import log_service


class TestOperationLog(unittest.TestCase):
    def setUp(self) -> None:
        log_service.flush_logs(timeout_sec=2.0)
        self.tmp = tempfile.TemporaryDirectory()
        self.log_path = Path(self.tmp.name) / "operations.jsonl"
        self.patchers = [
            patch.object(settings, "BRIDGE_LOG_PATH", self.log_path),
            patch.object(settings, "BRIDGE_LOG_ENABLED", True),
        ]
        for patcher in self.patchers:
            patcher.start()

    def tearDown(self) -> None:
        log_service.flush_logs(timeout_sec=2.0)
        for patcher in self.patchers:
            patcher.stop()
        self.tmp.cleanup()

    def test_recent_logs_newest_first_and_filtered(self) -> None:
        log_service.log_operation(event_type="sync", source="controller", action="sync.run", success=True)
        log_service.log_controller_request(
            command="getdevices", path="/json.htm", status_code=200, duration_ms=3.2, success=True
        )
        log_service.log_operation(event_type="action", source="assistant", action="action.update_lights", success=False)
        log_service.flush_logs(timeout_sec=2.0)

        logs = log_service.list_recent_logs(limit=10)
        self.assertEqual(
            ["action.update_lights", "controller.getdevices", "sync.run"],
            [x.action for x in logs],
        )

        controller_only = log_service.list_recent_logs(limit=10, sources=["controller"])
        self.assertEqual({"controller"}, {x.source for x in controller_only})
        self.assertEqual(["controller_request"], [x.event_type for x in log_service.list_recent_logs(event_type="controller_request")])

    def test_disabled_log_writes_nothing(self) -> None:
        with patch.object(settings, "BRIDGE_LOG_ENABLED", False):
            log_service.log_operation(event_type="sync", source="controller", action="sync.run")
        self.assertFalse(self.log_path.exists())

    def test_large_detail_is_truncated(self) -> None:
        item = log_service.log_operation(
            event_type="sync", source="controller", action="sync.run", detail={"blob": "x" * 10000}
        )
        self.assertTrue(item.detail["_truncated"])

    def test_rotation_keeps_backups(self) -> None:
        with patch.object(settings, "BRIDGE_LOG_MAX_BYTES", 10):
            entry = log_service.log_operation(event_type="sync", source="controller", action="sync.run")
            log_service.flush_logs(timeout_sec=2.0)
            log_service._write_batch([entry])

        self.assertTrue(self.log_path.with_name("operations.jsonl.1").exists())
        self.assertEqual(1, len(self.log_path.read_text(encoding="utf-8").splitlines()))


if __name__ == "__main__":
    unittest.main()
