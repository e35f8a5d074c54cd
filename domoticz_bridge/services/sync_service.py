import asyncio
from collections.abc import Callable
from datetime import datetime
from time import perf_counter
from typing import Any

from domoticz_bridge.core import settings
from domoticz_bridge.core.errors import ControllerError
from domoticz_bridge.models.schemas import Snapshot, SyncStatusView
from domoticz_bridge.services.controller_client import DomoticzClient, build_controller_client
from domoticz_bridge.services.log_service import log_operation
from domoticz_bridge.services.snapshot_service import build_snapshot


class SyncState:
    """Single-writer holder of what the host is allowed to see.

    The snapshot is only ever replaced as a whole, so readers get either the
    previous complete snapshot or the new one.
    """

    def __init__(self) -> None:
        self._snapshot: Snapshot | None = None
        self.version: str | None = None
        self.errors: list[str] = []
        self.phase = "idle"
        self.last_synced_at: str | None = None

    @property
    def snapshot(self) -> Snapshot | None:
        return self._snapshot

    def set_version(self, version: str) -> None:
        self.version = version

    def publish(self, snapshot: Snapshot) -> None:
        self._snapshot = snapshot
        self.errors = []
        self.last_synced_at = snapshot.built_at

    def record_failure(self, message: str) -> None:
        self.errors = [message]

    def status_view(self) -> SyncStatusView:
        snapshot = self._snapshot
        return SyncStatusView(
            version=self.version,
            errors=list(self.errors),
            phase=self.phase,
            last_synced_at=self.last_synced_at,
            entity_counts=snapshot.entity_counts() if snapshot else {},
        )


SYNC_STATE = SyncState()


class SyncLoop:
    def __init__(
        self,
        *,
        state: SyncState = SYNC_STATE,
        client_factory: Callable[[], DomoticzClient] = build_controller_client,
        interval_sec: float | None = None,
    ) -> None:
        self.state = state
        self.client_factory = client_factory
        self.interval_sec = settings.SYNC_INTERVAL_SEC if interval_sec is None else interval_sec
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> bool:
        """Build one snapshot; publish it on success, record the error otherwise."""
        self.state.phase = "syncing"
        started = perf_counter()
        detail: dict[str, Any]
        try:
            snapshot = await build_snapshot(self.client_factory(), on_version=self.state.set_version)
        except ControllerError as ex:
            self.state.record_failure(ex.message)
            detail = ex.to_error_detail()
            success = False
        except Exception as ex:
            self.state.record_failure(f"unexpected sync failure: {ex}")
            detail = {"error_code": "unexpected", "message": str(ex)}
            success = False
        else:
            self.state.publish(snapshot)
            detail = snapshot.entity_counts()
            success = True
        finally:
            self.state.phase = "idle"

        log_operation(
            event_type="sync",
            source="controller",
            action="sync.run",
            duration_ms=round((perf_counter() - started) * 1000, 2),
            success=success,
            detail=detail,
        )
        return success

    async def _run_forever(self) -> None:
        while True:
            await self.run_once()
            await asyncio.sleep(self.interval_sec)

    def start(self) -> asyncio.Task[None]:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run_forever(), name="domoticz-sync-loop")
        return self._task

    async def stop(self) -> None:
        task = self._task
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        self._task = None
