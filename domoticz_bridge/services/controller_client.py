from time import perf_counter
from typing import Any

import httpx

from domoticz_bridge.core import settings
from domoticz_bridge.core.errors import AuthError, CommandRejected, ResponseFormatError, TransportError
from domoticz_bridge.services.log_service import log_controller_request


API_PATH = "/json.htm"
ERROR_STATUS = "ERR"
AUTH_FAILURE_CODES = {401, 403}


class DomoticzClient:
    """Thin async client for the Domoticz JSON API.

    Every call opens its own connection, authenticates with HTTP Basic and
    returns the decoded JSON object. Failures surface as ``TransportError``,
    ``AuthError`` or ``ResponseFormatError``; ``execute`` additionally raises
    ``CommandRejected`` when the controller embeds ``status: ERR`` in a 200.
    Nothing is retried here.
    """

    def __init__(
        self,
        base_url: str,
        username: str,
        password: str,
        *,
        timeout_sec: float = 6.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.username = username
        self.password = password
        self.timeout_sec = timeout_sec
        self._transport = transport

    async def query(self, command: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self._get(command, params or {})

    async def execute(self, command: str, idx: int, action: str) -> dict[str, Any]:
        payload = await self._get(command, {"idx": idx, "switchcmd": action})
        if payload.get("status") == ERROR_STATUS:
            reason = payload.get("message") or ERROR_STATUS
            raise CommandRejected(f"{command} {action} rejected for idx {idx}: {reason}", command=command)
        return payload

    async def _get(self, command: str, params: dict[str, Any]) -> dict[str, Any]:
        query = {"type": "command", "param": command, **params}
        log_detail = {"command": command, "params": params, "base_url": self.base_url}
        started = perf_counter()
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_sec,
                auth=(self.username, self.password),
                transport=self._transport,
            ) as client:
                response = await client.get(f"{self.base_url}{API_PATH}", params=query)
        except httpx.HTTPError as ex:
            log_controller_request(
                command=command,
                path=API_PATH,
                status_code=0,
                duration_ms=_elapsed_ms(started),
                success=False,
                detail={**log_detail, "message": str(ex)},
            )
            raise TransportError(f"controller unreachable: {ex}", command=command) from ex

        duration_ms = _elapsed_ms(started)
        log_controller_request(
            command=command,
            path=API_PATH,
            status_code=response.status_code,
            duration_ms=duration_ms,
            success=response.status_code < 400,
            detail=log_detail,
        )

        if response.status_code in AUTH_FAILURE_CODES:
            raise AuthError(
                f"controller rejected credentials for user {self.username!r}",
                command=command,
                status_code=response.status_code,
            )
        if response.status_code >= 400:
            raise TransportError(
                f"controller request failed: {response.status_code} {response.reason_phrase}",
                command=command,
                status_code=response.status_code,
            )

        if not response.content:
            return {}
        try:
            payload = response.json()
        except ValueError as ex:
            raise ResponseFormatError(f"{command} returned a non-JSON body", command=command) from ex
        if not isinstance(payload, dict):
            raise ResponseFormatError(f"{command} returned {type(payload).__name__}, expected an object", command=command)
        return payload


def _elapsed_ms(started: float) -> float:
    return round((perf_counter() - started) * 1000, 2)


def build_controller_client(transport: httpx.AsyncBaseTransport | None = None) -> DomoticzClient:
    with settings.runtime_config_lock:
        return DomoticzClient(
            settings.DOMOTICZ_BASE_URL,
            settings.DOMOTICZ_USERNAME,
            settings.DOMOTICZ_PASSWORD,
            timeout_sec=settings.DOMOTICZ_TIMEOUT_SEC,
            transport=transport,
        )
