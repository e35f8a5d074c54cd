from __future__ import annotations

from typing import Any


class ControllerError(Exception):
    """Base class for every failure talking to the Domoticz controller."""

    error_code = "controller_error"

    def __init__(self, message: str, *, command: str | None = None, status_code: int | None = None) -> None:
        self.message = message
        self.command = command
        self.status_code = status_code
        super().__init__(message)

    def to_error_detail(self) -> dict[str, Any]:
        detail: dict[str, Any] = {"error_code": self.error_code, "message": self.message}
        if self.command:
            detail["command"] = self.command
        if self.status_code is not None:
            detail["status_code"] = self.status_code
        return detail


class TransportError(ControllerError):
    """Controller unreachable, timed out, or answered with a non-auth HTTP error."""

    error_code = "transport_error"


class AuthError(ControllerError):
    """Controller refused the configured credentials (401/403)."""

    error_code = "auth_error"


class CommandRejected(ControllerError):
    """Controller answered HTTP 200 but flagged the command with status ERR."""

    error_code = "command_rejected"


class ResponseFormatError(ControllerError):
    """Controller body could not be read as the expected JSON shape."""

    error_code = "invalid_response"
