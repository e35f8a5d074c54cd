from __future__ import annotations

import base64
import unittest

import httpx

from domoticz_bridge.core.errors import AuthError, CommandRejected, ResponseFormatError, TransportError
from domoticz_bridge.services.controller_client import DomoticzClient


def _client(handler) -> DomoticzClient:
    return DomoticzClient(
        "http://domoticz.test:8080/",
        "assistant",
        "s3cret",
        timeout_sec=1.0,
        transport=httpx.MockTransport(handler),
    )


class TestControllerQuery(unittest.IsolatedAsyncioTestCase):
    async def test_query_sends_command_and_basic_auth(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"status": "OK", "result": [{"idx": "1", "Name": "RDC"}]})

        payload = await _client(handler).query("getfloorplanplans", {"idx": 1})

        self.assertEqual([{"idx": "1", "Name": "RDC"}], payload["result"])
        request = seen[0]
        self.assertEqual("/json.htm", request.url.path)
        self.assertEqual("command", request.url.params["type"])
        self.assertEqual("getfloorplanplans", request.url.params["param"])
        self.assertEqual("1", request.url.params["idx"])
        expected = "Basic " + base64.b64encode(b"assistant:s3cret").decode()
        self.assertEqual(expected, request.headers["Authorization"])

    async def test_missing_result_is_returned_as_is(self) -> None:
        payload = await _client(lambda request: httpx.Response(200, json={"status": "OK"})).query("getscenes")
        self.assertNotIn("result", payload)

    async def test_unauthorized_raises_auth_error(self) -> None:
        for status_code in (401, 403):
            with self.subTest(status_code=status_code):
                with self.assertRaises(AuthError) as ex:
                    await _client(lambda request: httpx.Response(status_code)).query("getdevices")
                self.assertEqual(status_code, ex.exception.status_code)
                self.assertEqual("getdevices", ex.exception.command)

    async def test_server_error_raises_transport_error(self) -> None:
        with self.assertRaises(TransportError) as ex:
            await _client(lambda request: httpx.Response(500)).query("getdevices")
        self.assertEqual(500, ex.exception.status_code)

    async def test_connection_failure_raises_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with self.assertRaises(TransportError) as ex:
            await _client(handler).query("getversion")
        self.assertIn("connection refused", ex.exception.message)

    async def test_timeout_raises_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with self.assertRaises(TransportError):
            await _client(handler).query("getversion")

    async def test_non_json_body_raises_format_error(self) -> None:
        with self.assertRaises(ResponseFormatError):
            await _client(lambda request: httpx.Response(200, text="<html>login</html>")).query("getdevices")

    async def test_non_object_body_raises_format_error(self) -> None:
        with self.assertRaises(ResponseFormatError):
            await _client(lambda request: httpx.Response(200, json=[1, 2])).query("getdevices")


class TestControllerExecute(unittest.IsolatedAsyncioTestCase):
    async def test_execute_sends_switch_command(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"status": "OK", "title": "SwitchLight"})

        ack = await _client(handler).execute("switchlight", 12, "On")

        self.assertEqual("OK", ack["status"])
        params = seen[0].url.params
        self.assertEqual("switchlight", params["param"])
        self.assertEqual("12", params["idx"])
        self.assertEqual("On", params["switchcmd"])

    async def test_embedded_error_status_is_rejected(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"status": "ERR", "message": "Device not found"})

        with self.assertRaises(CommandRejected) as ex:
            await _client(handler).execute("switchscene", 99, "On")
        self.assertIn("Device not found", ex.exception.message)


if __name__ == "__main__":
    unittest.main()
