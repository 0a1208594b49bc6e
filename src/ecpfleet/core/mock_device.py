from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from xml.sax.saxutils import escape

from ecpfleet.models import PowerState

from .commands import LAUNCH_PREFIX, POWER_OFF, POWER_ON

if TYPE_CHECKING:
    from asyncio import StreamReader, StreamWriter

logger = logging.getLogger(__name__)

_REASONS = {200: "OK", 400: "Bad Request", 404: "Not Found"}


@dataclass
class MockEcpDevice:
    name: str = "Mock Roku"
    serial_number: str = "MOCK00000001"
    host: str = "0.0.0.0"
    port: int = 8060
    power_state: PowerState = PowerState.ON
    active_app: str | None = None

    _server: asyncio.Server | None = field(default=None, repr=False)

    async def start(self) -> None:
        self._server = await asyncio.start_server(
            self._handle_client, self.host, self.port
        )
        if self.port == 0 and self._server.sockets:
            self.port = self._server.sockets[0].getsockname()[1]
        logger.info("Mock device '%s' listening on port %d", self.name, self.port)

    async def stop(self) -> None:
        if self._server:
            self._server.close()
            await self._server.wait_closed()
            logger.info("Mock device '%s' stopped", self.name)

    async def run_forever(self) -> None:
        await self.start()
        if self._server:
            await self._server.serve_forever()

    def device_info_xml(self) -> str:
        return (
            '<?xml version="1.0" encoding="UTF-8" ?>\n'
            "<device-info>\n"
            f"  <serial-number>{escape(self.serial_number)}</serial-number>\n"
            "  <vendor-name>Roku</vendor-name>\n"
            f"  <friendly-device-name>{escape(self.name)}</friendly-device-name>\n"
            f"  <power-mode>{self._power_mode_token()}</power-mode>\n"
            "</device-info>\n"
        )

    def _power_mode_token(self) -> str:
        tokens = {
            PowerState.ON: "PowerOn",
            PowerState.OFF: "PowerOff",
            PowerState.DISPLAY_OFF: "DisplayOff",
        }
        return tokens.get(self.power_state, "Ready")

    def handle_request(self, method: str, path: str) -> tuple[int, str]:
        path = path.lstrip("/")
        if method == "GET" and path == "query/device-info":
            return 200, self.device_info_xml()

        if method != "POST":
            return 404, ""

        if path.lower() == POWER_ON.lower():
            self.power_state = PowerState.ON
        elif path.lower() == POWER_OFF.lower():
            self.power_state = PowerState.OFF
            self.active_app = None
        elif path.startswith(LAUNCH_PREFIX) and len(path) > len(LAUNCH_PREFIX):
            self.active_app = path[len(LAUNCH_PREFIX) :]
        else:
            return 404, ""

        logger.info(
            "'%s' handled %s (power=%s, app=%s)",
            self.name,
            path,
            self.power_state.value,
            self.active_app,
        )
        return 200, ""

    async def _handle_client(
        self, reader: "StreamReader", writer: "StreamWriter"
    ) -> None:
        addr = writer.get_extra_info("peername")
        try:
            request_line = (await reader.readline()).decode("latin-1").strip()
            content_length = 0
            while True:
                line = (await reader.readline()).decode("latin-1").strip()
                if not line:
                    break
                header, _, value = line.partition(":")
                if header.strip().lower() == "content-length" and value.strip().isdigit():
                    content_length = int(value.strip())
            if content_length:
                await reader.readexactly(content_length)

            parts = request_line.split()
            if len(parts) < 2:
                status, body = 400, ""
            else:
                status, body = self.handle_request(parts[0].upper(), parts[1])
            logger.debug("%s %s -> %d", addr, request_line, status)

            payload = body.encode("utf-8")
            head = (
                f"HTTP/1.1 {status} {_REASONS.get(status, 'OK')}\r\n"
                "Content-Type: text/xml; charset=utf-8\r\n"
                f"Content-Length: {len(payload)}\r\n"
                "Connection: close\r\n\r\n"
            )
            writer.write(head.encode("latin-1") + payload)
            await writer.drain()
        except (ConnectionResetError, BrokenPipeError, asyncio.IncompleteReadError):
            logger.debug("Client disconnected: %s", addr)
        finally:
            writer.close()
            await writer.wait_closed()


async def run_mock_device(
    name: str = "Mock Roku",
    port: int = 8060,
    power_state: PowerState = PowerState.ON,
) -> None:
    device = MockEcpDevice(name=name, port=port, power_state=power_state)
    await device.run_forever()
