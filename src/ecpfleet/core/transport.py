from __future__ import annotations

import html
import logging
import re
from types import TracebackType

import httpx

from ecpfleet.config import TransportConfig
from ecpfleet.models import PLACEHOLDER_NAME, DeviceInfo, PowerState

logger = logging.getLogger(__name__)

DEVICE_INFO_PATH = "query/device-info"

_POWER_MODE_RE = re.compile(r"<power-mode>(.*?)</power-mode>", re.IGNORECASE | re.DOTALL)
_NAME_RES = (
    re.compile(r"<user-device-name>(.*?)</user-device-name>", re.IGNORECASE | re.DOTALL),
    re.compile(
        r"<friendly-device-name>(.*?)</friendly-device-name>", re.IGNORECASE | re.DOTALL
    ),
)

# InvalidURL is not an HTTPError subclass
_REQUEST_ERRORS = (httpx.HTTPError, httpx.InvalidURL, OSError)


def parse_power_state(body: str) -> PowerState:
    match = _POWER_MODE_RE.search(body)
    return PowerState.parse(match.group(1) if match else None)


def parse_device_name(body: str) -> str:
    for pattern in _NAME_RES:
        match = pattern.search(body)
        if match and match.group(1).strip():
            return html.unescape(match.group(1).strip())
    return PLACEHOLDER_NAME


def parse_device_info(body: str) -> DeviceInfo:
    return DeviceInfo(name=parse_device_name(body), power_state=parse_power_state(body))


class EcpTransport:
    """HTTP access to ECP devices.

    Two clients are kept: one with the normal timeout for directed commands
    and status checks, one with a short timeout used only by the subnet sweep.
    No method raises on network failure; errors become ``False`` or ``None``.
    """

    def __init__(
        self,
        config: TransportConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or TransportConfig()
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self._config.timeout), transport=transport
        )
        self._sweep_client = httpx.AsyncClient(
            timeout=httpx.Timeout(self._config.sweep_timeout), transport=transport
        )

    @property
    def config(self) -> TransportConfig:
        return self._config

    def url(self, address: str, path: str) -> str:
        return f"http://{address}:{self._config.port}/{path.lstrip('/')}"

    async def __aenter__(self) -> EcpTransport:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()
        await self._sweep_client.aclose()

    async def send(self, address: str, command: str) -> bool:
        try:
            url = self.url(address, command)
            response = await self._client.post(url, content=b"")
        except _REQUEST_ERRORS as exc:
            logger.debug("Command %s to %s failed: %s", command, address, exc)
            return False

        logger.debug("%s %s -> %d", command, address, response.status_code)
        return response.is_success

    async def _fetch_device_info(self, address: str) -> str | None:
        try:
            response = await self._client.get(self.url(address, DEVICE_INFO_PATH))
        except _REQUEST_ERRORS as exc:
            logger.debug("device-info query to %s failed: %s", address, exc)
            return None

        if not response.is_success:
            logger.debug("device-info query to %s -> %d", address, response.status_code)
            return None
        return response.text

    async def query_status(self, address: str) -> PowerState | None:
        body = await self._fetch_device_info(address)
        if body is None:
            return None
        return parse_power_state(body)

    async def query_device_info(self, address: str) -> DeviceInfo | None:
        body = await self._fetch_device_info(address)
        if body is None:
            return None
        return parse_device_info(body)

    async def is_powered_on(self, address: str) -> bool:
        state = await self.query_status(address)
        return state is not None and state.is_on

    async def probe(self, address: str) -> bool:
        try:
            response = await self._sweep_client.get(self.url(address, DEVICE_INFO_PATH))
        except _REQUEST_ERRORS:
            return False
        return response.is_success
