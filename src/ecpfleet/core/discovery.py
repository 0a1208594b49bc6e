from __future__ import annotations

import asyncio
import ipaddress
import logging
import random
import socket
from urllib.parse import urlsplit

from ecpfleet.config import DiscoveryConfig
from ecpfleet.models import PLACEHOLDER_NAME, Device

from .transport import EcpTransport

logger = logging.getLogger(__name__)

SSDP_GROUP = "239.255.255.250"
SSDP_PORT = 1900
# any routable address; connecting a UDP socket sends nothing
ROUTE_PROBE_ADDRESS = ("8.8.8.8", 80)


def build_search_request(search_target: str, mx: int = 1) -> bytes:
    lines = [
        "M-SEARCH * HTTP/1.1",
        f"HOST: {SSDP_GROUP}:{SSDP_PORT}",
        'MAN: "ssdp:discover"',
        f"MX: {mx}",
        f"ST: {search_target}",
        "",
        "",
    ]
    return "\r\n".join(lines).encode("utf-8")


def parse_location_host(payload: bytes) -> str | None:
    """Return the host part of the ``LOCATION:`` header of an SSDP reply."""
    text = payload.decode("utf-8", errors="ignore")
    for line in text.splitlines():
        name, sep, value = line.partition(":")
        if not sep or name.strip().lower() != "location":
            continue
        location = value.strip()
        if "://" not in location:
            location = f"http://{location}"
        try:
            host = urlsplit(location).hostname
        except ValueError:
            return None
        return host or None
    return None


class SSDPListener(asyncio.DatagramProtocol):
    def __init__(self) -> None:
        self._found: set[str] = set()

    def datagram_received(self, data: bytes, addr: tuple[str, int]) -> None:
        host = parse_location_host(data)
        if host is None:
            logger.debug("Ignoring SSDP packet without location from %s", addr[0])
            return
        if host not in self._found:
            logger.debug("SSDP reply from %s (location host %s)", addr[0], host)
        self._found.add(host)

    def error_received(self, exc: Exception) -> None:
        logger.debug("SSDP socket error: %s", exc)

    def addresses(self) -> set[str]:
        return set(self._found)


async def ssdp_search(config: DiscoveryConfig, timeout: float | None = None) -> set[str]:
    window = config.timeout if timeout is None else timeout
    loop = asyncio.get_running_loop()
    payload = build_search_request(config.search_target)

    try:
        transport, listener = await loop.create_datagram_endpoint(
            SSDPListener, local_addr=("0.0.0.0", 0), family=socket.AF_INET
        )
    except OSError as exc:
        logger.warning("Could not open SSDP socket: %s", exc)
        return set()

    started = loop.time()
    try:
        sock = transport.get_extra_info("socket")
        if sock is not None:
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, 2)

        for copy in range(config.copies):
            if copy:
                await asyncio.sleep(random.uniform(0, config.jitter))
            try:
                transport.sendto(payload, (SSDP_GROUP, SSDP_PORT))
            except OSError as exc:
                logger.debug("SSDP send failed: %s", exc)

        remaining = window - (loop.time() - started)
        if remaining > 0:
            await asyncio.sleep(remaining)
    finally:
        transport.close()

    found = listener.addresses()
    logger.debug("SSDP search complete: %d address(es)", len(found))
    return found


def detect_local_address() -> str | None:
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect(ROUTE_PROBE_ADDRESS)
            local_ip = sock.getsockname()[0]
    except OSError as exc:
        logger.debug("Could not detect local address: %s", exc)
        return None
    return str(local_ip)


def sweep_hosts(local_ip: str) -> list[str]:
    network = ipaddress.ip_network(f"{local_ip}/24", strict=False)
    return [str(host) for host in network.hosts() if str(host) != local_ip]


async def sweep_subnet(
    transport: EcpTransport,
    config: DiscoveryConfig,
    local_ip: str | None = None,
) -> set[str]:
    local_ip = local_ip or detect_local_address()
    if local_ip is None:
        logger.warning("No local IPv4 address; skipping subnet sweep")
        return set()

    hosts = sweep_hosts(local_ip)
    if not hosts:
        return set()

    worker_count = min(config.sweep_workers, len(hosts))
    logger.debug(
        "Sweeping %s/24 (%d hosts, %d workers)", local_ip, len(hosts), worker_count
    )

    queue: asyncio.Queue[str | None] = asyncio.Queue(maxsize=worker_count * 4)
    found: set[str] = set()

    async def _producer() -> None:
        for host in hosts:
            await queue.put(host)
        for _ in range(worker_count):
            await queue.put(None)

    async def _worker() -> None:
        while True:
            host = await queue.get()
            try:
                if host is None:
                    return
                if await transport.probe(host):
                    logger.debug("Sweep hit at %s", host)
                    found.add(host)
            finally:
                queue.task_done()

    workers = [asyncio.create_task(_worker()) for _ in range(worker_count)]
    workers_completed = False
    try:
        await _producer()
        await queue.join()
        await asyncio.gather(*workers)
        workers_completed = True
    finally:
        if not workers_completed:
            for worker in workers:
                if not worker.done():
                    worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

    logger.debug("Sweep complete: found %d device(s)", len(found))
    return found


async def _describe(transport: EcpTransport, address: str) -> Device:
    info = await transport.query_device_info(address)
    name = info.name if info is not None else PLACEHOLDER_NAME
    return Device(address=address, name=name)


def _address_sort_key(address: str) -> tuple[int, str]:
    try:
        return (int(ipaddress.ip_address(address)), address)
    except ValueError:
        return (1 << 32, address)


async def discover(
    transport: EcpTransport,
    config: DiscoveryConfig | None = None,
    timeout: float | None = None,
) -> list[Device]:
    """Find ECP devices on the local network.

    SSDP goes first; the /24 HTTP sweep only runs when nobody answered the
    multicast query. Every address found is enriched with its display name.
    """
    config = config or DiscoveryConfig()

    addresses = await ssdp_search(config, timeout)
    if addresses:
        logger.info("SSDP found %d device(s)", len(addresses))
    else:
        logger.info("No SSDP response, running HTTP sweep")
        addresses = await sweep_subnet(transport, config)

    ordered = sorted(addresses, key=_address_sort_key)
    return list(await asyncio.gather(*(_describe(transport, ip) for ip in ordered)))


def merge_devices(
    existing: list[Device], found: list[Device]
) -> tuple[list[Device], list[Device]]:
    """Union by address; known devices keep their (possibly user-given) name.

    Returns the merged list and the devices that were new.
    """
    known = {device.address for device in existing}
    merged = list(existing)
    added: list[Device] = []
    for device in found:
        if device.address in known:
            continue
        known.add(device.address)
        merged.append(device)
        added.append(device)
    return merged, added
