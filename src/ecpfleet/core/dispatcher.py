from __future__ import annotations

import asyncio
import logging

from ecpfleet.models import DispatchResult
from ecpfleet.storage import StateStore

from .commands import is_power_off, is_power_on, label_for
from .notify import Notifier
from .transport import EcpTransport

logger = logging.getLogger(__name__)


def sanitize_address(address: str) -> str | None:
    clean = address.strip()
    if not clean or "." not in clean:
        return None
    return clean


def apply_power_side_effect(state: StateStore, address: str, command: str) -> None:
    if is_power_off(command):
        state.suppress(address)
    elif is_power_on(command):
        state.clear_suppression(address)


async def send_to_all(
    transport: EcpTransport,
    state: StateStore,
    addresses: list[str],
    command: str,
    notifier: Notifier | None = None,
) -> DispatchResult:
    """Send ``command`` to every address concurrently and count the successes.

    Malformed addresses count as failures without a request. A successful
    power off marks the device suppressed; a successful power on clears it.
    """
    result = DispatchResult(command=command)
    if not addresses:
        logger.info("No devices to send %s to", command)
        return result

    async def _send_one(raw: str) -> tuple[str, bool]:
        address = sanitize_address(raw)
        if address is None:
            logger.warning("Skipping malformed address %r", raw)
            return raw, False

        ok = await transport.send(address, command)
        if ok:
            apply_power_side_effect(state, address, command)
        else:
            logger.warning("%s failed on %s", label_for(command), address)
        return address, ok

    result.outcomes = list(await asyncio.gather(*(_send_one(a) for a in addresses)))

    message = f"{label_for(command)} → {result.ok}/{result.total} succeeded"
    if notifier is not None:
        notifier.notify("Dispatch", message)
    else:
        logger.info("%s", message)
    return result
