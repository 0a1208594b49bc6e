from __future__ import annotations

import asyncio

from ecpfleet.core import POWER_OFF, POWER_ON, EcpTransport, Notifier, send_to_all
from ecpfleet.core.dispatcher import sanitize_address
from ecpfleet.storage import StateStore


def _dispatch(fake, state, addresses, command, notifier=None):
    async def _run():
        async with EcpTransport(transport=fake.mock) as ecp:
            return await send_to_all(ecp, state, addresses, command, notifier)

    return asyncio.run(_run())


def test_sanitize_address():
    assert sanitize_address(" 10.0.0.5 ") == "10.0.0.5"
    assert sanitize_address("") is None
    assert sanitize_address("   ") is None
    assert sanitize_address("localhost") is None


def test_empty_address_list_makes_no_requests(fake, tmp_path):
    state = StateStore(tmp_path / "state.json")

    result = _dispatch(fake, state, [], POWER_ON)

    assert (result.ok, result.total) == (0, 0)
    assert fake.requests == []


def test_malformed_addresses_fail_without_requests(fake, tmp_path):
    state = StateStore(tmp_path / "state.json")
    fake.power["10.0.0.5"] = "PowerOn"

    result = _dispatch(fake, state, ["10.0.0.5", "tv", ""], POWER_ON)

    assert (result.ok, result.total) == (1, 3)
    assert sorted(result.failed()) == ["", "tv"]
    assert [host for _, host, _ in fake.requests] == ["10.0.0.5"]


def test_power_off_then_on_toggles_suppression(fake, tmp_path):
    state = StateStore(tmp_path / "state.json")
    fake.power["10.0.0.5"] = "PowerOn"

    _dispatch(fake, state, ["10.0.0.5"], POWER_OFF)
    assert state.is_suppressed("10.0.0.5")

    _dispatch(fake, state, ["10.0.0.5"], POWER_ON)
    assert not state.is_suppressed("10.0.0.5")


def test_failed_power_off_does_not_suppress(fake, tmp_path):
    state = StateStore(tmp_path / "state.json")

    result = _dispatch(fake, state, ["10.0.0.7"], POWER_OFF)

    assert (result.ok, result.total) == (0, 1)
    assert not state.is_suppressed("10.0.0.7")


def test_partial_power_on_only_clears_reachable_device(fake, tmp_path):
    state = StateStore(tmp_path / "state.json")
    state.suppress("10.0.0.5")
    state.suppress("10.0.0.6")
    fake.power["10.0.0.5"] = "PowerOff"

    result = _dispatch(fake, state, ["10.0.0.5", "10.0.0.6"], POWER_ON)

    assert (result.ok, result.total) == (1, 2)
    assert result.succeeded() == ["10.0.0.5"]
    assert not state.is_suppressed("10.0.0.5")
    assert state.is_suppressed("10.0.0.6")


def test_launch_leaves_suppression_alone(fake, tmp_path):
    state = StateStore(tmp_path / "state.json")
    state.suppress("10.0.0.5")
    fake.power["10.0.0.5"] = "PowerOn"

    result = _dispatch(fake, state, ["10.0.0.5"], "launch/37835")

    assert result.ok == 1
    assert state.is_suppressed("10.0.0.5")
    assert fake.paths("10.0.0.5") == ["launch/37835"]


def test_summary_goes_to_rolling_log(fake, tmp_path):
    state = StateStore(tmp_path / "state.json")
    fake.power["10.0.0.5"] = "PowerOn"

    _dispatch(fake, state, ["10.0.0.5", "10.0.0.6"], POWER_OFF, Notifier(state))

    assert state.recent_log(1)[0].endswith("Dispatch: Power Off → 1/2 succeeded")
