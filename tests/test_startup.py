"""Tests for the splash -> observe startup sequence."""

from __future__ import annotations

import asyncio

import pytest

from empire.services.reveal import RevealTarget, ViewportRevealCoordinator
from empire.services.startup import RevealStartup, StartupPhase


def _targets(*ids: str) -> list[RevealTarget]:
    return [RevealTarget(id=i) for i in ids]


@pytest.mark.asyncio
async def test_splash_then_register_existing_targets(host, manual_sleep) -> None:
    coord = ViewportRevealCoordinator(host)
    document = _targets("hero", "about", "contact")
    startup = RevealStartup(coord, lambda: document, splash_ms=800, settle_ms=100, sleep=manual_sleep)

    assert startup.phase == StartupPhase.LOADING
    assert host.observed == []

    registered = await startup.run()

    assert startup.phase == StartupPhase.READY
    assert startup.observing
    assert registered == 3
    assert manual_sleep.calls == [0.8, 0.1]
    assert [i for i, _ in host.observed] == ["hero", "about", "contact"]


@pytest.mark.asyncio
async def test_nothing_observed_while_loading(host) -> None:
    coord = ViewportRevealCoordinator(host)
    snapshots = []

    async def sleep(seconds):
        snapshots.append((startup.phase, list(host.observed)))

    startup = RevealStartup(coord, lambda: _targets("hero"), sleep=sleep)
    await startup.run()

    assert snapshots == [
        (StartupPhase.LOADING, []),
        (StartupPhase.READY, []),
    ]
    assert host.observed == [("hero", 0.1)]


@pytest.mark.asyncio
async def test_phase_listener_sees_ready_once(host, manual_sleep) -> None:
    coord = ViewportRevealCoordinator(host)
    phases = []
    startup = RevealStartup(coord, lambda: [], sleep=manual_sleep)
    startup.add_listener(phases.append)

    await startup.run()

    assert phases == [StartupPhase.READY]


@pytest.mark.asyncio
async def test_run_is_single_shot(host, manual_sleep) -> None:
    startup = RevealStartup(ViewportRevealCoordinator(host), lambda: [], sleep=manual_sleep)
    await startup.run()
    with pytest.raises(RuntimeError):
        await startup.run()


@pytest.mark.asyncio
async def test_mount_before_and_after_pass(host, manual_sleep) -> None:
    coord = ViewportRevealCoordinator(host)
    document = _targets("hero")
    startup = RevealStartup(coord, lambda: document, sleep=manual_sleep)

    early = RevealTarget(id="early")
    document.append(early)
    assert startup.mount(early) is False
    assert host.observed == []

    await startup.run()
    assert coord.registered_ids == ["hero", "early"]

    assert startup.mount(RevealTarget(id="late")) is True
    assert startup.mount(RevealTarget(id="late")) is False
    assert [i for i, _ in host.observed] == ["hero", "early", "late"]


@pytest.mark.asyncio
async def test_cancel_during_splash_registers_nothing(host) -> None:
    coord = ViewportRevealCoordinator(host)
    blocked = asyncio.Event()

    async def sleep(seconds):
        await blocked.wait()

    startup = RevealStartup(coord, lambda: _targets("hero"), sleep=sleep)
    task = asyncio.create_task(startup.run())
    await asyncio.sleep(0)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task

    assert startup.phase == StartupPhase.LOADING
    assert host.observed == []


@pytest.mark.asyncio
async def test_real_sleep_timing(host) -> None:
    coord = ViewportRevealCoordinator(host)
    startup = RevealStartup(coord, lambda: _targets("a", "b", "c"), splash_ms=5, settle_ms=1)

    assert await startup.run() == 3
    assert sorted(coord.registered_ids) == ["a", "b", "c"]
