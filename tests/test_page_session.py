"""Tests for PageSession and PageSessionRegistry."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from empire.config import Settings
from empire.services.media_cell import MediaStatus
from empire.services.page_session import PageSession, PageSessionRegistry
from empire.services.reveal import IntersectionEntry, RevealTarget, TargetKind
from empire.services.startup import StartupPhase
from tests.conftest import image_part


def _client() -> MagicMock:
    client = MagicMock()
    client.generate = AsyncMock(return_value=[image_part("AAAA")])
    return client


def _settings() -> Settings:
    return Settings(SPLASH_DURATION_MS=800, SETTLE_DELAY_MS=100, STAGGER_STEP_MS=120)


@pytest.mark.asyncio
async def test_page_startup_and_reveal(host, manual_sleep) -> None:
    session = PageSession("page-1", _client(), host, _settings(), sleep=manual_sleep)
    session.mount_target(RevealTarget(id="hero", kind=TargetKind.STAGGERED, children=("h1", "h2")))
    session.mount_target(RevealTarget(id="about"))
    session.mount_target(RevealTarget(id="about"))

    await session.start()

    assert session.startup.phase == StartupPhase.READY
    assert manual_sleep.calls == [0.8, 0.1]
    assert [i for i, _ in host.observed] == ["hero", "about"]

    (activation,) = session.coordinator.handle_intersections([
        IntersectionEntry(target_id="hero", is_intersecting=True, ratio=0.3),
    ])
    assert [c.delay_ms for c in activation.children] == [120, 240]

    session.mount_target(RevealTarget(id="services"))
    assert host.observed[-1] == ("services", 0.1)


@pytest.mark.asyncio
async def test_mount_cell_and_listener(host) -> None:
    session = PageSession("page-1", _client(), host, _settings())
    updates = []
    session.add_cell_listener(lambda key, snap: updates.append((key, snap.status)))

    cell = session.mount_cell("hero-bg", "Luxury gym interior")
    await cell.wait_settled()

    assert cell.status == MediaStatus.READY
    assert cell.payload == "data:image/png;base64,AAAA"
    assert updates == [("hero-bg", MediaStatus.READY)]
    assert session.get_cell("hero-bg") is cell


@pytest.mark.asyncio
async def test_mount_same_key_reprompts(host) -> None:
    client = _client()
    session = PageSession("page-1", client, host, _settings())

    first = session.mount_cell("k", "a")
    await first.wait_settled()
    second = session.mount_cell("k", "b")
    await second.wait_settled()

    assert first is second
    assert second.prompt == "b"
    assert client.generate.await_count == 2


@pytest.mark.asyncio
async def test_unmount_cell(host) -> None:
    session = PageSession("page-1", _client(), host, _settings())
    cell = session.mount_cell("k", "a")

    assert session.unmount_cell("k") is True
    assert session.unmount_cell("k") is False
    assert not cell.alive
    await cell.wait_settled()
    assert cell.status == MediaStatus.PENDING


@pytest.mark.asyncio
async def test_teardown_releases_everything(host, manual_sleep) -> None:
    session = PageSession("page-1", _client(), host, _settings(), sleep=manual_sleep)
    session.mount_target(RevealTarget(id="hero"))
    await session.start()
    cell = session.mount_cell("k", "a")

    session.teardown()
    session.teardown()

    assert session.closed
    assert not cell.alive
    assert host.unobserved == ["hero"]
    assert host.disconnected
    with pytest.raises(RuntimeError):
        session.mount_cell("k2", "b")
    with pytest.raises(RuntimeError):
        session.mount_target(RevealTarget(id="late"))
    await cell.wait_settled()


@pytest.mark.asyncio
async def test_teardown_during_splash_cancels_startup(host) -> None:
    session = PageSession("page-1", _client(), host, Settings(SPLASH_DURATION_MS=10_000))
    session.mount_target(RevealTarget(id="hero"))
    task = session.start()

    session.teardown()

    with pytest.raises(BaseException):
        await task
    assert task.cancelled()
    assert host.observed == []


@pytest.mark.asyncio
async def test_registry(host) -> None:
    registry = PageSessionRegistry()
    session = registry.create(_client(), host, _settings())

    assert registry.get(session.page_id) is session
    assert len(registry) == 1
    assert registry.close(session.page_id) is True
    assert registry.close(session.page_id) is False
    assert session.closed

    registry.create(_client(), host, _settings())
    registry.close_all()
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_registry_closes_page_that_never_starts(host) -> None:
    registry = PageSessionRegistry(connect_timeout=0.01)
    session = registry.create(_client(), host, _settings())

    await asyncio.sleep(0.05)

    assert registry.get(session.page_id) is None
    assert len(registry) == 0
    assert session.closed
    assert host.disconnected


@pytest.mark.asyncio
async def test_registry_keeps_started_page(host, manual_sleep) -> None:
    registry = PageSessionRegistry(connect_timeout=0.01)
    session = registry.create(_client(), host, _settings(), sleep=manual_sleep)
    await session.start()

    await asyncio.sleep(0.05)

    assert registry.get(session.page_id) is session
    assert not session.closed
    registry.close_all()
