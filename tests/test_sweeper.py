"""Tests for the periodic SecretSweeper."""
import asyncio

import pytest

from burnvault.backends import MemoryBackend
from burnvault.exceptions import BackendUnavailable
from burnvault.store import SecretStore
from burnvault.sweeper import SecretSweeper


class FlakyBackend(MemoryBackend):
    async def delete_expired_before(self, timestamp):
        raise BackendUnavailable("connection reset")


async def test_run_once(store, clock):
    await store.create("x", ttl_seconds=1)
    await store.create("y")
    clock.advance(5)
    sweeper = SecretSweeper(store, interval=60)
    assert await sweeper.run_once() == 1
    assert sweeper.runs == 1
    assert sweeper.deleted == 1


async def test_failure_is_logged_not_raised(cipher, clock, caplog):
    store = SecretStore(backend=FlakyBackend(), cipher=cipher, clock=clock)
    sweeper = SecretSweeper(store, interval=60)
    assert await sweeper.run_once() == 0
    assert sweeper.runs == 0
    assert "Sweep failed" in caplog.text


async def test_start_and_stop(store, backend, clock):
    await store.create("x", ttl_seconds=1)
    clock.advance(5)
    sweeper = SecretSweeper(store, interval=0.01)
    sweeper.start()
    assert sweeper.running
    for _ in range(50):
        if len(backend) == 0:
            break
        await asyncio.sleep(0.01)
    await sweeper.stop()
    assert not sweeper.running
    assert len(backend) == 0
    assert sweeper.runs >= 1


async def test_stop_without_start(store):
    await SecretSweeper(store).stop()


@pytest.mark.parametrize("interval", [0, -1])
def test_invalid_interval(store, interval):
    with pytest.raises(ValueError):
        SecretSweeper(store, interval=interval)


class CrashOnceBackend(MemoryBackend):
    def __init__(self):
        super().__init__()
        self.calls = 0

    async def delete_expired_before(self, timestamp):
        self.calls += 1
        if self.calls == 1:
            raise RuntimeError("canceling statement due to statement timeout")
        return await super().delete_expired_before(timestamp)


async def test_unexpected_error_does_not_stop_loop(cipher, clock, caplog):
    backend = CrashOnceBackend()
    store = SecretStore(backend=backend, cipher=cipher, clock=clock)
    sweeper = SecretSweeper(store, interval=0.01)
    sweeper.start()
    for _ in range(100):
        if backend.calls >= 2:
            break
        await asyncio.sleep(0.01)
    assert backend.calls >= 2
    assert sweeper.running
    await sweeper.stop()
    assert not sweeper.running
    assert sweeper.runs >= 1
    assert "Unexpected error during sweep" in caplog.text
