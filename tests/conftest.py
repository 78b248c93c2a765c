import os
import asyncio

import pytest

from burnvault.backends import MemoryBackend
from burnvault.clock import ManualClock
from burnvault.config import StoreConfig
from burnvault.crypto import Cipher
from burnvault.store import SecretStore


class SlowReadBackend(MemoryBackend):
    """Memory backend that yields to the event loop after every read.

    Lets concurrent retrievals interleave between load and update.
    """

    async def get_by_id(self, public_id):
        record = await super().get_by_id(public_id)
        await asyncio.sleep(0)
        return record


@pytest.fixture
def master_key():
    return os.urandom(32)


@pytest.fixture
def cipher(master_key):
    return Cipher(master_key)


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def store(backend, cipher, clock):
    return SecretStore(backend=backend, cipher=cipher, clock=clock)


@pytest.fixture
def racy_store(cipher, clock):
    return SecretStore(backend=SlowReadBackend(), cipher=cipher, clock=clock)


@pytest.fixture
def config(master_key):
    return StoreConfig(
        master_key=master_key,
        sweep_interval=0,
        frontend_url="https://drop.example.com/",
    )
