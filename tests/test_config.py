"""
Tests for StoreConfig and master key loading.
"""
import base64
import os

import pytest
from pydantic import ValidationError

from burnvault.config import (
    MASTER_KEY_ENV,
    StoreConfig,
    generate_master_key,
    load_master_key,
)


@pytest.fixture
def env():
    return {MASTER_KEY_ENV: generate_master_key()}


class TestMasterKey:
    """Tests for load_master_key / generate_master_key."""

    def test_generated_key_decodes_to_32_bytes(self):
        assert len(base64.b64decode(generate_master_key())) == 32

    def test_load(self, env):
        assert load_master_key(env) == base64.b64decode(env[MASTER_KEY_ENV])

    def test_missing_key(self):
        with pytest.raises(RuntimeError):
            load_master_key({})

    def test_short_key(self):
        env = {MASTER_KEY_ENV: base64.b64encode(os.urandom(16)).decode()}
        with pytest.raises(ValueError):
            load_master_key(env)

    def test_not_base64(self):
        with pytest.raises(ValueError):
            load_master_key({MASTER_KEY_ENV: "not base64!!"})

    def test_reads_process_environment(self, monkeypatch):
        key = generate_master_key()
        monkeypatch.setenv(MASTER_KEY_ENV, key)
        assert load_master_key() == base64.b64decode(key)


class TestStoreConfig:
    """Tests for StoreConfig validation."""

    def test_defaults(self, env):
        config = StoreConfig.from_env(env)
        assert config.cipher_backend == "aesgcm"
        assert config.backend == "memory"
        assert config.sweep_interval == 60
        assert config.max_text_length == 10000

    def test_env_overrides(self, env):
        env.update({
            "BURNVAULT_CIPHER_BACKEND": "ChaCha20",
            "BURNVAULT_BACKEND": "redis",
            "BURNVAULT_REDIS_URL": "redis://localhost:6379/0",
            "BURNVAULT_SWEEP_INTERVAL": "15",
            "BURNVAULT_FRONTEND_URL": "https://drop.example.com",
        })
        config = StoreConfig.from_env(env)
        assert config.cipher_backend == "chacha20"
        assert config.backend == "redis"
        assert config.sweep_interval == 15
        assert config.frontend_url == "https://drop.example.com"

    def test_postgres_requires_dsn(self, env):
        env["BURNVAULT_BACKEND"] = "postgres"
        with pytest.raises(ValidationError):
            StoreConfig.from_env(env)

    def test_unknown_backend(self, env):
        env["BURNVAULT_BACKEND"] = "mongodb"
        with pytest.raises(ValidationError):
            StoreConfig.from_env(env)

    def test_unknown_cipher(self, env):
        env["BURNVAULT_CIPHER_BACKEND"] = "des"
        with pytest.raises(ValidationError):
            StoreConfig.from_env(env)

    def test_negative_sweep_interval(self, env):
        env["BURNVAULT_SWEEP_INTERVAL"] = "-1"
        with pytest.raises(ValidationError):
            StoreConfig.from_env(env)

    def test_repr_hides_secrets(self, env):
        env.update({
            "BURNVAULT_BACKEND": "postgres",
            "BURNVAULT_DSN": "postgres://user:pw@db/vault",
        })
        text = repr(StoreConfig.from_env(env))
        assert "master_key" not in text
        assert "pw@db" not in text
