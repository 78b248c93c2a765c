"""Tests for the burnvault command line."""
import base64

import pytest

from burnvault.__main__ import build_parser, main
from burnvault.config import MASTER_KEY_ENV, generate_master_key
from burnvault.exceptions import BackendUnavailable


def test_genkey(capsys):
    assert main(["genkey"]) == 0
    key = capsys.readouterr().out.strip()
    assert len(base64.b64decode(key)) == 32


def test_sweep(monkeypatch, capsys):
    monkeypatch.setenv(MASTER_KEY_ENV, generate_master_key())
    monkeypatch.setenv("BURNVAULT_BACKEND", "memory")
    assert main(["sweep"]) == 0
    assert "Removed 0 expired secret(s)" in capsys.readouterr().out


def test_sweep_without_key(monkeypatch):
    monkeypatch.delenv(MASTER_KEY_ENV, raising=False)
    assert main(["sweep"]) == 1


def test_sweep_backend_unavailable(monkeypatch, caplog):
    async def refused(config):
        raise BackendUnavailable("connection refused")

    monkeypatch.setenv(MASTER_KEY_ENV, generate_master_key())
    monkeypatch.setattr("burnvault.__main__._sweep", refused)
    assert main(["sweep"]) == 1
    assert "connection refused" in caplog.text


def test_serve_defaults():
    args = build_parser().parse_args(["serve"])
    assert args.host == "0.0.0.0"
    assert args.port == 8080


def test_command_required():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])
