"""Tests for locating the parity binary."""

import pytest

from parity_launcher import paths
from parity_launcher.config import Config
from parity_launcher.errors import ParityNotFoundError


@pytest.fixture
def cfg(tmp_path):
    return Config(data_dir=tmp_path / "data", parity_path="")


@pytest.mark.asyncio
async def test_explicit_path_wins(cfg, tmp_path):
    binary = tmp_path / "custom-parity"
    binary.write_text("")
    cfg.parity_path = str(binary)

    assert await paths.get_parity_path(cfg) == str(binary)


@pytest.mark.asyncio
async def test_bundled_binary(cfg, monkeypatch):
    monkeypatch.setattr(paths.shutil, "which", lambda name: None)
    cfg.bin_dir.mkdir(parents=True)
    bundled = cfg.bin_dir / paths.EXECUTABLE_NAME
    bundled.write_text("")

    assert await paths.get_parity_path(cfg) == str(bundled)


@pytest.mark.asyncio
async def test_missing_explicit_path_falls_back_to_system(cfg, monkeypatch):
    monkeypatch.setattr(paths.shutil, "which", lambda name: "/usr/bin/parity")
    cfg.parity_path = "/nowhere/parity"

    assert await paths.get_parity_path(cfg) == "/usr/bin/parity"


@pytest.mark.asyncio
async def test_not_found(cfg, monkeypatch):
    monkeypatch.setattr(paths.shutil, "which", lambda name: None)

    with pytest.raises(ParityNotFoundError):
        await paths.get_parity_path(cfg)
