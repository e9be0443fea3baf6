"""
Pytest configuration and shared fixtures for parity launcher tests.

The environment is set up before the package is imported, since the
launcher reads its configuration at import time.
"""

import os
import sys
import tempfile
import textwrap

os.environ["PARITY_LAUNCHER_DATA_DIR"] = tempfile.mkdtemp(prefix="parity-launcher-tests-")
os.environ["PARITY_RUN"] = "false"
os.environ["PARITY_ARGS"] = ""

import pytest  # noqa: E402


class FakeWindow:
    """Notification target that records what it was sent."""

    def __init__(self):
        self.messages = []

    def send(self, channel, payload=None):
        self.messages.append((channel, payload))


@pytest.fixture
def window():
    return FakeWindow()


@pytest.fixture
def parity_script(tmp_path):
    """
    Factory writing a stand-in parity executable.

    The file is created without the execute bit; the supervisor is expected
    to add it before spawning.
    """

    def make(body: str, name: str = "parity") -> str:
        path = tmp_path / name
        path.write_text(f"#!{sys.executable}\n" + textwrap.dedent(body))
        path.chmod(0o644)
        return str(path)

    return make


@pytest.fixture
def not_running():
    async def check(target):
        return False

    return check
