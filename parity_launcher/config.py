"""
Configuration for the parity launcher.

Loads settings from environment variables with sensible defaults.
All persistent data is stored in ~/.parity-launcher/
"""

import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


@dataclass
class Config:
    """Launcher configuration."""

    # Paths
    data_dir: Path = Path(os.environ.get("PARITY_LAUNCHER_DATA_DIR", str(Path.home() / ".parity-launcher")))
    db_path: Path = None
    bin_dir: Path = None
    launcher_log: Path = None

    # Logging
    log_max_bytes: int = int(os.environ.get("LOG_MAX_BYTES", str(10 * 1024 * 1024)))  # 10MB
    log_backup_count: int = int(os.environ.get("LOG_BACKUP_COUNT", "5"))

    # Server
    host: str = os.environ.get("PARITY_LAUNCHER_HOST", "127.0.0.1")
    port: int = int(os.environ.get("PARITY_LAUNCHER_PORT", "9955"))

    # Parity
    run_parity: bool = _env_bool("PARITY_RUN", "true")
    parity_path: str = os.environ.get("PARITY_PATH", "")
    parity_args: list[str] = field(default_factory=lambda: shlex.split(os.environ.get("PARITY_ARGS", "")))
    ws_interface: str = os.environ.get("PARITY_WS_INTERFACE", "127.0.0.1")
    ws_port: int = int(os.environ.get("PARITY_WS_PORT", "8546"))
    probe_timeout: float = float(os.environ.get("PARITY_PROBE_TIMEOUT", "2.0"))
    output_chunk_size: int = int(os.environ.get("OUTPUT_CHUNK_SIZE", "4096"))

    # Monitoring
    monitor_interval: int = int(os.environ.get("MONITOR_INTERVAL", "60"))
    log_retention_days: int = int(os.environ.get("LOG_RETENTION_DAYS", "7"))

    def __post_init__(self):
        """Initialize derived paths and create directories."""
        self.db_path = self.data_dir / "launcher.db"
        self.bin_dir = self.data_dir / "bin"
        self.launcher_log = self.data_dir / "launcher.log"

        # Create directories
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def ws_url(self) -> str:
        """URL of the client's websocket interface, probed over plain HTTP."""
        interface = self.ws_interface
        if interface in ("all", "0.0.0.0", "local"):
            interface = "127.0.0.1"
        return f"http://{interface}:{self.ws_port}"


config = Config()
