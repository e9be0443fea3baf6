"""
Locating the parity executable.
"""

import logging
import os
import shutil
from pathlib import Path

from .config import Config, config
from .errors import ParityNotFoundError

logger = logging.getLogger(__name__)

EXECUTABLE_NAME = "parity.exe" if os.name == "nt" else "parity"


async def get_parity_path(cfg: Config = config) -> str:
    """
    Resolve the parity binary.

    Checked in order: PARITY_PATH, the launcher's own bin directory, then
    the system PATH.
    """
    if cfg.parity_path:
        if Path(cfg.parity_path).is_file():
            return cfg.parity_path
        logger.warning(f"PARITY_PATH {cfg.parity_path} does not exist, falling back")

    bundled = cfg.bin_dir / EXECUTABLE_NAME
    if bundled.is_file():
        return str(bundled)

    found = shutil.which(EXECUTABLE_NAME)
    if found:
        return found

    raise ParityNotFoundError(
        f"Could not find {EXECUTABLE_NAME}; set PARITY_PATH or install it in {cfg.bin_dir}"
    )
