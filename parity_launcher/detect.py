"""
Detection of a parity instance that is already running.

Parity answers plain HTTP requests on its websocket port, so any response at
all means someone else's instance owns it.
"""

import logging

import httpx

from .config import Config, config

logger = logging.getLogger(__name__)


async def is_parity_running(notify_target=None, cfg: Config = config) -> bool:
    """Probe the websocket interface. Notifies the target if parity answers."""
    url = cfg.ws_url()
    try:
        async with httpx.AsyncClient(timeout=cfg.probe_timeout, trust_env=False) as client:
            await client.get(url)
    except httpx.HTTPError:
        return False

    logger.info(f"Another instance of parity is already running on {url}, skip running local instance.")
    if notify_target is not None:
        notify_target.send("parity-running", True)
    return True
