"""
Entry point for running the launcher via `python -m parity_launcher`.

Launcher flags (--no-run-parity, --ws-interface, --ws-port) are consumed
here; every other argument is passed through to parity.
"""

import sys

import uvicorn

from .cli import apply_cli, parse_cli
from .config import config
from .host import graceful_exit


def main(argv=None):
    """Run the launcher server."""
    apply_cli(parse_cli(sys.argv[1:] if argv is None else argv), config)
    uvicorn.run(
        "parity_launcher.main:app",
        host=config.host,
        port=config.port,
        reload=False,
    )

    # Set when a parity failure asked the host to exit
    if graceful_exit.status:
        sys.exit(graceful_exit.status)


if __name__ == "__main__":
    main()
