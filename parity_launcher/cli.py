"""
Command-line handling for the launcher.

The launcher understands a handful of its own flags. Everything else on the
command line is meant for parity and is forwarded to it unchanged.
"""

import argparse
import shlex
from dataclasses import dataclass, field

from .config import Config, config

LIGHT_MODE_FLAG = "--light"


@dataclass
class CliOptions:
    """Options parsed from the launcher's command line."""

    run_parity: bool = True
    ws_interface: str | None = None
    ws_port: int | None = None
    parity_argv: list[str] = field(default_factory=list)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="parity-launcher",
        description="Run a local Parity client and serve its status over HTTP.",
    )
    parser.add_argument(
        "--no-run-parity",
        dest="run_parity",
        action="store_false",
        help="Do not launch parity, only serve the API",
    )
    parser.add_argument("--ws-interface", help="Interface parity's websocket server listens on")
    parser.add_argument("--ws-port", type=int, help="Port parity's websocket server listens on")
    return parser


def parse_cli(argv: list[str]) -> CliOptions:
    """Split argv into launcher options and arguments forwarded to parity."""
    known, forwarded = build_parser().parse_known_args(argv)

    # ws settings are parity flags too, so they travel along
    if known.ws_interface is not None:
        forwarded += ["--ws-interface", known.ws_interface]
    if known.ws_port is not None:
        forwarded += ["--ws-port", str(known.ws_port)]

    return CliOptions(
        run_parity=known.run_parity,
        ws_interface=known.ws_interface,
        ws_port=known.ws_port,
        parity_argv=forwarded,
    )


def apply_cli(options: CliOptions, cfg: Config = config) -> Config:
    """Override configuration with command-line options."""
    if not options.run_parity:
        cfg.run_parity = False
    if options.ws_interface is not None:
        cfg.ws_interface = options.ws_interface
    if options.ws_port is not None:
        cfg.ws_port = options.ws_port
    cfg.parity_args = list(cfg.parity_args) + options.parity_argv
    return cfg


def parity_argv(cfg: Config = config) -> list[str]:
    """Explicit launch arguments for parity, without the light-mode flag."""
    return list(cfg.parity_args)


def launch_args(explicit: list[str]) -> list[str]:
    """Full argument vector: explicit arguments followed by light mode."""
    return [*explicit, LIGHT_MODE_FLAG]


def log_command(path: str, args: list[str]) -> str:
    """Render a command line for the logs."""
    return shlex.join([str(path), *args])
