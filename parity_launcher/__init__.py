"""
Parity Launcher - runs and supervises a local Parity Ethereum client.

Spawns a single client process in light mode, watches its output for the
"another instance is already running" signatures, and exposes start/stop
controls and status over a small HTTP API.
"""

__version__ = "0.1.0"
