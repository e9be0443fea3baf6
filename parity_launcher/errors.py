"""
Errors raised while launching and supervising the Parity client.
"""


class ParityError(Exception):
    """Base exception for parity launcher failures."""


class ParityNotFoundError(ParityError):
    """Raised when no parity executable can be located."""


class ParitySpawnError(ParityError):
    """Raised when the parity process could not be spawned."""

    def __init__(self, path: str, original_exception: Exception = None):
        self.path = path
        self.original_exception = original_exception
        message = f"Failed to spawn parity at {path}"
        if original_exception:
            message += f": {original_exception}"
        super().__init__(message)


class ParityTransportError(ParityError):
    """Raised when reading the child's output streams fails."""


class ParityCrashError(ParityError):
    """Parity exited with a non-zero status that isn't a known benign conflict."""

    def __init__(self, exit_code: int | None, signal: str | None):
        self.exit_code = exit_code
        self.signal = signal
        super().__init__(f"Exit code {exit_code}, with signal {signal}.")


class HostExitRequested(ParityError):
    """Parity failed while launched with explicit arguments; the host should exit."""

    def __init__(self, status: int = 1):
        self.status = status
        super().__init__(f"Host exit requested with status {status}")
