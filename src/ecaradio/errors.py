"""
Exception hierarchy for ecaradio.

Nothing here is retried automatically; every error propagates to the caller.
"""


class EcaradioError(Exception):
    """Base class for all ecaradio errors."""
    pass


class ConfigurationError(EcaradioError):
    """Raised for invalid configuration, naming conflicts or unusable I/O specs."""
    pass


class EngineError(EcaradioError):
    """Base class for problems talking to the ecasound engine."""
    pass


class EngineUnavailable(EngineError):
    """The engine process cannot be reached or broke the reply framing."""
    pass


class EngineCommandError(EngineError):
    """The engine answered a command with an error reply."""

    def __init__(self, command: str, message: str):
        super().__init__(f"{command}: {message}")
        self.command = command
        self.message = message


class EngineStuck(EngineError):
    """The engine stayed in the running state past the poll timeout."""
    pass


class MeasurementError(EngineError):
    """A file could not be given a usable length."""
    pass
