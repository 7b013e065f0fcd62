from __future__ import annotations


class RunnerError(Exception):
    """Base class for errors raised by the runner backend."""


class ConfigError(RunnerError):
    """Configuration file exists but cannot be loaded or validated."""


class DescriptorError(RunnerError):
    """A single descriptor file could not be read."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class ProtocolError(RunnerError):
    """Malformed frame or request body."""

    def __init__(self, command: str, reason: str):
        super().__init__(f"{command or '<empty>'}: {reason}")
        self.command = command
        self.reason = reason
