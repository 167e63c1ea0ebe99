"""
Error taxonomy.

Each class maps to one containment level:

- ConfigError: startup only, fatal
- RegistryError: the cycle is skipped
- ConnectError: the device is skipped for this cycle
- CommandError / CommandTimeoutError: the command is skipped
- SinkWriteError: the point is skipped
- SinkFlushError: the batch is lost, the next cycle runs normally
"""


class AgentError(Exception):
    """Base error for the telemetry agent."""


class ConfigError(AgentError):
    """Required settings are missing or invalid."""


class RegistryError(AgentError):
    """The device list could not be obtained."""


class ConnectError(AgentError):
    """A device session could not be opened (unreachable or login refused)."""


class CommandError(AgentError):
    """A device command failed."""


class CommandTimeoutError(CommandError):
    """A device command did not answer before its deadline."""


class SinkWriteError(AgentError):
    """A point could not be queued for the time-series store."""


class SinkFlushError(AgentError):
    """A buffered batch could not be transmitted."""
