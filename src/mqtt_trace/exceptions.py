"""
MQTT Trace Exception Hierarchy

Exception classes shared by the recorder components. Sink errors are
recoverable per message; configuration and connection errors are fatal
at startup.
"""


class MqttTraceError(Exception):
    """
    Base exception for all mqtt-trace errors.

    All recorder-specific exceptions inherit from this base class
    so callers can catch every recorder error with a single except clause.
    """
    pass


class ConfigurationError(MqttTraceError):
    """Exception raised for configuration-related errors."""
    pass


class MqttConnectionError(MqttTraceError):
    """
    MQTT communication errors.

    Raised when:
    - The broker cannot be reached
    - The initial connection is refused
    """
    pass


class SinkError(MqttTraceError):
    """
    Message persistence errors.

    Raised by a sink when a record could not be written to the output
    file. The original OSError or encoding error is kept as __cause__.
    """
    pass


class SinkOpenError(SinkError):
    """The output file could not be opened or created."""
    pass


class SinkWriteError(SinkError):
    """The record could not be encoded or written to the output file."""
    pass


def wrap_exception(exc: Exception, new_exc_type: type, message: str | None = None) -> Exception:
    """
    Wrap an existing exception in a new exception type while preserving the original.

    Args:
        exc: Original exception to wrap
        new_exc_type: New exception type to wrap with
        message: Optional custom message (uses original message if None)

    Returns:
        New exception instance with original exception chained
    """
    if message is None:
        message = str(exc)

    new_exc = new_exc_type(f"{message}: {type(exc).__name__}: {exc}")
    new_exc.__cause__ = exc
    return new_exc
