"""
Record sinks.

Two interchangeable writers behind the RecordSink interface; the
configuration picks exactly one of them.
"""

from ..exceptions import ConfigurationError
from .base import RecordSink
from .json_store import JsonStoreSink, ReadWriteLock
from .line import LineSink

SINK_TYPES = {
    'line': LineSink,
    'json': JsonStoreSink,
}


def create_sink(output_format: str, output_file: str, resume: bool = False) -> RecordSink:
    """
    Build the sink for the configured output format.

    Args:
        output_format: 'line' or 'json'
        output_file: Path of the output file
        resume: JSON store only, load an existing output file first

    Raises:
        ConfigurationError: If the output format is unknown
    """
    if output_format not in SINK_TYPES:
        raise ConfigurationError(
            f"Invalid output format: {output_format}. Must be one of {sorted(SINK_TYPES)}"
        )

    if output_format == 'json':
        return JsonStoreSink(output_file, resume=resume)
    return LineSink(output_file)


__all__ = [
    'RecordSink',
    'LineSink',
    'JsonStoreSink',
    'ReadWriteLock',
    'SINK_TYPES',
    'create_sink',
]
