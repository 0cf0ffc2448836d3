"""
Line Sink Module

Appends one pipe-delimited text line per message to the output file.
Nothing is retained in memory and the file is opened and closed for
every record, so no accepted record sits in an unflushed buffer.
"""

import logging
import threading
from datetime import datetime
from typing import Any, Mapping, Optional

from ..exceptions import SinkOpenError, SinkWriteError
from ..records import MessageRecord
from .base import RecordSink


class LineSink(RecordSink):
    """
    Append-only line writer.

    Each call builds `<date>|name=<name>|rssi=<rssi>` (absent fields
    left out) and appends it under a lock, so lines from concurrent
    callers never interleave.
    """

    def __init__(self, output_file: str):
        super().__init__(output_file)
        self._lock = threading.Lock()

    def record(self, payload: Mapping[str, Any], timestamp: Optional[datetime] = None) -> None:
        line = MessageRecord.from_payload(payload, timestamp).to_line()
        # Lone surrogates from the JSON decoder are written as \udXXX escapes
        data = line.encode('utf-8', errors='backslashreplace')

        with self._lock:
            try:
                fh = open(self.output_file, 'ab')
            except OSError as e:
                raise SinkOpenError(f"Failed to open output file {self.output_file}: {e}") from e

            try:
                with fh:
                    fh.write(data)
            except OSError as e:
                raise SinkWriteError(f"Failed to write to file {self.output_file}: {e}") from e

        logging.debug("Line record written", extra={
            'output_file': self.output_file,
            'line_length': len(data)
        })
