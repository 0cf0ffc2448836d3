"""
JSON Store Sink Module

Keeps every record in memory and rewrites the whole output file as a
JSON array after each new message. The cost of a write grows with the
number of records held, so this sink suits low message rates only.
"""

import json
import logging
import os
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Any, List, Mapping, Optional

from ..exceptions import SinkOpenError, SinkWriteError
from ..records import MessageRecord
from .base import RecordSink


class ReadWriteLock:
    """
    Lock allowing many concurrent readers or one writer.

    Waiting writers block new readers so a steady stream of readers
    cannot starve them.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read_locked(self):
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write_locked(self):
        with self._cond:
            self._writers_waiting += 1
            while self._writer or self._readers:
                self._cond.wait()
            self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class JsonStoreSink(RecordSink):
    """
    JSON array writer.

    Records are appended to an in-memory list and the full list is
    written out, two-space indented, on every call. A record is kept in
    memory even when writing the file fails, so the next successful
    rewrite contains it.
    """

    def __init__(self, output_file: str, resume: bool = False):
        """
        Initialize the JSON store.

        Args:
            output_file: Path of the JSON document to maintain
            resume: Load records from an existing output file first

        Raises:
            SinkOpenError: If resume is set and the existing file cannot be read
        """
        super().__init__(output_file)
        self._lock = ReadWriteLock()
        self._records: List[MessageRecord] = []

        if resume:
            self._records = self._load_existing()

    def _load_existing(self) -> List[MessageRecord]:
        if not os.path.exists(self.output_file):
            return []

        try:
            with open(self.output_file, 'r', encoding='utf-8') as fh:
                data = json.load(fh)
            if not isinstance(data, list):
                raise ValueError("top-level value is not an array")
            records = [MessageRecord.from_dict(item) for item in data]
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            raise SinkOpenError(f"Failed to load existing store {self.output_file}: {e}") from e

        logging.info("Resumed JSON store", extra={
            'output_file': self.output_file,
            'record_count': len(records)
        })
        return records

    def record(self, payload: Mapping[str, Any], timestamp: Optional[datetime] = None) -> None:
        entry = MessageRecord.from_payload(payload, timestamp)

        with self._lock.write_locked():
            self._records.append(entry)

            # Encoded in full before the file is truncated. Lone surrogates
            # only occur inside JSON strings, where \udXXX is a valid escape.
            try:
                document = json.dumps([r.to_dict() for r in self._records],
                                      indent=2, ensure_ascii=False) + '\n'
                data = document.encode('utf-8', errors='backslashreplace')
            except (TypeError, ValueError) as e:
                raise SinkWriteError(f"Failed to encode records: {e}") from e

            try:
                fh = open(self.output_file, 'wb')
            except OSError as e:
                raise SinkOpenError(f"Failed to create output file {self.output_file}: {e}") from e

            try:
                with fh:
                    fh.write(data)
            except OSError as e:
                raise SinkWriteError(f"Failed to write to file {self.output_file}: {e}") from e

            record_count = len(self._records)

        logging.debug("JSON store rewritten", extra={
            'output_file': self.output_file,
            'record_count': record_count
        })

    def get_records(self) -> List[MessageRecord]:
        """Snapshot of all records held, in insertion order."""
        with self._lock.read_locked():
            return list(self._records)

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._records)
