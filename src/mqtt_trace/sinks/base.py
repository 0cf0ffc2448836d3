from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Mapping, Optional


class RecordSink(ABC):
    """Base class for turning decoded messages into durable output."""

    def __init__(self, output_file: str):
        """Initialize the sink.

        Args:
            output_file: Path of the file records are written to
        """
        self.output_file = output_file

    @abstractmethod
    def record(self, payload: Mapping[str, Any], timestamp: Optional[datetime] = None) -> None:
        """Persist one message.

        Args:
            payload: Decoded message body
            timestamp: Receipt time (defaults to now, local, whole seconds)

        Raises:
            SinkOpenError: If the output file cannot be opened or created
            SinkWriteError: If the record cannot be encoded or written
        """
        pass

    def close(self) -> None:
        """Release sink resources. Both sinks hold no open handle between calls."""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __repr__(self) -> str:
        return f"{type(self).__name__}(output_file={self.output_file!r})"
