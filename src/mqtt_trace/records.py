"""
Message Record Module

Builds the persisted unit from a decoded MQTT payload: the receipt
timestamp plus the `name` and `rssi` fields when present. Every other
payload key is discarded.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

# Payload keys that survive into a record, in output order
RECORDED_FIELDS = ('name', 'rssi')


def capture_time() -> datetime:
    """Current local time with its UTC offset, truncated to whole seconds."""
    return datetime.now().astimezone().replace(microsecond=0)


def format_timestamp(timestamp: datetime) -> str:
    """
    Format a timestamp as RFC 3339 with second precision.

    Naive datetimes are interpreted as local time. A zero UTC offset is
    written as 'Z'.
    """
    if timestamp.tzinfo is None:
        timestamp = timestamp.astimezone()
    text = timestamp.replace(microsecond=0).isoformat()
    if text.endswith('+00:00'):
        text = text[:-6] + 'Z'
    return text


def parse_timestamp(text: str) -> datetime:
    """Parse an RFC 3339 timestamp written by format_timestamp."""
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    return datetime.fromisoformat(text)


def filter_payload(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Reduce a payload to the recorded fields.

    A key present with a null value is kept; an absent key stays absent.
    """
    return {key: payload[key] for key in RECORDED_FIELDS if key in payload}


def format_value(value: Any) -> str:
    """Render a decoded JSON value as it appears in a line record."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if value is None:
        return 'null'
    # Integral floats print without a fraction below the JSON exponent cutoff
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(',', ':'), ensure_ascii=False)
    return str(value)


@dataclass
class MessageRecord:
    """A timestamped, filtered message as it is written to the output store."""
    timestamp: datetime
    payload: Dict[str, Any] = field(default_factory=dict)  # only recorded fields

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any],
                     timestamp: Optional[datetime] = None) -> 'MessageRecord':
        if timestamp is None:
            timestamp = capture_time()
        return cls(timestamp=timestamp, payload=filter_payload(payload))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'MessageRecord':
        """
        Rebuild a record from its JSON store representation.

        Raises:
            ValueError: If the entry is not a well-formed record object
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"record entry must be an object, got {type(data).__name__}")

        date = data.get('date')
        if not isinstance(date, str):
            raise ValueError(f"record date must be a string, got {date!r}")

        payload = data.get('payload') or {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"record payload must be an object, got {type(payload).__name__}")

        return cls(timestamp=parse_timestamp(date), payload=filter_payload(payload))

    @property
    def date(self) -> str:
        return format_timestamp(self.timestamp)

    @property
    def name(self) -> Any:
        return self.payload.get('name')

    @property
    def rssi(self) -> Any:
        return self.payload.get('rssi')

    def to_line(self) -> str:
        """
        Encode the record as one pipe-delimited line.

        Format: <date>|name=<name>|rssi=<rssi>, where each field segment
        is left out, separator included, when the field is absent.
        """
        segments = [self.date]
        for key in RECORDED_FIELDS:
            if key in self.payload:
                segments.append(f"{key}={format_value(self.payload[key])}")
        return '|'.join(segments) + '\n'

    def to_dict(self) -> Dict[str, Any]:
        """Encode the record as a JSON store object."""
        return {'date': self.date, 'payload': dict(self.payload)}
