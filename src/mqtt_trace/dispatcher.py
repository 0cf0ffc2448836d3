"""
Message Dispatcher Module

Decodes inbound MQTT message bodies and forwards them to the configured
sink. Failures are per message: they are logged, counted and the
message is dropped, without affecting later messages.
"""

import json
import logging
import threading
from collections import defaultdict
from typing import Any, Dict

from .exceptions import SinkError
from .records import capture_time
from .sinks import RecordSink


class MessageDispatcher:
    """
    Routes decoded payloads to a RecordSink.

    May be invoked concurrently from several client threads; the sink
    serializes its own writes and the counters are guarded here.
    """

    def __init__(self, sink: RecordSink):
        self.sink = sink
        self._stats = defaultdict(int)
        self._stats_lock = threading.Lock()

    def handle_message(self, topic: str, payload: bytes) -> bool:
        """
        Decode one message body and record it.

        Args:
            topic: Topic the message arrived on
            payload: Raw message body

        Returns:
            True if the message was recorded, False if it was dropped
        """
        timestamp = capture_time()
        self._count('messages_received')

        try:
            data = json.loads(payload)
        except (ValueError, RecursionError) as e:
            # ValueError covers JSONDecodeError and UnicodeDecodeError;
            # RecursionError comes from pathologically nested bodies
            logging.error("Error unmarshaling message from topic %s: %s", topic, e, extra={
                'topic': topic,
                'payload_size': len(payload),
                'error_type': type(e).__name__,
                'error_position': getattr(e, 'pos', None)
            })
            self._count('decode_errors')
            return False

        if not isinstance(data, dict):
            logging.error("Error unmarshaling message from topic %s: expected a JSON object, got %s",
                          topic, type(data).__name__, extra={
                              'topic': topic,
                              'payload_size': len(payload)
                          })
            self._count('decode_errors')
            return False

        try:
            self.sink.record(data, timestamp)
        except SinkError as e:
            logging.error("Error saving message: %s", e, extra={
                'topic': topic,
                'error_type': type(e).__name__,
                'output_file': self.sink.output_file
            })
            self._count('sink_errors')
            return False

        self._count('messages_recorded')
        logging.info("Received message on topic %s", topic)
        return True

    def on_message(self, client, userdata, msg):
        """paho-mqtt on_message callback."""
        self.handle_message(msg.topic, msg.payload)

    def _count(self, key: str):
        with self._stats_lock:
            self._stats[key] += 1

    def get_stats(self) -> Dict[str, Any]:
        """Get message counters."""
        with self._stats_lock:
            return {
                'messages_received': self._stats['messages_received'],
                'messages_recorded': self._stats['messages_recorded'],
                'decode_errors': self._stats['decode_errors'],
                'sink_errors': self._stats['sink_errors'],
            }
