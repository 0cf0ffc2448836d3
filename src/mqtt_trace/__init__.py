"""
MQTT Trace

Records the `name` and `rssi` fields of JSON messages received on a set
of MQTT topics to a line log or a JSON array file.
"""

from .client_manager import MQTTClientManager
from .config_manager import ConfigurationManager
from .dispatcher import MessageDispatcher
from .exceptions import (
    ConfigurationError,
    MqttConnectionError,
    MqttTraceError,
    SinkError,
    SinkOpenError,
    SinkWriteError,
    wrap_exception
)
from .records import MessageRecord, filter_payload, format_timestamp
from .recorder import MqttTraceRecorder
from .sinks import JsonStoreSink, LineSink, RecordSink, create_sink

__all__ = [
    'MQTTClientManager',
    'ConfigurationManager',
    'MessageDispatcher',
    'MqttTraceRecorder',
    'MessageRecord',
    'filter_payload',
    'format_timestamp',
    'RecordSink',
    'LineSink',
    'JsonStoreSink',
    'create_sink',

    'MqttTraceError',
    'ConfigurationError',
    'MqttConnectionError',
    'SinkError',
    'SinkOpenError',
    'SinkWriteError',
    'wrap_exception'
]
