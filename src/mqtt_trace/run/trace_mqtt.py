#!/usr/bin/env python3
"""
MQTT Trace

Entry point for the MQTT message recorder: subscribes to the configured
topics and writes the `name` and `rssi` fields of every JSON message to
the output file.
"""

import argparse
import logging
import sys

from mqtt_trace.exceptions import ConfigurationError, MqttConnectionError, SinkError
from mqtt_trace.recorder import MqttTraceRecorder
from mqtt_trace.utils import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='MQTT Trace - record MQTT messages to a file')
    parser.add_argument(
        'config',
        nargs='?',
        default='config.yaml',
        help='Path to YAML configuration file (default: config.yaml)'
    )
    parser.add_argument(
        '--log-level',
        type=str,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        default='INFO',
        help='Set the logging level (default: INFO)'
    )
    return parser


def main(argv=None):
    """
    Main entry point for the recorder.

    Example usage:
        mqtt-trace
        mqtt-trace config.yaml --log-level=DEBUG
    """
    args = build_parser().parse_args(argv)

    setup_logging(getattr(logging, args.log_level))

    try:
        recorder = MqttTraceRecorder(config_path=args.config)
    except ConfigurationError as e:
        logging.critical("Failed to load configuration: %s", e)
        return 1
    except SinkError as e:
        logging.critical("Failed to open output: %s", e)
        return 1

    try:
        recorder.run()
    except MqttConnectionError as e:
        logging.critical("Failed to connect to MQTT broker: %s", e)
        return 1

    logging.info("MQTT trace stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
