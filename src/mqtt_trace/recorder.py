"""
MQTT Trace Recorder

Orchestrator that wires configuration, the record sink, the message
dispatcher and the MQTT client together and runs until interrupted.
"""

import logging
import signal
import threading
from typing import Any, Dict

from .client_manager import MQTTClientManager
from .config_manager import ConfigurationManager
from .dispatcher import MessageDispatcher
from .sinks import create_sink


class MqttTraceRecorder:
    """
    Records messages from the configured MQTT topics to the output file.

    The sink is built once here and handed to the dispatcher; the
    client manager routes every message to the dispatcher.
    """

    def __init__(self, config_path: str = 'config.yaml'):
        """
        Initialize the recorder.

        Args:
            config_path: Path to the configuration file

        Raises:
            ConfigurationError: If the configuration is missing or invalid
            SinkOpenError: If a resumed JSON store cannot be loaded
        """
        self.config_path = config_path
        self._stop_event = threading.Event()
        self._connected = False
        self._initialize_components()

        logging.info("Loaded configuration from %s", config_path)

    def _initialize_components(self):
        """Initialize all components."""
        self.config_manager = ConfigurationManager(self.config_path)

        self.sink = create_sink(
            self.config_manager.get_output_format(),
            self.config_manager.get_output_file(),
            resume=self.config_manager.get_resume()
        )

        self.dispatcher = MessageDispatcher(self.sink)

        self.client_manager = MQTTClientManager(
            self.config_manager,
            message_handler=self.dispatcher.on_message
        )

    def start(self):
        """Connect to the broker and begin recording in the background."""
        summary = self.config_manager.get_config_summary()
        logging.info("MQTT Broker: %s:%s", summary['broker_host'], summary['broker_port'])
        logging.info("Output file: %s (%s)", summary['output_file'], summary['output_format'])
        logging.info("Subscribing to %d topics", len(summary['topics']))

        self.client_manager.create_client()
        self.client_manager.connect()
        self._connected = True

    def run(self):
        """
        Start recording and block until SIGINT or SIGTERM.

        Raises:
            MqttConnectionError: If the broker address or port is rejected
        """
        self._install_signal_handlers()
        self.start()

        logging.info("MQTT trace started. Press Ctrl+C to stop...")
        try:
            self._stop_event.wait()
        finally:
            self.shutdown()

    def stop(self):
        """Ask a running recorder to shut down."""
        self._stop_event.set()

    def _install_signal_handlers(self):
        if threading.current_thread() is not threading.main_thread():
            return

        def handle_signal(signum, frame):
            logging.info("Received %s, shutting down...", signal.Signals(signum).name)
            self.stop()

        signal.signal(signal.SIGINT, handle_signal)
        signal.signal(signal.SIGTERM, handle_signal)

    def shutdown(self):
        """Disconnect from the broker and log final statistics."""
        if not self._connected:
            return
        logging.info("Shutting down...")
        self._connected = False
        self.client_manager.disconnect()
        self.sink.close()
        logging.info("Final message statistics", extra=self.dispatcher.get_stats())

    def get_status(self) -> Dict[str, Any]:
        """Get current status of the recorder."""
        return {
            'running': not self._stop_event.is_set(),
            'config_summary': self.config_manager.get_config_summary(),
            'subscribed_topics': self.client_manager.get_subscribed_topics(),
            'message_stats': self.dispatcher.get_stats(),
        }

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        self.shutdown()
        return False
