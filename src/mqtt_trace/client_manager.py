"""
MQTT Client Manager Module

Handles MQTT client creation, connection management, subscriptions and
message routing to the dispatcher.
"""

import logging
import time
from typing import Callable, List, Optional

import paho.mqtt.client as mqtt
from paho.mqtt.enums import CallbackAPIVersion

from .config_manager import ConfigurationManager
from .exceptions import MqttConnectionError, wrap_exception


class MQTTClientManager:
    """
    Manages the MQTT client connection and subscriptions.

    Responsibilities:
    - Create and configure the paho client
    - Subscribe to every configured topic on each (re)connect
    - Route received messages to the message handler
    - Track and warn about repeated connection failures
    """

    def __init__(self, config_manager: ConfigurationManager, message_handler: Optional[Callable] = None):
        """
        Initialize MQTT Client Manager.

        Args:
            config_manager: Loaded configuration
            message_handler: paho on_message style callback (client, userdata, msg)
        """
        self.config_manager = config_manager
        self.broker = config_manager.get_mqtt_config()
        self.topics = config_manager.get_topics()
        self.message_handler = message_handler
        self.client = None
        self.subscribed_topics = []

        self._connection_failures = 0
        self._last_warning_time = {}

    def create_client(self, client_id: Optional[str] = None) -> mqtt.Client:
        """
        Create the MQTT client with callbacks and authentication.

        Args:
            client_id: Client identifier, defaults to the configured one or mqtt-trace-<unix time>

        Returns:
            Configured MQTT client
        """
        if client_id is None:
            client_id = self.broker['client_id'] or f"mqtt-trace-{int(time.time())}"

        client = mqtt.Client(client_id=client_id, callback_api_version=CallbackAPIVersion.VERSION2)

        if self.broker.get('username') and self.broker.get('password'):
            client.username_pw_set(
                self.broker['username'],
                self.broker['password']
            )
            logging.debug("Configured MQTT client with username authentication", extra={
                'client_id': client_id,
                'username': self.broker['username']
            })

        delay = self.broker['reconnect_delay']
        client.reconnect_delay_set(min_delay=delay, max_delay=delay)

        client.on_connect = self._on_connect
        client.on_disconnect = self._on_disconnect
        client.on_subscribe = self._on_subscribe
        client.on_message = self._on_message

        self.client = client
        return client

    def _on_connect(self, client, userdata, connect_flags, reason_code, properties):
        if reason_code == 0:
            logging.info("Connected to MQTT broker", extra={
                'broker_host': self.broker['broker'],
                'broker_port': self.broker['port'],
                'session_present': getattr(connect_flags, 'session_present', None)
            })
            self._connection_failures = 0
            self._subscribe_all(client)
        else:
            logging.error("Failed to connect", extra={
                'reason_code': str(reason_code),
                'broker_host': self.broker['broker']
            })
            self._connection_failures += 1
            self._check_connection_failures()

    def _subscribe_all(self, client):
        self.subscribed_topics = []
        for topic in self.topics:
            result, mid = client.subscribe(topic, self.broker['qos'])
            if result != mqtt.MQTT_ERR_SUCCESS:
                logging.error("Failed to subscribe to topic %s", topic, extra={
                    'topic': topic,
                    'result_code': result
                })
                continue
            self.subscribed_topics.append(topic)
            logging.info("Subscribed to topic: %s", topic)

    def _on_subscribe(self, client, userdata, mid, reason_code_list, properties):
        for reason_code in reason_code_list:
            if getattr(reason_code, 'is_failure', False):
                logging.error("Broker rejected subscription", extra={
                    'mid': mid,
                    'reason_code': str(reason_code)
                })

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties):
        if reason_code != 0:
            logging.warning("Unexpected disconnection from MQTT broker", extra={
                'reason_code': str(reason_code),
                'broker_host': self.broker['broker']
            })

    def _on_message(self, client, userdata, msg):
        logging.debug("Message received", extra={
            'topic': msg.topic,
            'payload_size': len(msg.payload)
        })
        if not self.message_handler:
            return
        try:
            self.message_handler(client, userdata, msg)
        except Exception as e:
            # Raising here would stop the paho network thread
            logging.error("Message processing error", extra={
                'topic': msg.topic,
                'error_type': type(e).__name__,
                'error_message': str(e)
            }, exc_info=True)

    def connect(self):
        """
        Start connecting to the broker in the background.

        The network thread keeps retrying, every reconnect_delay seconds,
        until the broker accepts the connection, and reconnects after any
        later disconnection.

        Raises:
            MqttConnectionError: If the connection settings are rejected outright
        """
        if self.client is None:
            self.create_client()

        logging.info("Connecting to MQTT broker", extra={
            'broker_host': self.broker['broker'],
            'broker_port': self.broker['port'],
            'retry_interval': self.broker['reconnect_delay']
        })

        try:
            self.client.connect_async(
                self.broker['broker'],
                self.broker['port'],
                self.broker['keepalive']
            )
        except (OSError, ValueError) as e:
            raise wrap_exception(
                e, MqttConnectionError,
                f"Failed to connect to MQTT broker {self.broker['broker']}:{self.broker['port']}"
            ) from e

        self.client.loop_start()

    def disconnect(self):
        """Stop the network loop and disconnect from the broker."""
        if self.client is None:
            return
        try:
            self.client.disconnect()
            self.client.loop_stop()
        except Exception as e:
            logging.warning("Error disconnecting MQTT client", extra={
                'error_type': type(e).__name__,
                'error_message': str(e)
            })
        logging.info("Disconnected from MQTT broker")

    def get_subscribed_topics(self) -> List[str]:
        """Get list of all subscribed topics."""
        return self.subscribed_topics.copy()

    def _check_connection_failures(self):
        """Check and warn about repeated connection failures."""
        if self._connection_failures >= 3:
            self._log_rate_limited_warning('connection_failure', 300,
                "Repeated connection failures for MQTT client", {
                    'consecutive_failures': self._connection_failures,
                    'broker_host': self.broker['broker'],
                    'broker_port': self.broker['port'],
                    'possible_cause': 'Network issues, broker unavailable, or authentication problems'
                })

    def _log_rate_limited_warning(self, warning_type: str, min_interval: int,
                                  message: str, extra: dict):
        """Log warning with rate limiting to avoid spam."""
        current_time = time.time()
        last_warning = self._last_warning_time.get(warning_type, 0)

        if current_time - last_warning >= min_interval:
            logging.warning(message, extra=extra)
            self._last_warning_time[warning_type] = current_time
