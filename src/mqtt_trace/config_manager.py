"""
Configuration Manager Module

Handles loading, validation, and access to configuration settings.
"""

import logging
import os
from typing import Any, Dict, List, Optional

import yaml

from .exceptions import ConfigurationError
from .sinks import SINK_TYPES

DEFAULT_PORT = 1883
DEFAULT_KEEPALIVE = 60
DEFAULT_QOS = 0
DEFAULT_RECONNECT_DELAY = 5
DEFAULT_OUTPUT_FILE = 'mqtt-trace.log'
DEFAULT_OUTPUT_FORMAT = 'line'


class ConfigurationManager:
    """
    Manages configuration loading, validation, and access.

    Responsibilities:
    - Load configuration from YAML files
    - Validate configuration structure and values
    - Provide typed access to configuration values, with defaults
    """

    def __init__(self, config_path: str):
        """
        Initialize ConfigurationManager.

        Args:
            config_path: Path to the configuration file

        Raises:
            ConfigurationError: If configuration cannot be loaded or is invalid
        """
        self.config_path = config_path
        self.config = None
        self._load_configuration()
        self._validate_configuration()

    def _load_configuration(self):
        """Load configuration from YAML file."""
        if not os.path.exists(self.config_path):
            raise ConfigurationError(f"Configuration file not found: {self.config_path}")

        try:
            with open(self.config_path, 'r', encoding='utf-8') as file:
                self.config = yaml.safe_load(file)
        except yaml.YAMLError as e:
            logging.error("YAML parsing error", extra={
                'config_path': self.config_path,
                'error_message': str(e)
            })
            raise ConfigurationError(f"Invalid YAML in configuration file: {e}") from e
        except OSError as e:
            logging.error("Error loading configuration", extra={
                'config_path': self.config_path,
                'error_type': type(e).__name__,
                'error_message': str(e)
            })
            raise ConfigurationError(f"Failed to load configuration: {e}") from e

        if self.config is None:
            raise ConfigurationError("Configuration file is empty or invalid")
        if not isinstance(self.config, dict):
            raise ConfigurationError("Configuration file must contain a mapping at the top level")

        logging.info("Configuration loaded successfully", extra={
            'config_path': self.config_path,
            'file_size': os.path.getsize(self.config_path)
        })

    def _validate_configuration(self):
        """Validate configuration structure and required fields."""
        if not isinstance(self.config.get('mqtt'), dict):
            raise ConfigurationError("Missing required configuration sections: ['mqtt']")

        self._validate_mqtt_config()

        output_format = self.get_output_format()
        if output_format not in SINK_TYPES:
            raise ConfigurationError(
                f"Invalid output_format: {output_format}. Must be one of {sorted(SINK_TYPES)}"
            )

        if not self.get_output_file():
            raise ConfigurationError("output_file must not be empty")

        logging.info("Configuration validation completed successfully")

    def _validate_mqtt_config(self):
        """Validate MQTT-specific configuration."""
        mqtt_config = self.config['mqtt']

        broker = mqtt_config.get('broker')
        if not broker or not isinstance(broker, str):
            raise ConfigurationError("mqtt.broker is required")

        for field, default in (('port', DEFAULT_PORT), ('keepalive', DEFAULT_KEEPALIVE),
                               ('qos', DEFAULT_QOS), ('reconnect_delay', DEFAULT_RECONNECT_DELAY)):
            value = mqtt_config.get(field, default)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(f"mqtt.{field} must be an integer, got {value!r}")

        if self.get_qos() not in (0, 1, 2):
            raise ConfigurationError(f"mqtt.qos must be 0, 1 or 2, got {self.get_qos()}")

        topics = mqtt_config.get('topics')
        if not isinstance(topics, list) or not topics:
            raise ConfigurationError("at least one mqtt.topic is required")

        for topic in topics:
            if not isinstance(topic, str) or not topic:
                raise ConfigurationError(f"Invalid topic in mqtt.topics: {topic!r}")

        if bool(mqtt_config.get('username')) != bool(mqtt_config.get('password')):
            logging.warning("Only one of mqtt.username and mqtt.password is set, "
                            "connecting without authentication")

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key_path: Dot-separated path to configuration value (e.g., 'mqtt.port')
            default: Default value if key is not found

        Returns:
            Configuration value or default
        """
        value = self.config

        for key in key_path.split('.'):
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def get_mqtt_config(self) -> Dict[str, Any]:
        """Get the MQTT section with defaults applied."""
        return {
            'broker': self.get('mqtt.broker'),
            'port': self.get('mqtt.port', DEFAULT_PORT),
            'username': self.get('mqtt.username') or None,
            'password': self.get('mqtt.password') or None,
            'keepalive': self.get('mqtt.keepalive', DEFAULT_KEEPALIVE),
            'qos': self.get_qos(),
            'client_id': self.get('mqtt.client_id') or None,
            'reconnect_delay': self.get('mqtt.reconnect_delay', DEFAULT_RECONNECT_DELAY),
        }

    def get_topics(self) -> List[str]:
        """Get the list of topics to subscribe to."""
        return list(self.get('mqtt.topics', []))

    def get_qos(self) -> int:
        return self.get('mqtt.qos', DEFAULT_QOS)

    def get_output_file(self) -> str:
        return self.get('output_file', DEFAULT_OUTPUT_FILE)

    def get_output_format(self) -> str:
        return self.get('output_format', DEFAULT_OUTPUT_FORMAT)

    def get_resume(self) -> bool:
        """Whether the JSON store should load an existing output file."""
        return bool(self.get('resume', False))

    def has_authentication(self) -> bool:
        """Check if MQTT authentication is configured."""
        return bool(self.get('mqtt.username') and self.get('mqtt.password'))

    def get_raw_config(self) -> Dict[str, Any]:
        """Get the raw configuration dictionary."""
        return self.config.copy() if self.config else {}

    def reload_configuration(self):
        """Reload configuration from file."""
        logging.info("Reloading configuration", extra={
            'config_path': self.config_path
        })
        self._load_configuration()
        self._validate_configuration()

    def get_config_summary(self) -> Dict[str, Optional[Any]]:
        """
        Get configuration summary for logging and debugging.

        The password is never included.
        """
        return {
            'config_file': self.config_path,
            'broker_host': self.get('mqtt.broker'),
            'broker_port': self.get('mqtt.port', DEFAULT_PORT),
            'has_authentication': self.has_authentication(),
            'topics': self.get_topics(),
            'qos': self.get_qos(),
            'output_file': self.get_output_file(),
            'output_format': self.get_output_format(),
        }
