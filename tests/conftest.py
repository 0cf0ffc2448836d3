"""
Central pytest configuration for the mqtt-trace test suite.

This file provides shared fixtures for all tests.
"""

import logging
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict

import pytest
import yaml

# Configure logging for tests
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

# Suppress noisy loggers during tests
logging.getLogger('paho.mqtt').setLevel(logging.WARNING)


@pytest.fixture
def sample_config() -> Dict[str, Any]:
    """Provide a standard configuration for testing."""
    return {
        'mqtt': {
            'broker': 'localhost',
            'port': 1883,
            'username': 'test_user',
            'password': 'test_pass',
            'topics': ['sensors/+/ble', 'gateway/status'],
            'qos': 1,
            'keepalive': 30,
            'reconnect_delay': 5
        },
        'output_file': 'trace.log',
        'output_format': 'line'
    }


@pytest.fixture
def minimal_config() -> Dict[str, Any]:
    """Provide minimal valid configuration, everything else defaulted."""
    return {
        'mqtt': {
            'broker': 'broker.local',
            'topics': ['sensors/#']
        }
    }


@pytest.fixture
def write_config(tmp_path):
    """Write a configuration dictionary to a YAML file and return its path."""
    def _write(config: Dict[str, Any], name: str = 'config.yaml') -> str:
        path = tmp_path / name
        with open(path, 'w') as f:
            yaml.dump(config, f)
        return str(path)
    return _write


@pytest.fixture
def temp_config_file(sample_config, tmp_path):
    """Create a temporary config file whose output file lives in tmp_path."""
    sample_config['output_file'] = str(tmp_path / 'trace.log')
    with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False, dir=tmp_path) as f:
        yaml.dump(sample_config, f)
        config_path = f.name

    yield config_path

    Path(config_path).unlink(missing_ok=True)


@pytest.fixture
def fixed_time() -> datetime:
    """A receipt time with a non-zero UTC offset."""
    return datetime(2024, 5, 1, 10, 15, 30, tzinfo=timezone(timedelta(hours=2)))


@pytest.fixture
def sensor_payload() -> Dict[str, Any]:
    """Payload as published by a BLE thermometer gateway."""
    return {
        'name': 'LYSD03MMC',
        'rssi': -65,
        'mac': 'A4:C1:38:00:11:22',
        'temperature': 21.4,
        'humidity': 48
    }
