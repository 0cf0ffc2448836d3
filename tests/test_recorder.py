"""
Test suite for MqttTraceRecorder wiring and the command line entry point.
"""

import json
import signal
import threading
import time
from unittest.mock import Mock, patch

import pytest

from mqtt_trace.exceptions import ConfigurationError, MqttConnectionError
from mqtt_trace.recorder import MqttTraceRecorder
from mqtt_trace.run.trace_mqtt import build_parser, main
from mqtt_trace.sinks import JsonStoreSink, LineSink


class TestMqttTraceRecorder:
    """Component wiring and lifecycle."""

    def test_line_sink_selected_by_default(self, temp_config_file):
        recorder = MqttTraceRecorder(temp_config_file)

        assert isinstance(recorder.sink, LineSink)
        assert recorder.dispatcher.sink is recorder.sink
        assert recorder.client_manager.message_handler == recorder.dispatcher.on_message

    def test_json_sink_selected(self, write_config, minimal_config, tmp_path):
        minimal_config.update({'output_format': 'json', 'output_file': str(tmp_path / 'trace.json')})

        recorder = MqttTraceRecorder(write_config(minimal_config))

        assert isinstance(recorder.sink, JsonStoreSink)

    def test_invalid_config_raises(self, write_config):
        with pytest.raises(ConfigurationError):
            MqttTraceRecorder(write_config({'mqtt': {'broker': 'x'}}))

    def test_messages_flow_from_client_to_file(self, temp_config_file, tmp_path):
        recorder = MqttTraceRecorder(temp_config_file)
        msg = Mock()
        msg.topic = 'sensors/a/ble'
        msg.payload = json.dumps({'name': 'LYSD03MMC', 'rssi': -65}).encode()

        recorder.client_manager._on_message(Mock(), None, msg)

        line = (tmp_path / 'trace.log').read_text(encoding='utf-8')
        assert line.endswith('|name=LYSD03MMC|rssi=-65\n')
        assert recorder.get_status()['message_stats']['messages_recorded'] == 1

    def test_run_until_stopped(self, temp_config_file):
        recorder = MqttTraceRecorder(temp_config_file)

        with patch('paho.mqtt.client.Client') as mock_client_class:
            thread = threading.Thread(target=recorder.run)
            thread.start()
            # run() in a worker thread skips signal handler installation
            for _ in range(100):
                if mock_client_class.return_value.loop_start.called:
                    break
                time.sleep(0.01)
            recorder.stop()
            thread.join(timeout=2)

        client = mock_client_class.return_value
        assert not thread.is_alive()
        client.connect_async.assert_called_once_with('localhost', 1883, 30)
        client.loop_start.assert_called_once()
        client.disconnect.assert_called_once()
        client.loop_stop.assert_called_once()

    def test_shutdown_only_once(self, temp_config_file):
        with patch('paho.mqtt.client.Client') as mock_client_class:
            with MqttTraceRecorder(temp_config_file) as recorder:
                recorder.start()
            recorder.shutdown()

        mock_client_class.return_value.disconnect.assert_called_once()

    def test_connection_failure_propagates(self, temp_config_file):
        recorder = MqttTraceRecorder(temp_config_file)

        with patch('paho.mqtt.client.Client') as mock_client_class:
            mock_client_class.return_value.connect_async.side_effect = ValueError('Invalid port number.')
            with pytest.raises(MqttConnectionError):
                recorder.start()

    def test_sigterm_stops_recorder(self, temp_config_file):
        recorder = MqttTraceRecorder(temp_config_file)
        previous = {sig: signal.getsignal(sig) for sig in (signal.SIGINT, signal.SIGTERM)}

        try:
            recorder._install_signal_handlers()
            signal.getsignal(signal.SIGTERM)(signal.SIGTERM, None)
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)

        assert recorder.get_status()['running'] is False

    def test_status(self, temp_config_file):
        status = MqttTraceRecorder(temp_config_file).get_status()

        assert status['running'] is True
        assert status['config_summary']['topics'] == ['sensors/+/ble', 'gateway/status']
        assert status['message_stats']['messages_received'] == 0


class TestCommandLine:
    """mqtt-trace entry point."""

    def test_parser_defaults(self):
        args = build_parser().parse_args([])

        assert args.config == 'config.yaml'
        assert args.log_level == 'INFO'

    def test_parser_positional_config(self):
        args = build_parser().parse_args(['other.yaml', '--log-level', 'DEBUG'])

        assert args.config == 'other.yaml'
        assert args.log_level == 'DEBUG'

    def test_missing_config_exits_with_error(self, tmp_path):
        assert main([str(tmp_path / 'missing.yaml')]) == 1

    def test_connection_failure_exits_with_error(self, temp_config_file):
        with patch('paho.mqtt.client.Client') as mock_client_class, \
                patch('mqtt_trace.recorder.MqttTraceRecorder._install_signal_handlers'):
            mock_client_class.return_value.connect_async.side_effect = ValueError('Invalid host.')

            assert main([temp_config_file]) == 1

    def test_clean_stop_exits_zero(self, temp_config_file):
        with patch('paho.mqtt.client.Client'), \
                patch('mqtt_trace.recorder.MqttTraceRecorder._install_signal_handlers'), \
                patch('mqtt_trace.recorder.threading.Event.wait', return_value=True):
            assert main([temp_config_file]) == 0
