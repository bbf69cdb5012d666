"""
Tests for configuration loading and transport construction
"""
import logging
from pathlib import Path

import pytest

from termlink.adapters.cli.connection import TransportFactory
from termlink.adapters.config import DEFAULT_SETTINGS, ConfigLoader
from termlink.core.exceptions import ConfigError
from termlink.domain.serial import FlowControl, Parity, SerialTransport
from termlink.domain.ssh import KeyFileAuth, PasswordAuth, SshTransport


# ============================================================
# ConfigLoader
# ============================================================

def test_defaults_when_nothing_configured(isolated_env):
    assert ConfigLoader().load() == DEFAULT_SETTINGS


def test_default_config_file_is_picked_up(isolated_env):
    config_dir = isolated_env / ".config" / "termlink"
    config_dir.mkdir(parents=True)
    (config_dir / "config.toml").write_text('[ssh]\nhost = "router"\n')

    assert ConfigLoader().load()["ssh"]["host"] == "router"


def test_priority_cli_over_env_over_toml(isolated_env, tmp_path, monkeypatch):
    path = tmp_path / "termlink.toml"
    path.write_text(
        '[serial]\n'
        'port = "/dev/ttyUSB1"\n'
        'baudrate = 9600\n'
        'parity = "Odd"\n'
    )
    monkeypatch.setenv("TERMLINK_SERIAL_BAUDRATE", "19200")
    monkeypatch.setenv("TERMLINK_SERIAL_PORT", "/dev/ttyUSB2")

    settings = ConfigLoader().load(
        toml_path=path,
        cli_overrides={"serial": {"port": "/dev/ttyACM0", "baudrate": None}},
    )
    serial_settings = settings["serial"]

    assert serial_settings["port"] == "/dev/ttyACM0"
    assert serial_settings["baudrate"] == 19200
    assert serial_settings["parity"] == "Odd"
    assert serial_settings["stop_bits"] == 1


def test_env_variables_map_to_ssh_settings(isolated_env, monkeypatch):
    monkeypatch.setenv("TERMLINK_SSH_HOST", "10.0.0.1")
    monkeypatch.setenv("TERMLINK_SSH_PORT", "2222")
    monkeypatch.setenv("TERMLINK_SSH_USER", "admin")
    monkeypatch.setenv("TERMLINK_KNOWN_HOSTS", "/tmp/kh")

    ssh = ConfigLoader().load()["ssh"]

    assert ssh["host"] == "10.0.0.1"
    assert ssh["port"] == 2222
    assert ssh["username"] == "admin"
    assert ssh["known_hosts"] == "/tmp/kh"


def test_env_can_be_ignored(isolated_env, monkeypatch):
    monkeypatch.setenv("TERMLINK_SSH_HOST", "10.0.0.1")
    assert ConfigLoader().load(use_env=False)["ssh"]["host"] == ""


def test_missing_explicit_config_file(isolated_env, tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        ConfigLoader().load(toml_path=tmp_path / "missing.toml")


def test_invalid_toml(isolated_env, tmp_path):
    path = tmp_path / "broken.toml"
    path.write_text("[serial\nport = ")
    with pytest.raises(ConfigError, match="Failed to parse"):
        ConfigLoader().load(toml_path=path)


# ============================================================
# TransportFactory
# ============================================================

def serial_params(**overrides):
    params = dict(DEFAULT_SETTINGS["serial"], port="/dev/ttyUSB0")
    params.update(overrides)
    return params


def ssh_params(**overrides):
    params = dict(DEFAULT_SETTINGS["ssh"], host="router", username="admin")
    params.update(overrides)
    return params


def test_create_serial_transport():
    transport = TransportFactory().create_serial(serial_params(parity="Even", flow_control="Software"))

    assert isinstance(transport, SerialTransport)
    assert transport.config.port == "/dev/ttyUSB0"
    assert transport.config.parity is Parity.EVEN
    assert transport.config.flow_control is FlowControl.SOFTWARE
    assert transport.config.timeout == 1.0


@pytest.mark.parametrize("overrides, message", [
    ({"port": ""}, "No serial port selected"),
    ({"baudrate": 0}, "Invalid baudrate"),
    ({"baudrate": "fast"}, "Invalid serial setting"),
    ({"data_bits": 9}, "Invalid data bits"),
    ({"stop_bits": 3}, "Invalid stop bits"),
    ({"timeout_ms": 0}, "Invalid read timeout"),
])
def test_create_serial_validation(overrides, message):
    with pytest.raises(ConfigError, match=message):
        TransportFactory().create_serial(serial_params(**overrides))


def test_create_ssh_with_password(tmp_path):
    known_hosts = tmp_path / "known_hosts"
    transport = TransportFactory().create_ssh(
        ssh_params(port=2222, known_hosts=str(known_hosts), host_key_timeout=30),
        password="secret",
    )

    assert isinstance(transport, SshTransport)
    assert transport.config.auth == PasswordAuth("secret")
    assert transport.config.port == 2222
    assert transport.verifier.store.path == known_hosts
    assert transport.verifier.decision_timeout == 30
    assert "secret" not in repr(transport.config)


def test_create_ssh_with_key(tmp_path):
    key_path = tmp_path / "id_ed25519"
    key_path.write_text("key")
    transport = TransportFactory().create_ssh(ssh_params(key_path=str(key_path)), passphrase="pw")

    assert transport.config.auth == KeyFileAuth(str(key_path), "pw")
    assert transport.config.to_dict()["auth_method"] == "key"


def test_create_ssh_defaults_to_user_known_hosts():
    transport = TransportFactory().create_ssh(ssh_params())
    assert transport.verifier.store.path == Path("~/.ssh/known_hosts").expanduser()


@pytest.mark.parametrize("overrides, message", [
    ({"host": ""}, "Host and username are required"),
    ({"username": " "}, "Host and username are required"),
    ({"port": 0}, "Invalid port"),
    ({"port": 70000}, "Invalid port"),
    ({"timeout": 0}, "Invalid connect timeout"),
    ({"host_key_timeout": -1}, "Invalid host key timeout"),
    ({"key_path": "/nonexistent/id_rsa"}, "Private key not found"),
])
def test_create_ssh_validation(overrides, message):
    with pytest.raises(ConfigError, match=message):
        TransportFactory().create_ssh(ssh_params(**overrides))


def test_factory_logs_settings_without_secrets(caplog, tmp_path):
    caplog.set_level(logging.DEBUG, logger="termlink")
    factory = TransportFactory()
    factory.create_serial(serial_params(parity="Odd"))
    factory.create_ssh(ssh_params(known_hosts=str(tmp_path / "known_hosts")), password="hunter2")

    messages = [r.getMessage() for r in caplog.records]
    assert any("'parity': 'Odd'" in m and "'timeout_ms': 1000" in m for m in messages)
    assert any("'auth_method': 'password'" in m for m in messages)
    assert not any("hunter2" in m for m in messages)
