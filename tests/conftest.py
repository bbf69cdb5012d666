"""
Shared fixtures
"""
import os

import paramiko
import pytest

from termlink.core.telemetry import get_telemetry


@pytest.fixture(autouse=True)
def clean_telemetry():
    get_telemetry().clear()
    yield
    get_telemetry().clear()


@pytest.fixture(scope="session")
def host_key():
    return paramiko.ECDSAKey.generate()


@pytest.fixture(scope="session")
def other_host_key():
    return paramiko.ECDSAKey.generate()


@pytest.fixture
def known_hosts_path(tmp_path):
    return tmp_path / "ssh" / "known_hosts"


@pytest.fixture
def isolated_env(tmp_path, monkeypatch):
    """Empty HOME and no TERMLINK_* variables"""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for name in list(os.environ):
        if name.startswith("TERMLINK_"):
            monkeypatch.delenv(name)
    return home
