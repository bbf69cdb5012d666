"""
Configuration loader with priority: CLI > env > TOML > defaults
"""
import os
import tomllib
from pathlib import Path
from typing import Dict, Any, Optional

from ...core.constants import (
    CONFIG_PATH,
    DEFAULT_BAUDRATE,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_LINE_ENDING,
    DEFAULT_SSH_PORT,
    ENV_PREFIX,
    HOST_KEY_DECISION_TIMEOUT,
    SETTINGS_SERIAL_TIMEOUT_MS,
)
from ...core.exceptions import ConfigError


DEFAULT_SETTINGS: Dict[str, Any] = {
    "serial": {
        "port": "",
        "baudrate": DEFAULT_BAUDRATE,
        "data_bits": 8,
        "parity": "None",
        "stop_bits": 1,
        "flow_control": "None",
        "timeout_ms": SETTINGS_SERIAL_TIMEOUT_MS,
        "line_ending": DEFAULT_LINE_ENDING,
    },
    "ssh": {
        "host": "",
        "port": DEFAULT_SSH_PORT,
        "username": "",
        "key_path": "",
        "timeout": DEFAULT_CONNECT_TIMEOUT,
        "host_key_timeout": HOST_KEY_DECISION_TIMEOUT,
        "known_hosts": "",
        "line_ending": DEFAULT_LINE_ENDING,
    },
}


class ConfigLoader:
    """Configuration loader with priority support"""

    def __init__(self, env_prefix: str = ENV_PREFIX):
        self._env_prefix = env_prefix

    def load_toml(self, path: Path) -> Dict[str, Any]:
        """Load TOML configuration file"""
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        try:
            return tomllib.loads(path.read_text(encoding='utf-8'))
        except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
            raise ConfigError(f"Failed to parse TOML configuration {path}: {e}") from e

    def load_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables"""
        config: Dict[str, Any] = {}

        # Map environment variables to config keys
        env_mappings = {
            "SERIAL_PORT": "serial.port",
            "SERIAL_BAUDRATE": "serial.baudrate",
            "SSH_HOST": "ssh.host",
            "SSH_PORT": "ssh.port",
            "SSH_USER": "ssh.username",
            "SSH_KEY": "ssh.key_path",
            "SSH_TIMEOUT": "ssh.timeout",
            "KNOWN_HOSTS": "ssh.known_hosts",
        }

        for env_suffix, config_key in env_mappings.items():
            value = os.getenv(self._env_prefix + env_suffix)
            if value:
                section, key = config_key.split(".")
                config.setdefault(section, {})[key] = self._convert_value(value)

        return config

    def _convert_value(self, value: str) -> Any:
        """Convert string value to an int when it looks like one"""
        try:
            return int(value)
        except ValueError:
            return value

    def merge_configs(self, *configs: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge multiple configurations with priority.
        Later configs override earlier ones.
        """
        result: Dict[str, Any] = {}

        for config in configs:
            result = self._deep_merge(result, config)

        return result

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries, ignoring None overrides"""
        result = base.copy()

        for key, value in override.items():
            if value is None:
                continue
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def load(
        self,
        toml_path: Optional[Path] = None,
        cli_overrides: Optional[Dict[str, Any]] = None,
        use_env: bool = True,
    ) -> Dict[str, Any]:
        """
        Load configuration with priority: CLI > env > TOML > defaults

        Args:
            toml_path: TOML configuration file; the default location is
                used (if it exists) when omitted
            cli_overrides: CLI parameter overrides (None values are skipped)
            use_env: Whether to load from environment variables

        Returns:
            Merged configuration dictionary with "serial" and "ssh" tables

        Raises:
            ConfigError: If an explicit file is missing or any file is invalid
        """
        configs = [DEFAULT_SETTINGS]

        # 1. TOML
        if toml_path is not None:
            configs.append(self.load_toml(toml_path))
        else:
            default_path = Path(CONFIG_PATH).expanduser()
            if default_path.exists():
                configs.append(self.load_toml(default_path))

        # 2. Environment variables
        if use_env:
            env_config = self.load_env()
            if env_config:
                configs.append(env_config)

        # 3. CLI overrides (highest priority)
        if cli_overrides:
            configs.append(cli_overrides)

        return self.merge_configs(*configs)
