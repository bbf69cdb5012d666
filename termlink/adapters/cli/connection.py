"""
Transport factory: validates user input and builds unconnected transports
"""
from pathlib import Path
from typing import Dict, Any, Optional

from ...core.constants import HOST_KEY_DECISION_TIMEOUT
from ...core.exceptions import ConfigError
from ...core.logging import get_logger
from ...domain.serial import SerialConfig, SerialTransport
from ...domain.ssh import (
    HostKeyVerifier,
    KeyFileAuth,
    KnownHostsStore,
    PasswordAuth,
    SshConfig,
    SshTransport,
)

logger = get_logger(__name__)


class TransportFactory:
    """Builds transports from merged configuration tables"""

    def create_serial(self, params: Dict[str, Any]) -> SerialTransport:
        """
        Create a serial transport.

        Args:
            params: The "serial" configuration table

        Returns:
            SerialTransport, not yet connected

        Raises:
            ConfigError: If no port is selected or a value is invalid
        """
        port = str(params.get("port") or "").strip()
        if not port:
            raise ConfigError("No serial port selected")

        try:
            baudrate = int(params.get("baudrate", 0))
            data_bits = int(params.get("data_bits", 8))
            stop_bits = int(params.get("stop_bits", 1))
            timeout_ms = int(params.get("timeout_ms", 0))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid serial setting: {e}") from e

        if baudrate <= 0:
            raise ConfigError(f"Invalid baudrate: {baudrate}")
        if data_bits not in (5, 6, 7, 8):
            raise ConfigError(f"Invalid data bits: {data_bits}, must be 5, 6, 7 or 8")
        if stop_bits not in (1, 2):
            raise ConfigError(f"Invalid stop bits: {stop_bits}, must be 1 or 2")
        if timeout_ms <= 0:
            raise ConfigError(f"Invalid read timeout: {timeout_ms} ms")

        config = SerialConfig.from_params(
            port=port,
            baudrate=baudrate,
            data_bits=data_bits,
            parity=params.get("parity", "None"),
            stop_bits=stop_bits,
            flow_control=params.get("flow_control", "None"),
            timeout_ms=timeout_ms,
        )
        logger.debug(f"Serial settings: {config.to_dict()}")
        return SerialTransport(config)

    def create_ssh(
        self,
        params: Dict[str, Any],
        password: Optional[str] = None,
        passphrase: Optional[str] = None,
    ) -> SshTransport:
        """
        Create an SSH transport.

        Key authentication is used when params has a key_path, password
        authentication otherwise.

        Args:
            params: The "ssh" configuration table
            password: Password for password authentication
            passphrase: Passphrase of the private key, if encrypted

        Returns:
            SshTransport, not yet connected

        Raises:
            ConfigError: If host or username is missing or a value is invalid
        """
        host = str(params.get("host") or "").strip()
        username = str(params.get("username") or "").strip()
        if not host or not username:
            raise ConfigError("Host and username are required")

        try:
            port = int(params.get("port", 22))
            timeout = float(params.get("timeout", 10))
            decision_timeout = float(params.get("host_key_timeout", HOST_KEY_DECISION_TIMEOUT))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid SSH setting: {e}") from e

        if not (1 <= port <= 65535):
            raise ConfigError(f"Invalid port: {port}")
        if timeout <= 0:
            raise ConfigError(f"Invalid connect timeout: {timeout}")
        if decision_timeout <= 0:
            raise ConfigError(f"Invalid host key timeout: {decision_timeout}")

        key_path = str(params.get("key_path") or "").strip()
        if key_path:
            if not Path(key_path).expanduser().is_file():
                raise ConfigError(f"Private key not found: {key_path}")
            auth = KeyFileAuth(private_key_path=key_path, passphrase=passphrase)
        else:
            auth = PasswordAuth(password=password or "")

        config = SshConfig(
            host=host,
            port=port,
            username=username,
            auth=auth,
            connect_timeout=timeout,
        )
        logger.debug(f"SSH settings: {config.to_dict()}")
        known_hosts = str(params.get("known_hosts") or "").strip() or None
        verifier = HostKeyVerifier(
            store=KnownHostsStore(known_hosts),
            decision_timeout=decision_timeout,
        )
        return SshTransport(config, verifier=verifier)
