"""
known_hosts store (OpenSSH format)
"""
import base64
import hashlib
from pathlib import Path
from typing import Optional, Union

import paramiko
from paramiko.hostkeys import InvalidHostKey

from ...core.constants import DEFAULT_SSH_PORT, KNOWN_HOSTS_PATH
from ...core.logging import get_logger
from .models import HostKeyStatus

logger = get_logger(__name__)

# Raised while reading or writing the file; a malformed line gives InvalidHostKey
STORE_ERRORS = (OSError, paramiko.SSHException, InvalidHostKey)


def host_entry_name(host: str, port: int) -> str:
    """known_hosts name for a host: bare on port 22, "[host]:port" otherwise"""
    if port == DEFAULT_SSH_PORT:
        return host
    return f"[{host}]:{port}"


def fingerprint(key: paramiko.PKey) -> str:
    """OpenSSH-style SHA256 fingerprint of a public key"""
    digest = hashlib.sha256(key.asbytes()).digest()
    return "SHA256:" + base64.b64encode(digest).decode("ascii").rstrip("=")


class KnownHostsStore:
    """
    Host-keyed record of trusted public keys.

    The file is re-read on every call so entries written by other programs
    (ssh, ssh-keyscan) are seen without restarting.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path or KNOWN_HOSTS_PATH).expanduser()

    def _load(self) -> paramiko.HostKeys:
        keys = paramiko.HostKeys()
        if self.path.exists():
            keys.load(str(self.path))
        return keys

    def check(self, host: str, port: int, key: paramiko.PKey) -> HostKeyStatus:
        """
        Compare a server key against the store.

        Args:
            host: Host name as given by the user
            port: SSH port
            key: Key presented by the server

        Returns:
            KNOWN if stored and identical, CHANGED if a key of the same
            type is stored with different bytes, UNKNOWN otherwise
            (including unreadable stores)
        """
        try:
            keys = self._load()
        except STORE_ERRORS as e:
            logger.warning(f"Unable to read {self.path}: {e}")
            return HostKeyStatus.UNKNOWN

        entry = keys.lookup(host_entry_name(host, port))
        if entry is None:
            return HostKeyStatus.UNKNOWN

        stored = entry.get(key.get_name())
        if stored is None:
            return HostKeyStatus.UNKNOWN
        if stored.asbytes() == key.asbytes():
            return HostKeyStatus.KNOWN
        return HostKeyStatus.CHANGED

    def get(self, host: str, port: int, key_type: str) -> Optional[paramiko.PKey]:
        """Return the stored key of a given type, if any (None for unreadable stores)"""
        try:
            keys = self._load()
        except STORE_ERRORS as e:
            logger.warning(f"Unable to read {self.path}: {e}")
            return None

        entry = keys.lookup(host_entry_name(host, port))
        if entry is None:
            return None
        return entry.get(key_type)

    def learn(self, host: str, port: int, key: paramiko.PKey) -> None:
        """
        Record a key as trusted, replacing a stored key of the same type.

        Raises:
            OSError: If the file cannot be written
            InvalidHostKey: If the file holds a malformed line; it is left as is
        """
        keys = self._load()
        name = host_entry_name(host, port)

        entry = keys.lookup(name)
        if entry is None:
            keys.add(name, key.get_name(), key)
        else:
            entry[key.get_name()] = key

        self.path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        keys.save(str(self.path))
