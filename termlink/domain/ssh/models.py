"""
SSH domain models
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union

from ...core.constants import DEFAULT_CONNECT_TIMEOUT, DEFAULT_SSH_PORT


@dataclass(frozen=True)
class PasswordAuth:
    """Password authentication"""
    password: str = field(repr=False)


@dataclass(frozen=True)
class KeyFileAuth:
    """Private key authentication"""
    private_key_path: str
    passphrase: Optional[str] = field(default=None, repr=False)


SshAuthMethod = Union[PasswordAuth, KeyFileAuth]


@dataclass(frozen=True)
class SshConfig:
    """SSH connection configuration"""
    host: str
    username: str
    auth: SshAuthMethod
    port: int = DEFAULT_SSH_PORT
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (secrets excluded)"""
        data: Dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            "username": self.username,
            "timeout": self.connect_timeout,
        }
        if isinstance(self.auth, KeyFileAuth):
            data["auth_method"] = "key"
            data["key_path"] = self.auth.private_key_path
        else:
            data["auth_method"] = "password"
        return data


class HostKeyStatus(Enum):
    """Result of a known_hosts lookup"""
    KNOWN = "known"
    CHANGED = "changed"
    UNKNOWN = "unknown"
