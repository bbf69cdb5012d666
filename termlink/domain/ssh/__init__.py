"""
SSH domain
"""
from .models import SshConfig, SshAuthMethod, PasswordAuth, KeyFileAuth, HostKeyStatus
from .known_hosts import KnownHostsStore, fingerprint, host_entry_name
from .verifier import HostKeyVerifier
from .transport import SshTransport, load_private_key, open_ssh_session

__all__ = [
    "SshConfig",
    "SshAuthMethod",
    "PasswordAuth",
    "KeyFileAuth",
    "HostKeyStatus",
    "KnownHostsStore",
    "fingerprint",
    "host_entry_name",
    "HostKeyVerifier",
    "SshTransport",
    "load_private_key",
    "open_ssh_session",
]
