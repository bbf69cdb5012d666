"""
SSH transport: paramiko session with a PTY shell channel
"""
import asyncio
import socket
from pathlib import Path
from typing import Any, Callable, Optional

import paramiko

from ...core.connection import Connection, ConnectionState, ConnectionType
from ...core.constants import (
    CONNECT_TIMEOUT_MARGIN,
    PTY_HEIGHT,
    PTY_TERM,
    PTY_WIDTH,
    READ_BUFFER_SIZE,
    SSH_READ_POLL_INTERVAL,
    SSH_READ_POLL_STEP,
)
from ...core.events import EventSender
from ...core.exceptions import (
    AlreadyConnectedError,
    AuthenticationError,
    HandshakeError,
    HostKeyRejectedError,
    NotConnectedError,
    TransportError,
)
from ...core.logging import get_logger
from .models import KeyFileAuth, PasswordAuth, SshConfig
from .verifier import HostKeyVerifier

logger = get_logger(__name__)

SessionFactory = Callable[[str, int, float], Any]

_KEY_CLASSES = (paramiko.Ed25519Key, paramiko.ECDSAKey, paramiko.RSAKey)


# ============================================================
# Session setup helpers
# ============================================================

def open_ssh_session(host: str, port: int, timeout: float) -> paramiko.Transport:
    """
    Open TCP and run SSH negotiation, without authenticating.

    Blocking; run it in a worker thread.

    Args:
        host: Server host name or address
        port: Server port
        timeout: Seconds allowed for TCP connect and key exchange

    Returns:
        Negotiated paramiko Transport
    """
    sock = socket.create_connection((host, port), timeout=timeout)
    try:
        transport = paramiko.Transport(sock)
    except Exception:
        sock.close()
        raise
    try:
        transport.start_client(timeout=timeout)
    except BaseException:
        transport.close()
        raise
    return transport


def load_private_key(path: str, passphrase: Optional[str] = None) -> paramiko.PKey:
    """
    Load an Ed25519, ECDSA or RSA private key.

    Raises:
        AuthenticationError: If the file is missing, encrypted without a
            passphrase, or not a supported key
    """
    p = Path(path).expanduser()
    if not p.is_file():
        raise AuthenticationError(f"Private key not found: {p}")

    for key_class in _KEY_CLASSES:
        try:
            return key_class.from_private_key_file(str(p), password=passphrase)
        except paramiko.PasswordRequiredException as e:
            raise AuthenticationError(f"Private key {p} is encrypted, a passphrase is required") from e
        except (paramiko.SSHException, ValueError):
            continue
    raise AuthenticationError(f"Unable to load private key at {p}")


def _close_quietly(resource: Any, what: str) -> None:
    try:
        resource.close()
    except Exception as e:
        logger.debug(f"Ignoring error while closing SSH {what}: {e}")


def _close_abandoned_session(future: "asyncio.Future") -> None:
    # Negotiation finished after its deadline: nobody will use this session
    if future.cancelled() or future.exception() is not None:
        return
    _close_quietly(future.result(), "session")


# ============================================================
# Transport
# ============================================================

class SshTransport(Connection):
    """
    Interactive SSH shell as a byte stream.

    Handshake: TCP + key exchange (bounded by connect_timeout + margin),
    TOFU host key verification, authentication, PTY + shell. The state only
    becomes CONNECTED once every step succeeded.
    """

    def __init__(
        self,
        config: SshConfig,
        verifier: Optional[HostKeyVerifier] = None,
        session_factory: Optional[SessionFactory] = None,
        read_poll_interval: float = SSH_READ_POLL_INTERVAL,
    ):
        self.config = config
        self.verifier = verifier or HostKeyVerifier()
        self.read_poll_interval = read_poll_interval
        self._session_factory = session_factory or open_ssh_session
        self._session: Any = None
        self._channel: Any = None
        self._state = ConnectionState.DISCONNECTED
        self._bytes_sent = 0
        self._bytes_received = 0
        self._events: Optional[EventSender] = None

    def init_event_sender(self, sender: EventSender) -> None:
        self._events = sender

    # --------------------
    # Connection management
    # --------------------
    async def connect(self, events: Optional[EventSender] = None) -> None:
        if self._state == ConnectionState.CONNECTED:
            raise AlreadyConnectedError(f"Already connected to {self.config.address}")

        events = events or self._events
        if events is None:
            raise HandshakeError("Event channel not initialised, host keys cannot be confirmed")

        self._state = ConnectionState.CONNECTING
        logger.info(f"Connecting SSH to {self.config.address}...")

        session = await self._open_session()
        try:
            await self._verify_host_key(session, events)
            await asyncio.to_thread(self._authenticate, session)
            channel = await asyncio.to_thread(self._open_shell, session)
        except BaseException:
            self._state = ConnectionState.DISCONNECTED
            await asyncio.to_thread(_close_quietly, session, "session")
            raise

        self._session = session
        self._channel = channel
        self._state = ConnectionState.CONNECTED
        self._bytes_sent = 0
        self._bytes_received = 0
        logger.info(f"SSH connected to {self.description()} (PTY {PTY_TERM} + shell)")

    async def _open_session(self) -> Any:
        cfg = self.config
        pending = asyncio.ensure_future(
            asyncio.to_thread(self._session_factory, cfg.host, cfg.port, cfg.connect_timeout)
        )
        try:
            return await asyncio.wait_for(
                asyncio.shield(pending),
                cfg.connect_timeout + CONNECT_TIMEOUT_MARGIN,
            )
        except asyncio.TimeoutError:
            self._state = ConnectionState.DISCONNECTED
            pending.add_done_callback(_close_abandoned_session)
            raise HandshakeError(f"SSH connection to {cfg.address} timed out") from None
        except asyncio.CancelledError:
            self._state = ConnectionState.DISCONNECTED
            pending.add_done_callback(_close_abandoned_session)
            raise
        except (OSError, EOFError, paramiko.SSHException) as e:
            self._state = ConnectionState.DISCONNECTED
            raise HandshakeError(f"Unable to establish SSH connection to {cfg.address}: {e}") from e

    async def _verify_host_key(self, session: Any, events: EventSender) -> None:
        key = session.get_remote_server_key()
        accepted = await self.verifier.verify(self.config.host, self.config.port, key, events)
        if not accepted:
            raise HostKeyRejectedError(f"Host key for {self.config.address} was not accepted")

    def _authenticate(self, session: Any) -> None:
        auth = self.config.auth
        try:
            if isinstance(auth, PasswordAuth):
                session.auth_password(self.config.username, auth.password)
            elif isinstance(auth, KeyFileAuth):
                key = load_private_key(auth.private_key_path, auth.passphrase)
                session.auth_publickey(self.config.username, key)
            else:
                raise AuthenticationError(f"Unsupported auth method: {auth!r}")
        except (OSError, EOFError, paramiko.SSHException) as e:
            raise AuthenticationError(f"SSH authentication failed for {self.description()}: {e}") from e

        if not session.is_authenticated():
            raise AuthenticationError(f"SSH authentication failed for {self.description()}")

    def _open_shell(self, session: Any) -> Any:
        channel = None
        try:
            channel = session.open_session(timeout=self.config.connect_timeout)
            channel.get_pty(term=PTY_TERM, width=PTY_WIDTH, height=PTY_HEIGHT)
            channel.invoke_shell()
        except (OSError, EOFError, paramiko.SSHException) as e:
            if channel is not None:
                _close_quietly(channel, "channel")
            raise HandshakeError(f"Unable to start a shell on {self.config.address}: {e}") from e
        return channel

    async def disconnect(self) -> None:
        if self._state == ConnectionState.DISCONNECTED and self._session is None:
            return

        logger.info(f"Closing SSH connection to {self.config.address}...")
        channel, self._channel = self._channel, None
        session, self._session = self._session, None
        if channel is not None:
            _close_quietly(channel, "channel")
        if session is not None:
            await asyncio.to_thread(_close_quietly, session, "session")

        self._state = ConnectionState.DISCONNECTED
        logger.info(
            f"SSH disconnected (sent: {self._bytes_sent} bytes, "
            f"received: {self._bytes_received} bytes)"
        )

    # --------------------
    # I/O
    # --------------------
    async def send(self, data: bytes) -> int:
        channel = self._require_channel()
        try:
            await asyncio.to_thread(channel.sendall, data)
        except (OSError, EOFError, paramiko.SSHException) as e:
            self._state = ConnectionState.ERROR
            raise TransportError(f"SSH write error: {e}") from e

        self._bytes_sent += len(data)
        return len(data)

    async def read(self) -> bytes:
        channel = self._require_channel()
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.read_poll_interval

        while True:
            # stderr of the remote side is shown like stdout
            if channel.recv_stderr_ready():
                data = channel.recv_stderr(READ_BUFFER_SIZE)
                if data:
                    self._bytes_received += len(data)
                    return data

            if channel.recv_ready():
                data = channel.recv(READ_BUFFER_SIZE)
                if data:
                    self._bytes_received += len(data)
                    return data
                return self._remote_closed()

            if channel.eof_received or channel.closed or not self._session.is_active():
                return self._remote_closed()

            if loop.time() >= deadline:
                return b""
            await asyncio.sleep(SSH_READ_POLL_STEP)

    def _remote_closed(self) -> bytes:
        if self._state == ConnectionState.CONNECTED:
            logger.info(f"SSH channel closed by {self.config.address}")
        self._state = ConnectionState.DISCONNECTED
        return b""

    def _require_channel(self) -> Any:
        if self._channel is None:
            raise NotConnectedError("SSH channel is not open")
        return self._channel

    # --------------------
    # Accessors
    # --------------------
    def state(self) -> ConnectionState:
        return self._state

    def connection_type(self) -> ConnectionType:
        return ConnectionType.SSH

    def description(self) -> str:
        return f"{self.config.username}@{self.config.host}:{self.config.port}"

    def bytes_sent(self) -> int:
        return self._bytes_sent

    def bytes_received(self) -> int:
        return self._bytes_received
