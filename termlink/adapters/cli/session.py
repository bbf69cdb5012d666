"""
Interactive terminal session

Consumes a connection actor: remote bytes go to stdout untouched, stdin
lines become SendData commands, host-key questions become prompts.
"""
import asyncio
import sys
import threading
from typing import Any, BinaryIO, Callable, Optional, TextIO

from ...core.actor import spawn_connection_actor
from ...core.connection import Connection
from ...core.events import (
    CommandSender,
    Connected,
    DataReceived,
    Disconnect,
    Disconnected,
    Error,
    HostKeyUnknown,
    SendData,
)
from ...core.exceptions import ChannelClosed, ChannelError, ChannelFull
from ...core.interfaces import PromptProvider
from ...core.logging import get_logger

logger = get_logger(__name__)


class TerminalSession:
    """Bridges a connection actor and the user's terminal"""

    def __init__(
        self,
        connection: Connection,
        prompts: PromptProvider,
        line_ending: str = "\n",
        output: Optional[BinaryIO] = None,
        input_stream: Optional[TextIO] = None,
    ):
        self.connection = connection
        self.prompts = prompts
        self.line_ending = line_ending
        self.output = output or sys.stdout.buffer
        self.input_stream = input_stream or sys.stdin
        self.connected = False
        self._commands: Optional[CommandSender] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def run(self) -> int:
        """Run the session; returns a process exit code"""
        try:
            return asyncio.run(self.run_async())
        except KeyboardInterrupt:
            self.prompts.warning("Interrupted")
            return 130

    async def run_async(self) -> int:
        """Pump events until the actor stops"""
        self._loop = asyncio.get_running_loop()
        self._commands, events = spawn_connection_actor(self.connection)
        self.prompts.info(f"Connecting to {self.connection.description()}...")

        exit_code = 0
        async for event in events:
            if isinstance(event, DataReceived):
                self.output.write(event.data)
                self.output.flush()
            elif isinstance(event, Connected):
                self.connected = True
                self.prompts.success(f"Connected [{event.conn_type}] {event.description}")
                self._start_input_reader()
            elif isinstance(event, HostKeyUnknown):
                await self._answer_host_key(event)
            elif isinstance(event, Error):
                self.connected = False
                self.prompts.error(event.message)
                exit_code = 1
            elif isinstance(event, Disconnected):
                self.connected = False
                self.prompts.info("Disconnected")

        self.prompts.info(
            f"Sent {self.connection.bytes_sent()} bytes, "
            f"received {self.connection.bytes_received()} bytes"
        )
        return exit_code

    async def _answer_host_key(self, event: HostKeyUnknown) -> None:
        try:
            accepted = await self._in_thread(
                self.prompts.confirm_host_key,
                event.host,
                event.key_type,
                event.fingerprint,
                event.is_key_changed,
            )
        except Exception as e:
            logger.error(f"Host key prompt failed: {e}")
            accepted = False
        if not event.decision.resolve(accepted):
            self.prompts.warning("Host key question expired before it was answered")

    # --------------------
    # stdin
    # --------------------
    def _start_input_reader(self) -> None:
        thread = threading.Thread(
            target=self._read_input,
            daemon=True,
            name="TerminalSession-stdin",
        )
        thread.start()

    def _read_input(self) -> None:
        for line in iter(self.input_stream.readline, ""):
            if not self._post(self._submit_line, line):
                return
        self._post(self._submit_eof)

    def _submit_line(self, line: str) -> None:
        text = line.rstrip("\r\n")
        self._submit(SendData((text + self.line_ending).encode("utf-8")))

    def _submit_eof(self) -> None:
        self._submit(Disconnect())

    def _submit(self, command: Any) -> None:
        if self._commands is None:
            return
        try:
            self._commands.try_send(command)
        except ChannelFull:
            self.prompts.warning("Send queue full, input dropped")
        except ChannelClosed:
            logger.debug("Connection already ending, input dropped")

    # --------------------
    # Thread helpers
    # --------------------
    def _post(self, callback: Callable[..., None], *args: Any) -> bool:
        """Schedule a callback on the session loop from another thread"""
        try:
            self._loop.call_soon_threadsafe(callback, *args)
            return True
        except RuntimeError:
            # Loop already closed
            return False

    def _in_thread(self, func: Callable[..., Any], *args: Any) -> "asyncio.Future":
        """
        Run a blocking call in a daemon thread.

        Unlike asyncio.to_thread, an unanswered prompt does not keep the
        process alive after the session ends.
        """
        future = self._loop.create_future()

        def settle(ok: bool, value: Any) -> None:
            if future.done():
                return
            if ok:
                future.set_result(value)
            else:
                future.set_exception(value)

        def worker() -> None:
            try:
                result = func(*args)
            except Exception as e:
                self._post(settle, False, e)
            else:
                self._post(settle, True, result)

        threading.Thread(target=worker, daemon=True, name="TerminalSession-prompt").start()
        return future

    def disconnect(self) -> None:
        """Ask the actor to close the connection"""
        try:
            if self._commands is not None:
                self._commands.try_send(Disconnect())
        except ChannelError:
            logger.debug("Connection already ending")
