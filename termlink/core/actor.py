"""
Connection actor

Owns one Connection for its whole life and exposes it only through a
command channel (in) and an event channel (out).
"""
import asyncio
from typing import Optional, Set, Tuple

from .channels import channel
from .connection import Connection, ConnectionState
from .constants import (
    COMMAND_CHANNEL_CAPACITY,
    EVENT_CHANNEL_CAPACITY,
    EVENT_SEND_TIMEOUT,
)
from .events import (
    CommandReceiver,
    CommandSender,
    Connected,
    ConnectionEvent,
    DataReceived,
    Disconnect,
    Disconnected,
    Error,
    EventReceiver,
    EventSender,
    SendData,
)
from .exceptions import ChannelClosed, ChannelEmpty, ChannelError
from .logging import get_logger
from .telemetry import get_telemetry

logger = get_logger(__name__)

# Strong references to running actor tasks
_actor_tasks: Set[asyncio.Task] = set()


class ConnectionActor:
    """
    Drives a connection through connect, the I/O loop and shutdown.

    Every terminal path emits exactly one of Error / Disconnected, except
    when the consumer is gone (nobody left to tell).
    """

    def __init__(
        self,
        connection: Connection,
        commands: CommandReceiver,
        events: EventSender,
        event_send_timeout: Optional[float] = EVENT_SEND_TIMEOUT,
    ):
        self.connection = connection
        self.commands = commands
        self.events = events
        self.event_send_timeout = event_send_timeout

    async def run(self) -> None:
        """Run the actor to completion"""
        try:
            if await self._connect():
                await self._io_loop()
        except asyncio.CancelledError:
            await self._close_quietly()
            raise
        finally:
            self.events.close()
            self.commands.close()
            self._record_totals()

    # --------------------
    # Phase 1: connect
    # --------------------
    async def _connect(self) -> bool:
        try:
            await self.connection.connect(events=self.events)
        except Exception as e:
            logger.error(f"Connection to {self.connection.description()} failed: {e}")
            await self._emit(Error(str(e)))
            return False

        if not await self._emit(Connected(
            conn_type=self.connection.connection_type(),
            description=self.connection.description(),
        )):
            logger.warning("Event consumer is gone, closing connection")
            await self._close_quietly()
            return False
        return True

    # --------------------
    # Phase 2: I/O loop
    # --------------------
    async def _io_loop(self) -> None:
        while True:
            # Commands first: pending user intent is served before the next read
            try:
                command = self.commands.try_recv()
            except ChannelEmpty:
                command = None
            except ChannelClosed:
                command = Disconnect()

            if command is not None:
                if not await self._handle_command(command):
                    return
                continue

            # Idle: a read and the command channel race, a command wins
            read = asyncio.ensure_future(self.connection.read())
            incoming = asyncio.ensure_future(self._next_command())
            try:
                await asyncio.wait({read, incoming}, return_when=asyncio.FIRST_COMPLETED)
            except asyncio.CancelledError:
                await _discard(read, incoming)
                raise

            if not incoming.done():
                # The command stays queued for the next try_recv
                await _discard(incoming)
                if not await self._handle_read(read):
                    return
                continue

            if not read.done():
                await _discard(read)
            if not await self._handle_command(incoming.result()):
                await _discard(read)
                return
            if not read.cancelled():
                if not await self._handle_read(read):
                    return

    async def _next_command(self):
        try:
            return await self.commands.recv()
        except ChannelClosed:
            return Disconnect()

    async def _handle_command(self, command) -> bool:
        """Returns False when the loop must stop"""
        if isinstance(command, SendData):
            try:
                await self.connection.send(command.data)
            except Exception as e:
                logger.error(f"Send failed on {self.connection.description()}: {e}")
                await self._close_quietly()
                await self._emit(Error(str(e)))
                return False
            return True

        if isinstance(command, Disconnect):
            await self._close_quietly()
            await self._emit(Disconnected())
            return False

        logger.warning(f"Ignoring unknown command: {command!r}")
        return True

    async def _handle_read(self, read: asyncio.Future) -> bool:
        """Returns False when the loop must stop"""
        try:
            data = read.result()
        except Exception as e:
            logger.error(f"Read failed on {self.connection.description()}: {e}")
            await self._close_quietly()
            await self._emit(Error(str(e)))
            return False

        if data:
            if not await self._emit(DataReceived(data)):
                logger.warning("Event consumer stopped reading, closing connection")
                await self._close_quietly()
                return False
            return True

        # Nothing read: the transport may have seen the remote end go away
        if self.connection.state() in (ConnectionState.DISCONNECTED, ConnectionState.ERROR):
            await self._close_quietly()
            await self._emit(Disconnected())
            return False
        return True

    # --------------------
    # Helpers
    # --------------------
    async def _emit(self, event: ConnectionEvent) -> bool:
        """Send an event; False if the consumer is gone or saturated"""
        try:
            await self.events.send(event, timeout=self.event_send_timeout)
            return True
        except ChannelError as e:
            logger.debug(f"Event {type(event).__name__} not delivered: {e}")
            return False

    async def _close_quietly(self) -> None:
        try:
            await self.connection.disconnect()
        except Exception as e:
            logger.debug(f"Ignoring error while closing {self.connection.description()}: {e}")

    def _record_totals(self) -> None:
        sent = self.connection.bytes_sent()
        received = self.connection.bytes_received()
        logger.info(f"Connection finished: sent {sent} bytes, received {received} bytes")

        get_telemetry().record_connection_closed(
            conn_type=self.connection.connection_type().value,
            description=self.connection.description(),
            state=self.connection.state().value,
            bytes_sent=sent,
            bytes_received=received,
        )


async def _discard(*tasks: asyncio.Future) -> None:
    """Cancel unfinished tasks, wait for them and retrieve their outcome"""
    for task in tasks:
        task.cancel()
    await asyncio.wait(tasks)
    for task in tasks:
        if not task.cancelled() and task.exception() is not None:
            logger.debug(f"Discarded task failed: {task.exception()}")


def spawn_connection_actor(
    connection: Connection,
    *,
    command_capacity: int = COMMAND_CHANNEL_CAPACITY,
    event_capacity: int = EVENT_CHANNEL_CAPACITY,
    event_send_timeout: Optional[float] = EVENT_SEND_TIMEOUT,
) -> Tuple[CommandSender, EventReceiver]:
    """
    Start an actor task for a (not yet connected) connection.

    Must be called from a coroutine or callback running in the event loop.

    Args:
        connection: Transport to drive; the caller must not use its I/O
            methods afterwards (accessors are fine)
        command_capacity: Command channel bound
        event_capacity: Event channel bound; a consumer that leaves it full
            for event_send_timeout seconds gets disconnected
        event_send_timeout: Seconds to wait for event channel space

    Returns:
        (command sender, event receiver)
    """
    command_tx, command_rx = channel(command_capacity)
    event_tx, event_rx = channel(event_capacity)

    connection.init_event_sender(event_tx)

    actor = ConnectionActor(connection, command_rx, event_tx, event_send_timeout)
    task = asyncio.get_running_loop().create_task(
        actor.run(),
        name=f"connection-actor[{connection.description()}]",
    )
    _actor_tasks.add(task)
    task.add_done_callback(_actor_tasks.discard)

    logger.debug(f"Spawned connection actor for {connection.description()}")
    return command_tx, event_rx
