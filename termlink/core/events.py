"""
Events (actor to consumer) and commands (consumer to actor)
"""
from dataclasses import dataclass, field
from typing import Union

from .channels import HostKeyDecision, Receiver, Sender
from .connection import ConnectionType


# ============================================================
# Events
# ============================================================

@dataclass(frozen=True)
class Connected:
    """Handshake finished, the I/O loop is running"""
    conn_type: ConnectionType
    description: str


@dataclass(frozen=True)
class DataReceived:
    """Bytes read from the remote end"""
    data: bytes


@dataclass(frozen=True)
class Disconnected:
    """Connection closed without error"""
    pass


@dataclass(frozen=True)
class Error:
    """Unrecoverable failure; the actor has stopped"""
    message: str


@dataclass(frozen=True)
class HostKeyUnknown:
    """
    SSH host key needs an explicit decision.
    
    is_key_changed is True when known_hosts holds a DIFFERENT key for this
    host (possible man-in-the-middle), False on first contact. The consumer
    answers through decision.accept() / decision.reject(); no answer within
    the verifier's timeout counts as a rejection.
    """
    host: str
    key_type: str
    fingerprint: str
    is_key_changed: bool
    decision: HostKeyDecision = field(compare=False)


ConnectionEvent = Union[Connected, DataReceived, Disconnected, Error, HostKeyUnknown]


# ============================================================
# Commands
# ============================================================

@dataclass(frozen=True)
class SendData:
    """Write bytes to the connection"""
    data: bytes


@dataclass(frozen=True)
class Disconnect:
    """Close the connection and stop the actor"""
    pass


ConnectionCommand = Union[SendData, Disconnect]

EventSender = Sender[ConnectionEvent]
EventReceiver = Receiver[ConnectionEvent]
CommandSender = Sender[ConnectionCommand]
CommandReceiver = Receiver[ConnectionCommand]
