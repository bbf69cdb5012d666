"""
Telemetry: byte counters and lifecycle events of finished connections
"""
from typing import Dict, Any, Optional
from dataclasses import dataclass, field
import time


@dataclass
class Metric:
    """Single metric value"""
    name: str
    value: float
    timestamp: float = field(default_factory=time.time)
    tags: Dict[str, str] = field(default_factory=dict)


@dataclass
class Event:
    """Event record"""
    name: str
    timestamp: float = field(default_factory=time.time)
    metadata: Dict[str, Any] = field(default_factory=dict)


class Telemetry:
    """
    In-process collector fed by connection actors.

    Only touched from the event loop thread, so no locking.
    """

    def __init__(self):
        self._metrics: list[Metric] = []
        self._events: list[Event] = []

    def record_metric(self, name: str, value: float, tags: Optional[Dict[str, str]] = None) -> None:
        self._metrics.append(Metric(name=name, value=value, tags=tags or {}))

    def record_event(self, name: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        self._events.append(Event(name=name, metadata=metadata or {}))

    def record_connection_closed(
        self,
        conn_type: str,
        description: str,
        state: str,
        bytes_sent: int,
        bytes_received: int,
    ) -> None:
        """
        Record the final counters of a connection.

        Args:
            conn_type: Connection type value ("serial", "ssh")
            description: Endpoint description
            state: Final connection state value
            bytes_sent: Bytes written during the connection
            bytes_received: Bytes read during the connection
        """
        tags = {"type": conn_type}
        self.record_metric("bytes_sent", bytes_sent, tags)
        self.record_metric("bytes_received", bytes_received, tags)
        self.record_event("connection_closed", {
            "type": conn_type,
            "description": description,
            "state": state,
        })

    def total(self, name: str, conn_type: Optional[str] = None) -> float:
        """Sum of a metric, optionally restricted to one connection type"""
        return sum(
            m.value for m in self._metrics
            if m.name == name and (conn_type is None or m.tags.get("type") == conn_type)
        )

    def get_metrics(self, name: Optional[str] = None) -> list[Metric]:
        """Get recorded metrics, optionally filtered by name"""
        if name is None:
            return self._metrics.copy()
        return [m for m in self._metrics if m.name == name]

    def get_events(self, name: Optional[str] = None) -> list[Event]:
        """Get recorded events, optionally filtered by name"""
        if name is None:
            return self._events.copy()
        return [e for e in self._events if e.name == name]

    def clear(self) -> None:
        self._metrics.clear()
        self._events.clear()


_telemetry = Telemetry()


def get_telemetry() -> Telemetry:
    """Get the process-wide collector"""
    return _telemetry
