"""
Event Model for the Multi-Core Scheduler Simulator.

Defines the structured events a tick produces, so callers can assert on
outcomes without parsing log text.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from models.resource import ResourceKind, format_resources


class EventType(Enum):
    """Types of events in the simulation."""
    STARTED = "started"
    COMPLETED = "completed"
    PREEMPTED = "preempted"
    BLOCKED = "blocked"
    UNBLOCKED = "unblocked"
    DEADLOCK = "deadlock"
    DEADLOCK_RECOVERED = "deadlock_recovered"


@dataclass
class SimulationEvent:
    """
    Represents a single event in the simulation.

    Attributes:
        tick: Tick during which the event occurred
        event_type: Type of event
        process_id: PID involved in event (-1 for system-wide events)
        core_id: Core involved (if applicable)
        resources: Resources granted or released (if applicable)
        message: Human-readable description
    """
    tick: int
    event_type: EventType
    process_id: int
    core_id: Optional[int] = None
    resources: Dict[ResourceKind, int] = field(default_factory=dict)
    message: str = ""

    def __str__(self) -> str:
        """Format event for logging."""
        base = f"[T={self.tick}]"

        if self.event_type == EventType.STARTED:
            return (
                f"{base} Core {self.core_id}: P{self.process_id} started "
                f"(resources: {format_resources(self.resources)})"
            )
        elif self.event_type == EventType.COMPLETED:
            return f"{base} P{self.process_id} completed (released: {format_resources(self.resources)})"
        elif self.event_type == EventType.PREEMPTED:
            return f"{base} P{self.process_id} preempted (released: {format_resources(self.resources)})"
        elif self.event_type == EventType.BLOCKED:
            return f"{base} P{self.process_id} blocked ({self.message})"
        elif self.event_type == EventType.UNBLOCKED:
            return f"{base} P{self.process_id} unblocked"
        elif self.event_type == EventType.DEADLOCK:
            return f"{base} DEADLOCK DETECTED ({self.message})"
        elif self.event_type == EventType.DEADLOCK_RECOVERED:
            return f"{base} P{self.process_id} terminated to resolve deadlock ({self.message})"
        else:
            return f"{base} P{self.process_id} - {self.event_type.value}: {self.message}"


@dataclass
class EventLog:
    """Collection of simulation events."""
    events: List[SimulationEvent] = field(default_factory=list)

    def extend(self, events: List[SimulationEvent]) -> None:
        self.events.extend(events)

    def get_events_by_type(self, event_type: EventType) -> List[SimulationEvent]:
        """Get all events of a specific type."""
        return [e for e in self.events if e.event_type == event_type]

    def get_events_for_process(self, pid: int) -> List[SimulationEvent]:
        return [e for e in self.events if e.process_id == pid]

    def count(self, event_type: EventType) -> int:
        return len(self.get_events_by_type(event_type))

    def __len__(self) -> int:
        return len(self.events)
