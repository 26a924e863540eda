"""
Process model for the Multi-Core Scheduler Simulator.

Represents a unit of schedulable work with its execution length and its
resource demand/allocation state.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, Mapping
from enum import Enum

from models.resource import ResourceKind, format_resources


class ProcessState(Enum):
    """Process states in the simulation."""
    READY = "READY"
    RUNNING = "RUNNING"
    BLOCKED = "BLOCKED"
    COMPLETED = "COMPLETED"
    TERMINATED = "TERMINATED"


def _validate_requirements(pid: int, required: Mapping[ResourceKind, int]) -> None:
    for kind, amount in required.items():
        if not isinstance(kind, ResourceKind):
            raise ValueError(f"P{pid}: {kind!r} is not a ResourceKind")
        if amount < 0:
            raise ValueError(f"P{pid}: requirement for {kind} cannot be negative")


@dataclass(frozen=True)
class ProcessSpec:
    """
    What a caller submits: the immutable description of a process.

    The simulator stamps the arrival tick and builds the ProcessRecord.

    Attributes:
        pid: Process identifier (unique, positive)
        total_time: Execution length in ticks
        priority: Signed priority (higher value = more urgent)
        required: Instances needed per resource kind, granted as one set
    """
    pid: int
    total_time: int
    priority: int = 0
    required: Mapping[ResourceKind, int] = field(default_factory=dict)

    def __post_init__(self):
        """Validate identifier, length and requirements."""
        if self.pid <= 0:
            raise ValueError(f"Process id must be positive, got {self.pid}")
        if self.total_time < 0:
            raise ValueError(f"P{self.pid}: total_time cannot be negative")
        _validate_requirements(self.pid, self.required)
        # Detach from the caller's mapping
        object.__setattr__(self, "required", dict(self.required))

    def requires(self, kind: ResourceKind, amount: int) -> "ProcessSpec":
        """Return a copy of this spec that also needs `amount` of `kind`."""
        required = dict(self.required)
        required[kind] = amount
        return replace(self, required=required)


@dataclass
class ProcessRecord:
    """
    A process as tracked by the scheduler.

    Attributes:
        pid: Process identifier (unique)
        priority: Priority level (higher value = more urgent)
        total_time: Total execution length in ticks
        remaining_time: Ticks still to run
        arrival_tick: Tick at which the process was submitted
        state: Current process state
        required: Instances needed per kind, fixed for the process's lifetime
        allocated: Instances currently held per kind

    Invariants:
        remaining_time <= total_time
        allocated keys are a subset of required keys, allocated[r] <= required[r]
    """
    pid: int
    priority: int
    total_time: int
    remaining_time: int
    arrival_tick: int
    state: ProcessState = ProcessState.READY
    required: Dict[ResourceKind, int] = field(default_factory=dict)
    allocated: Dict[ResourceKind, int] = field(default_factory=dict)

    def __post_init__(self):
        """Validate time accounting and requirements."""
        if self.pid <= 0:
            raise ValueError(f"Process id must be positive, got {self.pid}")
        if not 0 <= self.remaining_time <= self.total_time:
            raise ValueError(
                f"P{self.pid}: remaining_time ({self.remaining_time}) must be "
                f"between 0 and total_time ({self.total_time})"
            )
        _validate_requirements(self.pid, self.required)

    @classmethod
    def from_spec(cls, spec: ProcessSpec, arrival_tick: int) -> "ProcessRecord":
        """Build a fresh Ready record from a submitted spec."""
        return cls(
            pid=spec.pid,
            priority=spec.priority,
            total_time=spec.total_time,
            remaining_time=spec.total_time,
            arrival_tick=arrival_tick,
            required=dict(spec.required),
        )

    def demand(self) -> Dict[ResourceKind, int]:
        """Non-zero entries of the requirement, as one atomic request."""
        return {kind: amount for kind, amount in self.required.items() if amount > 0}

    def grant(self) -> None:
        """
        Record that the whole requirement is now held.

        The ledger must already have been debited by the caller.
        """
        self.allocated = self.demand()

    def release_all_resources(self) -> Dict[ResourceKind, int]:
        """
        Clear the allocation.

        Returns:
            The allocation that was held, to be credited back to the ledger
        """
        released = self.allocated
        self.allocated = {}
        return released

    def allocation_within_requirement(self) -> bool:
        """Check the allocation-subset invariant."""
        return all(
            kind in self.required and amount <= self.required[kind]
            for kind, amount in self.allocated.items()
        )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"ProcessRecord(pid={self.pid}, priority={self.priority}, "
            f"state={self.state.value}, remaining={self.remaining_time}/{self.total_time}, "
            f"alloc={{{format_resources(self.allocated)}}}, "
            f"required={{{format_resources(self.required)}}})"
        )
