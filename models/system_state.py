"""
System State model for the Multi-Core Scheduler Simulator.

Owns everything one simulation mutates: the resource ledger, the ready queue,
the blocked set, the core slots and the global clock. Also builds the
matrices the deadlock detector and the conservation check work on.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Mapping, Optional, Tuple

import numpy as np

from algorithms.selection import SchedulingPolicy
from models.core import CoreSlot
from models.process import ProcessRecord, ProcessState
from models.resource import ResourceKind, ResourceLedger, default_capacities, format_resources


class ConfigurationError(Exception):
    """Raised when a simulation is constructed with invalid parameters."""
    pass


@dataclass(frozen=True)
class ProcessView:
    """Read-only copy of a process for snapshots."""
    pid: int
    priority: int
    total_time: int
    remaining_time: int
    arrival_tick: int
    state: ProcessState
    required: Dict[ResourceKind, int]
    allocated: Dict[ResourceKind, int]

    @classmethod
    def of(cls, process: ProcessRecord) -> "ProcessView":
        return cls(
            pid=process.pid,
            priority=process.priority,
            total_time=process.total_time,
            remaining_time=process.remaining_time,
            arrival_tick=process.arrival_tick,
            state=process.state,
            required=dict(process.required),
            allocated=dict(process.allocated),
        )


@dataclass(frozen=True)
class CoreView:
    """Read-only view of a core slot."""
    core_id: int
    process: Optional[ProcessView]
    idle_ticks: int

    @property
    def process_id(self) -> Optional[int]:
        return self.process.pid if self.process else None


@dataclass(frozen=True)
class SystemSnapshot:
    """
    Read-only view of a simulation between ticks.

    Attributes:
        tick: Global clock value
        policy: Scheduling policy in force
        quantum: Round Robin quantum
        cores: Per-core occupancy and idle counters
        ready: Ready queue contents, head first
        blocked: Blocked set contents
        available: Ledger availability per resource kind
    """
    tick: int
    policy: SchedulingPolicy
    quantum: int
    cores: Tuple[CoreView, ...]
    ready: Tuple[ProcessView, ...]
    blocked: Tuple[ProcessView, ...]
    available: Dict[ResourceKind, int]

    @property
    def ready_pids(self) -> List[int]:
        return [p.pid for p in self.ready]

    @property
    def blocked_pids(self) -> List[int]:
        return [p.pid for p in self.blocked]

    @property
    def running_pids(self) -> List[int]:
        return [c.process_id for c in self.cores if c.process is not None]


@dataclass
class SystemState:
    """
    Global state of one simulation.

    Attributes:
        cores: Fixed set of core slots
        ledger: Resource availability
        policy: Selection policy used when assigning idle cores
        quantum: Ticks per Round Robin slice (ignored by other policies)
        detect_interval: Ticks between deadlock checks
        ready_queue: Ready processes, head first
        blocked: Processes waiting for resources
        clock: Global tick counter
    """
    cores: List[CoreSlot]
    ledger: ResourceLedger
    policy: SchedulingPolicy
    quantum: int
    detect_interval: int = 10
    ready_queue: Deque[ProcessRecord] = field(default_factory=deque)
    blocked: List[ProcessRecord] = field(default_factory=list)
    clock: int = 0

    @classmethod
    def create(
        cls,
        core_count: int,
        quantum: int,
        policy: SchedulingPolicy,
        resources: Optional[Mapping[ResourceKind, int]] = None,
        detect_interval: int = 10
    ) -> "SystemState":
        """
        Validate the configuration and build an empty system.

        Args:
            core_count: Number of cores (at least 1)
            quantum: Round Robin quantum (at least 1 under ROUND_ROBIN)
            policy: Scheduling policy
            resources: Capacity per resource kind (defaults to the standard set)
            detect_interval: Ticks between deadlock checks (at least 1)

        Raises:
            ConfigurationError: If any parameter is invalid
        """
        if not isinstance(policy, SchedulingPolicy):
            raise ConfigurationError(f"Unknown scheduling policy: {policy!r}")
        if core_count < 1:
            raise ConfigurationError(f"At least one core is required (got {core_count})")
        if policy == SchedulingPolicy.ROUND_ROBIN and quantum < 1:
            raise ConfigurationError(f"Round Robin quantum must be >= 1 (got {quantum})")
        if detect_interval < 1:
            raise ConfigurationError(f"Deadlock check interval must be >= 1 (got {detect_interval})")

        try:
            ledger = ResourceLedger(default_capacities() if resources is None else resources)
        except ValueError as e:
            raise ConfigurationError(str(e))

        return cls(
            cores=[CoreSlot(core_id=i) for i in range(core_count)],
            ledger=ledger,
            policy=policy,
            quantum=quantum,
            detect_interval=detect_interval,
        )

    @property
    def num_cores(self) -> int:
        return len(self.cores)

    def running(self) -> List[ProcessRecord]:
        """Processes currently on a core, in core order."""
        return [core.current for core in self.cores if core.current is not None]

    def waiting(self) -> List[ProcessRecord]:
        """Processes not on a core: ready queue then blocked set."""
        return list(self.ready_queue) + list(self.blocked)

    def live_processes(self) -> List[ProcessRecord]:
        """Every process still in the system."""
        return self.running() + self.waiting()

    def is_idle(self) -> bool:
        """No ready, blocked or running processes."""
        return not self.ready_queue and not self.blocked and all(c.is_idle for c in self.cores)

    def resource_kinds(self, processes: Optional[List[ProcessRecord]] = None) -> List[ResourceKind]:
        """
        Column order for the resource matrices.

        Ledger kinds first, then any kind a process requires that the ledger
        does not know (such a column always has zero availability).
        """
        kinds = self.ledger.kinds
        seen = set(kinds)
        for process in processes if processes is not None else self.live_processes():
            for kind in process.required:
                if kind not in seen:
                    seen.add(kind)
                    kinds.append(kind)
        return kinds

    def requirement_matrix(self, processes: List[ProcessRecord], kinds: List[ResourceKind]) -> np.ndarray:
        """Required instances [P][R]."""
        return _build_matrix(processes, kinds, lambda p: p.required)

    def allocation_matrix(self, processes: List[ProcessRecord], kinds: List[ResourceKind]) -> np.ndarray:
        """Held instances [P][R]."""
        return _build_matrix(processes, kinds, lambda p: p.allocated)

    def snapshot(self) -> SystemSnapshot:
        """Read-only view of the current state."""
        return SystemSnapshot(
            tick=self.clock,
            policy=self.policy,
            quantum=self.quantum,
            cores=tuple(
                CoreView(
                    core_id=core.core_id,
                    process=ProcessView.of(core.current) if core.current else None,
                    idle_ticks=core.idle_ticks,
                )
                for core in self.cores
            ),
            ready=tuple(ProcessView.of(p) for p in self.ready_queue),
            blocked=tuple(ProcessView.of(p) for p in self.blocked),
            available=self.ledger.snapshot(),
        )

    def display(self) -> str:
        """
        Generate readable string representation of system state.

        Returns:
            Formatted string showing cores, queues and resources
        """
        output = []
        output.append("\n" + "="*60)
        output.append(f"SYSTEM STATE (tick {self.clock})")
        output.append("="*60)
        output.append(f"Policy: {self.policy.display_name}, quantum: {self.quantum}")

        output.append("\nCores:")
        for core in self.cores:
            if core.current is not None:
                status = (
                    f"running P{core.current.pid} "
                    f"(remaining={core.current.remaining_time})"
                )
            else:
                status = "idle"
            output.append(f"  Core {core.core_id}: {status:30} idle ticks: {core.idle_ticks}")

        output.append(f"\nReady ({len(self.ready_queue)}):")
        for process in self.ready_queue:
            output.append(
                f"  P{process.pid}: priority={process.priority}, "
                f"remaining={process.remaining_time}, "
                f"requires={format_resources(process.required)}"
            )

        output.append(f"\nBlocked ({len(self.blocked)}):")
        for process in self.blocked:
            output.append(
                f"  P{process.pid}: priority={process.priority}, "
                f"requires={format_resources(process.required)}"
            )

        output.append("\nAvailable Resources:")
        for kind in self.ledger.kinds:
            output.append(
                f"  {str(kind):18} {self.ledger.available(kind):3} / {self.ledger.capacity(kind)}"
            )

        output.append("="*60)
        return "\n".join(output)

    def assert_resource_conservation(self, context=""):
        """Verify resource conservation: allocated + available = total for all resources.

        Args:
            context: Description of when this check is being run (for error messages)

        Raises:
            AssertionError: If resource conservation or an allocation invariant is violated
        """
        processes = self.live_processes()
        kinds = self.ledger.kinds
        allocated = self.allocation_matrix(processes, kinds).sum(axis=0)
        available = self.ledger.available_vector(kinds)
        total = self.ledger.capacity_vector(kinds)

        for r_idx, kind in enumerate(kinds):
            assert allocated[r_idx] + available[r_idx] == total[r_idx], (
                f"Resource conservation violated for {kind} {context}\n"
                f"  Allocated: {allocated[r_idx]}, Available: {available[r_idx]}, Total: {total[r_idx]}\n"
                f"  Allocated + Available = {allocated[r_idx] + available[r_idx]} != {total[r_idx]}"
            )

            assert available[r_idx] >= 0, (
                f"Negative available resources for {kind} {context}\n"
                f"  Available: {available[r_idx]}"
            )

        for process in processes:
            assert process.allocation_within_requirement(), (
                f"P{process.pid} holds more than it requires {context}\n"
                f"  Allocated: {format_resources(process.allocated)}\n"
                f"  Required: {format_resources(process.required)}"
            )
            assert process.remaining_time <= process.total_time, (
                f"P{process.pid} remaining time exceeds total {context}"
            )


def _build_matrix(processes, kinds, mapping_of) -> np.ndarray:
    """Build a [P][R] matrix from one mapping per process."""
    matrix = np.zeros((len(processes), len(kinds)), dtype=int)
    for i, process in enumerate(processes):
        mapping = mapping_of(process)
        for j, kind in enumerate(kinds):
            matrix[i][j] = mapping.get(kind, 0)
    return matrix
