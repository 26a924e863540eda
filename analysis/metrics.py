"""
Metrics Tracking for the Multi-Core Scheduler Simulator.

Tracks performance metrics throughout simulation execution.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional
import statistics

from analysis.events import EventType, SimulationEvent
from models.resource import ResourceKind
from models.system_state import SystemSnapshot


@dataclass
class SimulationMetrics:
    """
    Accumulated metrics for a single simulation run.

    Tracks:
    1. Throughput: Completed processes / ticks simulated
    2. Core Utilization %: Average share of busy cores per tick
    3. Resource Utilization %: Average (held / capacity) x 100 per tick, per kind
    4. Turnaround Time: Completion tick - arrival tick, per process
    5. Scheduling activity: preemptions, blocks, deadlocks, recoveries
    """
    total_ticks: int = 0
    total_processes: int = 0
    completed_processes: int = 0
    terminated_processes: int = 0
    preemption_count: int = 0
    block_count: int = 0
    deadlock_count: int = 0

    # Per-tick samples
    core_utilization_samples: List[float] = field(default_factory=list)
    resource_utilization_samples: Dict[ResourceKind, List[float]] = field(default_factory=dict)

    # Per-process tracking
    turnaround_times: Dict[int, int] = field(default_factory=dict)
    process_start_counts: Dict[int, int] = field(default_factory=dict)

    def record_submission(self) -> None:
        """Record a newly submitted process."""
        self.total_processes += 1

    def record_events(self, events: List[SimulationEvent]) -> None:
        """
        Fold the events of one tick into the counters.

        Args:
            events: Events returned by one tick
        """
        for event in events:
            if event.event_type == EventType.STARTED:
                self.process_start_counts[event.process_id] = (
                    self.process_start_counts.get(event.process_id, 0) + 1
                )
            elif event.event_type == EventType.COMPLETED:
                self.completed_processes += 1
            elif event.event_type == EventType.PREEMPTED:
                self.preemption_count += 1
            elif event.event_type == EventType.BLOCKED:
                self.block_count += 1
            elif event.event_type == EventType.DEADLOCK:
                self.deadlock_count += 1
            elif event.event_type == EventType.DEADLOCK_RECOVERED:
                self.terminated_processes += 1

    def record_turnaround(self, process_id: int, ticks: int) -> None:
        self.turnaround_times[process_id] = ticks

    def record_tick(self, snapshot: SystemSnapshot, capacities: Mapping[ResourceKind, int]) -> None:
        """
        Sample utilization at the end of a tick.

        Args:
            snapshot: State after the tick
            capacities: Total instances per resource kind
        """
        self.total_ticks += 1

        busy = sum(1 for core in snapshot.cores if core.process is not None)
        if snapshot.cores:
            self.core_utilization_samples.append(busy / len(snapshot.cores) * 100)

        for kind, total in capacities.items():
            if total <= 0:
                continue
            held = total - snapshot.available.get(kind, 0)
            self.resource_utilization_samples.setdefault(kind, []).append(held / total * 100)

    def get_core_utilization(self) -> float:
        """Average share of busy cores, in percent."""
        if not self.core_utilization_samples:
            return 0.0
        return statistics.mean(self.core_utilization_samples)

    def get_resource_utilization(self, kind: ResourceKind) -> float:
        """
        Calculate average utilization for a specific resource kind.

        Args:
            kind: Resource kind

        Returns:
            Average utilization percentage for this kind
        """
        samples = self.resource_utilization_samples.get(kind)
        if not samples:
            return 0.0
        return statistics.mean(samples)

    def get_avg_turnaround(self) -> float:
        """Average completion tick - arrival tick over completed processes."""
        if not self.turnaround_times:
            return 0.0
        return statistics.mean(self.turnaround_times.values())

    def get_throughput(self) -> float:
        """
        Calculate system throughput (completed processes / total ticks).

        Terminated victims do not count as completed.
        """
        if self.total_ticks == 0:
            return 0.0
        return self.completed_processes / self.total_ticks


def format_metrics_report(
    metrics: SimulationMetrics,
    verbose: bool = False,
    policy: Optional[str] = None,
    scenario: Optional[str] = None,
    stop_reason: Optional[str] = None
) -> str:
    """
    Format metrics for display at end of simulation.

    Args:
        metrics: SimulationMetrics instance with collected data
        verbose: If True, include per-process breakdown
        policy: Policy used in simulation
        scenario: Scenario file path
        stop_reason: Reason simulation stopped

    Returns:
        Formatted metrics report string
    """
    lines = []
    lines.append("\n" + "="*60)
    lines.append("SIMULATION METRICS")
    lines.append("="*60)

    if policy:
        lines.append(f"Policy: {policy}")
    if scenario:
        lines.append(f"Scenario: {scenario}")
    if stop_reason:
        lines.append(f"Stop Reason: {stop_reason}")
    if policy or scenario or stop_reason:
        lines.append("")

    lines.append(f"Total Ticks: {metrics.total_ticks}")
    lines.append(f"Total Processes: {metrics.total_processes}")
    lines.append(f"Completed Processes: {metrics.completed_processes}")
    lines.append(f"Terminated Processes: {metrics.terminated_processes}")
    lines.append("")

    lines.append("KEY PERFORMANCE METRICS:")
    lines.append("-" * 60)
    lines.append(f"1. System Throughput: {metrics.get_throughput():.4f} processes/tick")
    lines.append(f"2. Core Utilization: {metrics.get_core_utilization():.2f}%")
    lines.append(f"3. Average Turnaround: {metrics.get_avg_turnaround():.2f} ticks")
    lines.append(f"4. Preemptions: {metrics.preemption_count}")
    lines.append(f"5. Blocks: {metrics.block_count}")
    lines.append(f"6. Deadlocks Detected: {metrics.deadlock_count}")

    if metrics.resource_utilization_samples:
        lines.append("")
        lines.append("PER-RESOURCE UTILIZATION:")
        lines.append("-" * 60)
        for kind in metrics.resource_utilization_samples:
            lines.append(f"  {str(kind):18} {metrics.get_resource_utilization(kind):6.2f}% average")

    if verbose and metrics.turnaround_times:
        lines.append("")
        lines.append("PER-PROCESS SUMMARY:")
        lines.append("-" * 60)
        for pid in sorted(metrics.turnaround_times):
            starts = metrics.process_start_counts.get(pid, 0)
            lines.append(
                f"  P{pid}: turnaround={metrics.turnaround_times[pid]:3} ticks | "
                f"dispatched {starts} time(s)"
            )

    lines.append("="*60)
    return "\n".join(lines)
