#!/usr/bin/env python3
"""
Multi-Core Scheduler Simulator
Main entry point for the simulation system.

Simulates, tick by tick, how a multi-core processor with contended shared
resources assigns ready work to cores under Round Robin, Priority or
Shortest Job First scheduling, while detecting and recovering from deadlock.
"""

import argparse
import sys
from typing import List, Mapping, Optional, Tuple

from algorithms.detection import DEADLOCK_CHECK_INTERVAL, detect_deadlock, should_run_detection
from algorithms.dispatch import (
    advance_running,
    assign_idle_cores,
    reactivate_blocked,
    release_completed,
    requeue_preempted,
    update_idle_counters,
)
from algorithms.recovery import recover_from_deadlock
from algorithms.selection import SchedulingPolicy
from analysis.analyzer import compare_policies, generate_comparison_report
from analysis.events import EventLog, EventType, SimulationEvent
from analysis.metrics import SimulationMetrics, format_metrics_report
from models.process import ProcessRecord, ProcessSpec
from models.resource import ResourceKind, ResourceLedger
from models.system_state import ConfigurationError, SystemSnapshot, SystemState
from utils.logger import SimulatorLogger
from utils.scenario_loader import ScenarioLoadError, load_scenario


class Simulator:
    """
    One independent simulation.

    Callers submit processes and advance the clock strictly between ticks;
    all state lives in the owned SystemState.
    """

    def __init__(
        self,
        core_count: int,
        quantum: int,
        policy: SchedulingPolicy,
        resources: Optional[Mapping[ResourceKind, int]] = None,
        detect_interval: int = DEADLOCK_CHECK_INTERVAL,
        logger: Optional[SimulatorLogger] = None,
        verify_invariants: bool = False
    ):
        """
        Build an empty simulation.

        Args:
            core_count: Number of cores (at least 1)
            quantum: Round Robin quantum (ignored by other policies)
            policy: Scheduling policy
            resources: Capacity per resource kind (defaults to the standard set)
            detect_interval: Ticks between deadlock checks
            logger: Optional logger for events and state dumps
            verify_invariants: Check resource conservation after every tick

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        self.state = SystemState.create(core_count, quantum, policy, resources, detect_interval)
        self.logger = logger
        self.verify_invariants = verify_invariants
        self.event_log = EventLog()
        self.metrics = SimulationMetrics()
        self._submitted_pids = set()

    @property
    def ledger(self) -> ResourceLedger:
        """
        The live resource ledger.

        Read it for reporting. The scheduler itself only changes it inside a
        tick. Reserving or releasing through it between ticks models
        instances held outside any process (a prior allocation); such
        holdings break the conservation check, so leave verify_invariants
        off when doing so.
        """
        return self.state.ledger

    @property
    def clock(self) -> int:
        return self.state.clock

    def submit(self, spec: ProcessSpec) -> ProcessRecord:
        """
        Enqueue a new Ready process at the back of the ready queue.

        Resource feasibility is not checked here.

        Args:
            spec: Process description

        Returns:
            The created record, stamped with the current tick as arrival

        Raises:
            ValueError: If the pid was already submitted to this simulation
        """
        if spec.pid in self._submitted_pids:
            raise ValueError(f"Process id {spec.pid} already submitted")
        self._submitted_pids.add(spec.pid)

        process = ProcessRecord.from_spec(spec, arrival_tick=self.state.clock)
        self.state.ready_queue.append(process)
        self.metrics.record_submission()

        if self.logger:
            self.logger.log_tick(self.state.clock, f"P{process.pid} submitted: {process}", "debug")
        return process

    def check_deadlock(self) -> bool:
        """Run the safety check on the current state without changing it."""
        deadlock_exists, _ = detect_deadlock(self.state)
        return deadlock_exists

    def advance_tick(self) -> List[SimulationEvent]:
        """
        Execute one tick.

        Phase Ordering:
        0. Every detect_interval ticks: deadlock check, evict ready-queue head
        A. Advance running processes, collect completions and preemptions
        B. Release resources of completed processes
        C. Release and requeue preempted processes
        D. Assign ready processes to idle cores (head-of-line stop)
        E. Reactivate feasible blocked processes at the queue front
        Then the clock advances by one.

        Returns:
            Events produced during this tick
        """
        state = self.state
        tick = state.clock
        events: List[SimulationEvent] = []

        # Phase 0: periodic deadlock check
        if should_run_detection(tick, state.detect_interval):
            events.extend(self._detect_and_recover(tick))

        # Phase A-C: running work
        completed, preempted = advance_running(state)
        events.extend(release_completed(state, completed))
        for _, process in completed:
            self.metrics.record_turnaround(process.pid, tick - process.arrival_tick)
        events.extend(requeue_preempted(state, preempted))

        # Phase D-E: dispatch
        events.extend(assign_idle_cores(state))
        events.extend(reactivate_blocked(state))

        update_idle_counters(state)
        state.clock += 1

        self.event_log.extend(events)
        self.metrics.record_events(events)
        self.metrics.record_tick(state.snapshot(), state.ledger.capacities())

        if self.logger:
            for event in events:
                if event.event_type not in (EventType.DEADLOCK, EventType.DEADLOCK_RECOVERED):
                    self.logger.log_event(event)
            if self.logger.verbose:
                self.logger.log_system_state(tick, state.display())

        if self.verify_invariants:
            state.assert_resource_conservation(f"after tick {tick}")

        return events

    def _detect_and_recover(self, tick: int) -> List[SimulationEvent]:
        deadlock_exists, stuck_pids = detect_deadlock(self.state)
        if not deadlock_exists:
            if self.logger:
                self.logger.log_tick(tick, "Deadlock check: no deadlock detected", "debug")
            return []

        events = [SimulationEvent(
            tick=tick,
            event_type=EventType.DEADLOCK,
            process_id=-1,  # system-wide event
            message=f"unfinishable processes: {stuck_pids}"
        )]
        if self.logger:
            self.logger.log_deadlock(tick, stuck_pids)

        victim, message = recover_from_deadlock(self.state)
        if self.logger:
            self.logger.log_recovery(tick, message)
        if victim is not None:
            events.append(SimulationEvent(
                tick=tick,
                event_type=EventType.DEADLOCK_RECOVERED,
                process_id=victim.pid,
                message=message
            ))
        return events

    def run(self, n_ticks: int) -> List[SimulationEvent]:
        """
        Advance up to n_ticks ticks, stopping early once nothing is left.

        Returns:
            Every event produced by the ticks that ran
        """
        events: List[SimulationEvent] = []
        for _ in range(n_ticks):
            if self.is_idle():
                break
            events.extend(self.advance_tick())
        return events

    def is_idle(self) -> bool:
        """No ready, blocked or running processes."""
        return self.state.is_idle()

    def snapshot(self) -> SystemSnapshot:
        """Read-only view of cores, queues, ledger and clock."""
        return self.state.snapshot()

    def describe(self) -> str:
        """Detailed statistics for display."""
        state = self.state
        lines = []
        lines.append("\n=== DETAILED STATISTICS ===")
        lines.append(f"Global tick: {state.clock}")
        lines.append(f"Policy: {state.policy.display_name}")
        lines.append(f"Quantum: {state.quantum}")

        lines.append("\n=== CORES ===")
        for core in state.cores:
            status = f"Running P{core.current.pid}" if core.current else "Idle"
            lines.append(f"Core {core.core_id}: {status} (idle ticks: {core.idle_ticks})")

        lines.append("\n=== PROCESS QUEUES ===")
        lines.append(f"Ready: {len(state.ready_queue)} processes")
        for i, process in enumerate(list(state.ready_queue)[:5]):
            lines.append(
                f"  {i + 1}. P{process.pid} (priority: {process.priority}, "
                f"remaining: {process.remaining_time})"
            )
        if len(state.ready_queue) > 5:
            lines.append(f"  ... and {len(state.ready_queue) - 5} more")

        lines.append(f"Blocked: {len(state.blocked)} processes")
        for i, process in enumerate(state.blocked[:3]):
            lines.append(
                f"  {i + 1}. P{process.pid} (priority: {process.priority}, "
                f"remaining: {process.remaining_time})"
            )
        if len(state.blocked) > 3:
            lines.append(f"  ... and {len(state.blocked) - 3} more")

        lines.append("\n=== AVAILABLE RESOURCES ===")
        for kind in state.ledger.kinds:
            lines.append(f"  {kind}: {state.ledger.available(kind)}")
        return "\n".join(lines)


def run_simulation(
    scenario_path: str,
    policy: Optional[SchedulingPolicy] = None,
    max_ticks: int = 100,
    verbose: bool = False,
    cores: Optional[int] = None,
    quantum: Optional[int] = None,
    detect_interval: int = DEADLOCK_CHECK_INTERVAL,
    logger: Optional[SimulatorLogger] = None
) -> Tuple[EventLog, SimulationMetrics, str]:
    """
    Run a scenario file to completion or until max_ticks.

    Processes are submitted at the start of their arrival tick, before the
    tick executes.

    Args:
        scenario_path: Path to scenario JSON file
        policy: Override the scenario's policy
        max_ticks: Upper bound on ticks simulated
        verbose: Enable verbose logging and invariant checks
        cores: Override the scenario's core count
        quantum: Override the scenario's quantum
        detect_interval: Ticks between deadlock checks
        logger: Logger to use (a console logger is created if omitted)

    Returns:
        Tuple of (event log, metrics, stop reason)

    Raises:
        ScenarioLoadError: If the scenario cannot be loaded
        ConfigurationError: If the resulting configuration is invalid
    """
    owns_logger = logger is None
    if logger is None:
        logger = SimulatorLogger(verbose=verbose)

    scenario = load_scenario(scenario_path)
    simulator = Simulator(
        core_count=scenario.cores if cores is None else cores,
        quantum=scenario.quantum if quantum is None else quantum,
        policy=scenario.policy if policy is None else policy,
        resources=scenario.resources,
        detect_interval=detect_interval,
        logger=logger,
        verify_invariants=verbose,
    )

    logger.log(f"\n{'='*60}")
    logger.log(
        f"SIMULATION START: {simulator.state.num_cores} core(s), "
        f"{simulator.state.policy.display_name}, quantum {simulator.state.quantum}"
    )
    logger.log(f"Scenario: {scenario_path}")
    if scenario.description:
        logger.log(scenario.description)
    logger.log(f"{'='*60}\n")

    stop_reason = f"Maximum ticks reached ({max_ticks})"
    for _ in range(max_ticks):
        for spec in scenario.arrivals.get(simulator.clock, []):
            simulator.submit(spec)

        if simulator.is_idle() and simulator.clock >= scenario.last_arrival:
            stop_reason = f"All processes finished at tick {simulator.clock}"
            break

        simulator.advance_tick()
    else:
        if simulator.is_idle() and simulator.clock > scenario.last_arrival:
            stop_reason = f"All processes finished at tick {simulator.clock}"

    logger.log(f"\n{'='*60}")
    logger.log("SIMULATION COMPLETE")
    logger.log(f"{'='*60}")
    logger.log(simulator.describe())
    logger.log(format_metrics_report(
        simulator.metrics,
        verbose=verbose,
        policy=simulator.state.policy.display_name,
        scenario=scenario_path,
        stop_reason=stop_reason
    ))

    if owns_logger:
        logger.close()
    return simulator.event_log, simulator.metrics, stop_reason


def main():
    """Main entry point for the simulator."""
    parser = argparse.ArgumentParser(
        description='Multi-Core Scheduler & Deadlock Simulator'
    )
    parser.add_argument(
        '--scenario',
        type=str,
        required=True,
        help='Path to scenario JSON file'
    )
    parser.add_argument(
        '--policy',
        choices=[p.value for p in SchedulingPolicy],
        help='Scheduling policy (overrides the scenario)'
    )
    parser.add_argument(
        '--cores',
        type=int,
        help='Number of cores (overrides the scenario)'
    )
    parser.add_argument(
        '--quantum',
        type=int,
        help='Round Robin quantum (overrides the scenario)'
    )
    parser.add_argument(
        '--ticks',
        type=int,
        default=100,
        help='Maximum number of ticks to simulate (default: 100)'
    )
    parser.add_argument(
        '--detect-interval',
        type=int,
        default=DEADLOCK_CHECK_INTERVAL,
        help=f'Ticks between deadlock checks (default: {DEADLOCK_CHECK_INTERVAL})'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging and invariant checks'
    )
    parser.add_argument(
        '--log-file',
        type=str,
        help='Also write the log to this file'
    )
    parser.add_argument(
        '--compare-policies',
        action='store_true',
        help='Run the scenario under every policy and print a comparison'
    )

    args = parser.parse_args()

    if args.ticks < 1:
        parser.error('--ticks must be at least 1')

    logger = SimulatorLogger(verbose=args.verbose, log_file=args.log_file)
    try:
        if args.compare_policies:
            quiet_logger = SimulatorLogger(verbose=False, quiet=True)
            results = compare_policies(
                list(SchedulingPolicy),
                args.scenario,
                max_ticks=args.ticks,
                run_simulation_func=lambda **kwargs: run_simulation(
                    cores=args.cores,
                    quantum=args.quantum,
                    detect_interval=args.detect_interval,
                    logger=quiet_logger,
                    **kwargs
                )
            )
            logger.log(generate_comparison_report(results, args.scenario))
        else:
            run_simulation(
                args.scenario,
                policy=SchedulingPolicy(args.policy) if args.policy else None,
                max_ticks=args.ticks,
                verbose=args.verbose,
                cores=args.cores,
                quantum=args.quantum,
                detect_interval=args.detect_interval,
                logger=logger
            )
    except (ScenarioLoadError, ConfigurationError) as e:
        logger.log(f"Failed to start simulation: {e}", "error")
        return 1
    finally:
        logger.close()

    return 0


if __name__ == '__main__':
    sys.exit(main())
