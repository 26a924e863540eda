"""
Tick phases for the Multi-Core Scheduler Simulator.

Each function performs one phase of a tick against the system state and
returns the events it produced. The simulator calls them in order:

    A. advance_running       - decrement running work, pick completions/preemptions
    B. release_completed     - return resources of finished processes
    C. requeue_preempted     - return resources of preempted processes, requeue them
    D. assign_idle_cores     - start ready processes on idle cores
    E. reactivate_blocked    - move feasible blocked processes to the queue front
"""

from typing import List, Tuple

from algorithms.selection import SchedulingPolicy, select_candidate
from analysis.events import EventType, SimulationEvent
from models.process import ProcessRecord, ProcessState
from models.resource import format_resources
from models.system_state import SystemState


CoreProcess = Tuple[int, ProcessRecord]


def advance_running(system_state: SystemState) -> Tuple[List[CoreProcess], List[CoreProcess]]:
    """
    Phase A: advance every running process by one tick.

    A process whose remaining time is already zero is taken off its core as
    completed. Otherwise its remaining time is decremented; under Round Robin
    it is then taken off as preempted when
    (current_tick - arrival_tick) % quantum == 0.

    Resources are not released here (phases B and C do that).

    Args:
        system_state: Current system state

    Returns:
        Tuple of (completed, preempted) lists of (core_id, process)
    """
    completed = []
    preempted = []
    tick = system_state.clock
    round_robin = system_state.policy == SchedulingPolicy.ROUND_ROBIN

    for core in system_state.cores:
        process = core.current
        if process is None:
            continue

        if process.remaining_time == 0:
            completed.append((core.core_id, core.vacate()))
            continue

        process.remaining_time -= 1

        if round_robin and (tick - process.arrival_tick) % system_state.quantum == 0:
            process.state = ProcessState.READY
            preempted.append((core.core_id, core.vacate()))
        else:
            process.state = ProcessState.RUNNING

    return completed, preempted


def release_completed(system_state: SystemState, completed: List[CoreProcess]) -> List[SimulationEvent]:
    """Phase B: credit back the allocation of every completed process."""
    events = []
    for core_id, process in completed:
        released = process.release_all_resources()
        system_state.ledger.release(released)
        process.state = ProcessState.COMPLETED
        events.append(SimulationEvent(
            tick=system_state.clock,
            event_type=EventType.COMPLETED,
            process_id=process.pid,
            core_id=core_id,
            resources=released,
            message=f"turnaround={system_state.clock - process.arrival_tick}"
        ))
    return events


def requeue_preempted(system_state: SystemState, preempted: List[CoreProcess]) -> List[SimulationEvent]:
    """Phase C: release preempted processes and append them to the ready queue."""
    events = []
    for core_id, process in preempted:
        released = process.release_all_resources()
        system_state.ledger.release(released)
        process.state = ProcessState.READY
        system_state.ready_queue.append(process)
        events.append(SimulationEvent(
            tick=system_state.clock,
            event_type=EventType.PREEMPTED,
            process_id=process.pid,
            core_id=core_id,
            resources=released
        ))
    return events


def assign_idle_cores(system_state: SystemState) -> List[SimulationEvent]:
    """
    Phase D: fill idle cores, in core order, from the ready queue.

    For each idle core the policy names a candidate. If the ledger can grant
    the candidate's whole requirement, it starts on the core. If not, the
    candidate is moved to the blocked set and the phase stops: no further
    idle core is filled this tick, even if another ready process could run.

    Args:
        system_state: Current system state

    Returns:
        Events for every start and block
    """
    events = []
    ledger = system_state.ledger

    for core in system_state.cores:
        if not core.is_idle:
            continue

        candidate = select_candidate(system_state.ready_queue, system_state.policy)
        if candidate is None:
            break

        system_state.ready_queue.remove(candidate)

        if ledger.try_reserve(candidate.demand()):
            candidate.grant()
            candidate.state = ProcessState.RUNNING
            core.assign(candidate)
            events.append(SimulationEvent(
                tick=system_state.clock,
                event_type=EventType.STARTED,
                process_id=candidate.pid,
                core_id=core.core_id,
                resources=dict(candidate.allocated)
            ))
            continue

        ledger.release(candidate.release_all_resources())
        candidate.state = ProcessState.BLOCKED
        system_state.blocked.append(candidate)
        events.append(SimulationEvent(
            tick=system_state.clock,
            event_type=EventType.BLOCKED,
            process_id=candidate.pid,
            resources=candidate.demand(),
            message=f"waiting for {format_resources(candidate.demand())}"
        ))
        break

    return events


def reactivate_blocked(system_state: SystemState) -> List[SimulationEvent]:
    """
    Phase E: move blocked processes that could now be satisfied to the
    front of the ready queue.

    Feasibility check only; resources are reserved in the next assignment
    phase.
    """
    events = []
    for process in list(system_state.blocked):
        if not system_state.ledger.can_satisfy(process.demand()):
            continue

        system_state.blocked.remove(process)
        process.state = ProcessState.READY
        system_state.ready_queue.appendleft(process)
        events.append(SimulationEvent(
            tick=system_state.clock,
            event_type=EventType.UNBLOCKED,
            process_id=process.pid
        ))
    return events


def update_idle_counters(system_state: SystemState) -> None:
    """Count one idle tick for every core left empty at the end of the tick."""
    for core in system_state.cores:
        if core.is_idle:
            core.idle_ticks += 1
