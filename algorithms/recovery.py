"""
Deadlock Recovery for the Multi-Core Scheduler Simulator.

Recovery terminates the process at the head of the ready queue,
whether or not it takes part in the stuck set.
"""

from typing import Optional, Tuple

from models.process import ProcessRecord, ProcessState
from models.resource import format_resources
from models.system_state import SystemState


def select_victim(system_state: SystemState) -> Optional[ProcessRecord]:
    """
    Select victim process for termination.

    Returns:
        The head of the ready queue, or None if the queue is empty
    """
    if not system_state.ready_queue:
        return None
    return system_state.ready_queue[0]


def terminate_process(process: ProcessRecord, system_state: SystemState) -> str:
    """
    Terminate a waiting process and release all its resources.

    - Remove it from the ready queue or blocked set
    - Credit its allocation back to the ledger
    - Set state to TERMINATED

    Args:
        process: Process to terminate
        system_state: Current system state

    Returns:
        Message describing what was released

    Raises:
        ValueError: If the process is not waiting in this system
    """
    if process in system_state.ready_queue:
        system_state.ready_queue.remove(process)
    elif process in system_state.blocked:
        system_state.blocked.remove(process)
    else:
        raise ValueError(f"P{process.pid} is not waiting in this system")

    released = process.release_all_resources()
    system_state.ledger.release(released)
    process.state = ProcessState.TERMINATED

    return (
        f"Terminated P{process.pid} (priority={process.priority}, "
        f"holding {format_resources(released)})"
    )


def recover_from_deadlock(system_state: SystemState) -> Tuple[Optional[ProcessRecord], str]:
    """
    Recover from deadlock by terminating the ready-queue head.

    Args:
        system_state: Current system state

    Returns:
        Tuple of (victim or None, action message)
    """
    victim = select_victim(system_state)
    if victim is None:
        return None, "No ready process to terminate"

    return victim, terminate_process(victim, system_state)
