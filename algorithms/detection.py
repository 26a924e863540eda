"""
Deadlock Detection Algorithm for the Multi-Core Scheduler Simulator.

Implements a Banker's-style Work/Finish safety check over every process the
system knows about.
"""

import numpy as np
from typing import List, Tuple

from models.system_state import SystemState


DEADLOCK_CHECK_INTERVAL = 10


def detect_deadlock(system_state: SystemState) -> Tuple[bool, List[int]]:
    """
    Detect deadlock using the Work/Finish algorithm.

    Algorithm:
    1. Initialize Work = Available.copy()
    2. Running processes hold their whole requirement (grants are atomic):
       mark them finished and add their allocation to Work
    3. Find a waiting process i where Finish[i] == False and
       Required[i] <= Work (element-wise)
    4. If found: Finish[i] = True, Work += Allocation[i], repeat step 3
    5. Deadlock exists if any Finish[i] == False

    The test uses the full requirement, not Need = Required - Allocation:
    a process asks for its whole requirement as one set and never holds a
    part of it while waiting for the rest.

    The system state is not modified, so repeated calls between ticks give
    the same answer.

    Time Complexity: O(P²×R) where P = processes, R = resource types

    Args:
        system_state: Current global system state

    Returns:
        Tuple of (deadlock_exists, list of PIDs that could not finish)
    """
    running = system_state.running()
    waiting = system_state.waiting()
    processes = running + waiting
    if not processes:
        return False, []

    kinds = system_state.resource_kinds(processes)
    required = system_state.requirement_matrix(processes, kinds)
    allocation = system_state.allocation_matrix(processes, kinds)

    # Step 1-2: Initialize Work and credit running processes
    work = system_state.ledger.available_vector(kinds)
    finish = np.zeros(len(processes), dtype=bool)
    for i in range(len(running)):
        work += allocation[i]
        finish[i] = True

    # Step 3-4: Iteratively find processes that can complete
    found_progress = True
    while found_progress:
        found_progress = False

        for i in range(len(processes)):
            if finish[i]:
                continue

            if np.all(required[i] <= work):
                work += allocation[i]
                finish[i] = True
                found_progress = True

    # Step 5: Every process still unfinished is stuck
    stuck_pids = [processes[i].pid for i in range(len(processes)) if not finish[i]]

    return len(stuck_pids) > 0, stuck_pids


def should_run_detection(current_tick: int, detect_interval: int = DEADLOCK_CHECK_INTERVAL) -> bool:
    """
    Determine if detection should run at current tick.

    Args:
        current_tick: Current simulation tick
        detect_interval: Ticks between detection checks

    Returns:
        True if detection should run
    """
    return current_tick % detect_interval == 0
