"""
Selection policies for the Multi-Core Scheduler Simulator.

A policy looks at the ready queue and names the next candidate without
removing it; the dispatcher decides whether the candidate can actually run.
"""

from enum import Enum
from typing import Iterable, Optional

from models.process import ProcessRecord


class SchedulingPolicy(Enum):
    """Scheduling algorithms supported by the simulator."""
    ROUND_ROBIN = "round_robin"
    PRIORITY = "priority"
    SHORTEST_JOB_FIRST = "sjf"

    @property
    def display_name(self) -> str:
        return {
            SchedulingPolicy.ROUND_ROBIN: "Round Robin",
            SchedulingPolicy.PRIORITY: "Priority",
            SchedulingPolicy.SHORTEST_JOB_FIRST: "Shortest Job First",
        }[self]

    @classmethod
    def parse(cls, text: str) -> "SchedulingPolicy":
        """
        Parse a policy name ("round_robin", "rr", "priority", "sjf", ...).

        Raises:
            ValueError: If the name is not recognised
        """
        aliases = {
            "rr": cls.ROUND_ROBIN,
            "roundrobin": cls.ROUND_ROBIN,
            "round-robin": cls.ROUND_ROBIN,
            "shortest_job_first": cls.SHORTEST_JOB_FIRST,
            "shortest-job-first": cls.SHORTEST_JOB_FIRST,
        }
        key = text.strip().lower()
        if key in aliases:
            return aliases[key]
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown scheduling policy: {text!r}")


def select_candidate(
    ready_queue: Iterable[ProcessRecord],
    policy: SchedulingPolicy
) -> Optional[ProcessRecord]:
    """
    Choose the next candidate from the ready queue without mutating it.

    - ROUND_ROBIN: head of the queue (FIFO)
    - PRIORITY: highest priority value
    - SHORTEST_JOB_FIRST: lowest remaining time

    Ties under PRIORITY and SHORTEST_JOB_FIRST go to the last equal record
    in queue order.

    Args:
        ready_queue: Ready processes in queue order
        policy: Scheduling policy in force

    Returns:
        The chosen record, or None if the queue is empty
    """
    if policy == SchedulingPolicy.ROUND_ROBIN:
        return next(iter(ready_queue), None)

    best = None
    for process in ready_queue:
        if best is None:
            best = process
        elif policy == SchedulingPolicy.PRIORITY:
            if process.priority >= best.priority:
                best = process
        elif process.remaining_time <= best.remaining_time:
            best = process
    return best
