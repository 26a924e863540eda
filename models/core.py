"""
Core model for the Multi-Core Scheduler Simulator.
"""

from dataclasses import dataclass
from typing import Optional

from models.process import ProcessRecord


@dataclass
class CoreSlot:
    """
    One execution unit; holds at most one running process.

    Attributes:
        core_id: Index of the core
        current: Process currently running, if any
        idle_ticks: Ticks that ended with this core empty
    """
    core_id: int
    current: Optional[ProcessRecord] = None
    idle_ticks: int = 0

    @property
    def is_idle(self) -> bool:
        return self.current is None

    def assign(self, process: ProcessRecord) -> None:
        if self.current is not None:
            raise ValueError(
                f"Core {self.core_id} is already running P{self.current.pid}"
            )
        self.current = process

    def vacate(self) -> Optional[ProcessRecord]:
        """Remove and return the running process."""
        process, self.current = self.current, None
        return process
