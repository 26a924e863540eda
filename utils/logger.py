"""
Logger utility for the Multi-Core Scheduler Simulator.

Provides tick-by-tick logging with verbosity levels.
"""

from typing import List, Optional
from datetime import datetime


class SimulatorLogger:
    """
    Logger for simulation events and decisions.

    Format: "[T=X] Core C: PY started (resources: Printer:1)"
    """

    def __init__(self, verbose: bool = False, log_file: Optional[str] = None, quiet: bool = False):
        """
        Initialize logger.

        Args:
            verbose: Enable verbose output
            log_file: Optional file path for logging
            quiet: Suppress console output (file output is kept)
        """
        self.verbose = verbose
        self.quiet = quiet
        self.log_file = log_file
        self.file_handle = None

        if self.log_file:
            self.file_handle = open(self.log_file, 'w', encoding='utf-8')
            self._write_header()

    def _write_header(self) -> None:
        """Write log file header."""
        if self.file_handle:
            timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            self.file_handle.write(f"Simulation Log - {timestamp}\n")
            self.file_handle.write("="*60 + "\n\n")

    def log(self, message: str, level: str = "info") -> None:
        """
        Log a message.

        Args:
            message: Message to log
            level: Log level (info, debug, warning, error)
        """
        if level == "debug" and not self.verbose:
            return

        formatted = self._format_message(message, level)

        # Console output
        if not self.quiet:
            print(formatted)

        # File output
        if self.file_handle:
            self.file_handle.write(formatted + "\n")
            self.file_handle.flush()

    def _format_message(self, message: str, level: str) -> str:
        """Format message with level prefix."""
        if level == "error":
            return f"[ERROR] {message}"
        elif level == "warning":
            return f"[WARNING] {message}"
        elif level == "debug":
            return f"[DEBUG] {message}"
        else:
            return message

    def log_tick(self, tick: int, message: str, level: str = "info") -> None:
        """Log a message prefixed with the tick."""
        self.log(f"[T={tick}] {message}", level)

    def log_event(self, event) -> None:
        """Log a SimulationEvent using its own formatting."""
        self.log(str(event))

    def log_deadlock(self, tick: int, stuck_pids: List[int]) -> None:
        """
        Log deadlock detection.

        Args:
            tick: Current simulation tick
            stuck_pids: PIDs that could not finish in the safety check
        """
        pids_str = ", ".join(f"P{pid}" for pid in stuck_pids)
        self.log_tick(tick, f"[!] Deadlock detected - unfinishable processes: [{pids_str}]", "warning")

    def log_recovery(self, tick: int, message: str) -> None:
        """
        Log recovery action.

        Args:
            tick: Current simulation tick
            message: Description of the action taken
        """
        self.log_tick(tick, f"[!] RECOVERY - {message}", "warning")

    def log_system_state(self, tick: int, state_str: str) -> None:
        """
        Log system state snapshot.

        Args:
            tick: Current simulation tick
            state_str: Formatted system state
        """
        if self.verbose:
            self.log_tick(tick, f"System State:\n{state_str}", "debug")

    def close(self) -> None:
        """Close log file if open."""
        if self.file_handle:
            self.file_handle.close()
            self.file_handle = None

    def __del__(self):
        """Cleanup on destruction."""
        self.close()
