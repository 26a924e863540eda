"""
Policy Comparison for the Multi-Core Scheduler Simulator.

Called by simulator.py --compare-policies to run one scenario under every
scheduling policy. This is a library module, not a standalone CLI tool.
"""

from typing import Callable, List
from dataclasses import dataclass

from algorithms.selection import SchedulingPolicy
from analysis.events import EventType


@dataclass
class PolicyComparisonResult:
    """Results of running a scenario under one policy."""
    policy: SchedulingPolicy
    stop_reason: str
    total_ticks: int
    total_processes: int
    completed_processes: int
    terminated_processes: int
    deadlock_count: int
    preemption_count: int
    block_count: int
    core_utilization: float  # Average % of busy cores
    avg_turnaround: float  # Average ticks from arrival to completion
    throughput: float  # Completed processes / ticks

    @property
    def policy_name(self) -> str:
        return self.policy.display_name

    def finished_all(self) -> bool:
        """Check if every submitted process completed."""
        return self.completed_processes == self.total_processes

    def display(self) -> str:
        """Format results for display."""
        result = f"\nPolicy: {self.policy_name.upper()}\n"
        result += f"  Stop Reason: {self.stop_reason}\n"
        result += (
            f"  Processes: {self.completed_processes}/{self.total_processes} completed, "
            f"{self.terminated_processes} terminated\n"
        )
        result += f"  Ticks: {self.total_ticks}\n"
        result += f"  Deadlocks detected: {self.deadlock_count}\n"
        result += f"  Preemptions: {self.preemption_count}, Blocks: {self.block_count}\n"
        result += f"  Core Utilization: {self.core_utilization:.2f}%\n"
        result += f"  Avg Turnaround: {self.avg_turnaround:.2f} ticks\n"
        result += f"  System Throughput: {self.throughput:.4f} processes/tick"

        return result


def analyze_policy(
    policy: SchedulingPolicy,
    scenario_path: str,
    max_ticks: int = 100,
    run_simulation_func: Callable = None
) -> PolicyComparisonResult:
    """
    Run a scenario under one policy and collect its metrics.

    Args:
        policy: Policy to test
        scenario_path: Path to scenario JSON file
        max_ticks: Upper bound on ticks simulated
        run_simulation_func: Function to run simulation (injected from simulator.py)

    Returns:
        PolicyComparisonResult for this policy
    """
    if run_simulation_func is None:
        raise ValueError("run_simulation_func must be provided")

    event_log, metrics, stop_reason = run_simulation_func(
        scenario_path=scenario_path,
        policy=policy,
        max_ticks=max_ticks
    )

    return PolicyComparisonResult(
        policy=policy,
        stop_reason=stop_reason,
        total_ticks=metrics.total_ticks,
        total_processes=metrics.total_processes,
        completed_processes=metrics.completed_processes,
        terminated_processes=metrics.terminated_processes,
        deadlock_count=event_log.count(EventType.DEADLOCK),
        preemption_count=metrics.preemption_count,
        block_count=metrics.block_count,
        core_utilization=metrics.get_core_utilization(),
        avg_turnaround=metrics.get_avg_turnaround(),
        throughput=metrics.get_throughput()
    )


def compare_policies(
    policies: List[SchedulingPolicy],
    scenario_path: str,
    max_ticks: int = 100,
    run_simulation_func: Callable = None
) -> List[PolicyComparisonResult]:
    """
    Compare multiple policies on the same scenario.

    Args:
        policies: Policies to compare
        scenario_path: Path to scenario JSON file
        max_ticks: Upper bound on ticks per run
        run_simulation_func: Function to run simulation (injected from simulator.py)

    Returns:
        One result per policy, in the order given
    """
    return [
        analyze_policy(policy, scenario_path, max_ticks, run_simulation_func)
        for policy in policies
    ]


def generate_comparison_report(
    results: List[PolicyComparisonResult],
    scenario_path: str
) -> str:
    """
    Generate formatted comparison report.

    Args:
        results: List of policy comparison results
        scenario_path: Path to scenario file

    Returns:
        Formatted string report
    """
    report = "\n" + "="*70 + "\n"
    report += "POLICY COMPARISON REPORT\n"
    report += "="*70 + "\n"
    report += f"Scenario: {scenario_path}\n"
    report += "="*70 + "\n"

    for result in results:
        report += result.display()
        report += "\n" + "-"*70

    report += "\n\nKEY INSIGHTS:\n"
    report += "-"*70 + "\n"

    def format_best(metric_name: str, results_list: List[PolicyComparisonResult],
                    key_func, format_func, higher_is_better: bool = True):
        """Format best metric, handling ties. Returns empty string if all policies tied."""
        if higher_is_better:
            target_value = max(key_func(r) for r in results_list)
        else:
            target_value = min(key_func(r) for r in results_list)

        winners = [r for r in results_list if key_func(r) == target_value]

        if len(winners) == len(results_list):
            return ""

        if len(winners) == 1:
            return f"  {metric_name}: {winners[0].policy_name.upper()} ({format_func(target_value)})\n"
        else:
            names = ", ".join(w.policy_name.upper() for w in winners)
            return f"  {metric_name}: {names} (tie at {format_func(target_value)})\n"

    if len(results) > 1:
        insights = [
            format_best(
                "Best System Throughput",
                results,
                lambda r: r.throughput,
                lambda v: f"{v:.4f} processes/tick",
                higher_is_better=True
            ),
            format_best(
                "Lowest Average Turnaround",
                results,
                lambda r: r.avg_turnaround,
                lambda v: f"{v:.2f} ticks",
                higher_is_better=False
            ),
            format_best(
                "Best Core Utilization",
                results,
                lambda r: r.core_utilization,
                lambda v: f"{v:.2f}%",
                higher_is_better=True
            ),
            format_best(
                "Fewest Deadlocks",
                results,
                lambda r: r.deadlock_count,
                lambda v: f"{v}",
                higher_is_better=False
            ),
        ]
        insights = [i for i in insights if i]

        if insights:
            for insight in insights:
                report += insight
        else:
            report += "  All policies showed identical performance (complete tie across all metrics).\n"

    report += "\n" + "="*70 + "\n"

    return report
