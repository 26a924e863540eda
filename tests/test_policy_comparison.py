"""
Scenario and Policy Comparison Tests

Runs the bundled scenarios end to end and checks the expected patterns:
- round_robin / multicore / complex: every process completes
- priority: highest-priority processes are dispatched first
- deadlock: atomic grants serialize the contenders, no deadlock is reported
- starvation: an unsatisfiable process is reported at every check
"""

import json
import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import simulator
from algorithms.selection import SchedulingPolicy
from analysis.analyzer import compare_policies, generate_comparison_report
from analysis.events import EventType
from analysis.metrics import format_metrics_report
from models.resource import PRINTER, memory
from utils.logger import SimulatorLogger
from utils.scenario_loader import ScenarioLoadError, load_scenario


# Bundled scenarios directory
SCENARIOS_DIR = project_root / "scenarios"


def _run(name, **kwargs):
    return simulator.run_simulation(
        str(SCENARIOS_DIR / name),
        logger=SimulatorLogger(quiet=True),
        verbose=True,
        **kwargs
    )


@pytest.mark.parametrize("name", ["round_robin.json", "multicore.json", "complex.json"])
def test_scenarios_run_to_completion(name):
    event_log, metrics, stop_reason = _run(name)

    assert stop_reason.startswith("All processes finished")
    assert metrics.completed_processes == metrics.total_processes
    assert metrics.terminated_processes == 0
    assert event_log.count(EventType.DEADLOCK) == 0


def test_priority_scenario_dispatch_order():
    event_log, metrics, _ = _run("priority.json")

    started = [e.process_id for e in event_log.get_events_by_type(EventType.STARTED)]
    assert started[:2] == [3, 1]
    assert started == [3, 1, 4, 2]
    assert metrics.completed_processes == 4


def test_contention_scenario_never_deadlocks():
    event_log, metrics, stop_reason = _run("deadlock.json")

    assert stop_reason.startswith("All processes finished")
    assert metrics.completed_processes == 2
    assert event_log.count(EventType.DEADLOCK) == 0
    assert event_log.count(EventType.BLOCKED) >= 1


def test_starvation_scenario_reports_deadlock_without_victim():
    event_log, metrics, stop_reason = _run("starvation.json")

    assert stop_reason == "Maximum ticks reached (100)"
    assert metrics.completed_processes == 3
    assert metrics.total_processes == 4
    assert event_log.count(EventType.DEADLOCK) == 9
    assert event_log.count(EventType.DEADLOCK_RECOVERED) == 0
    assert all(e.tick % 10 == 0 for e in event_log.get_events_by_type(EventType.DEADLOCK))


def test_policy_override():
    event_log, _, _ = _run("priority.json", policy=SchedulingPolicy.SHORTEST_JOB_FIRST)

    # Equal bursts: the last of the equally short processes wins
    started = [e.process_id for e in event_log.get_events_by_type(EventType.STARTED)]
    assert started[:2] == [4, 3]


def test_compare_policies():
    quiet = SimulatorLogger(quiet=True)
    scenario_path = str(SCENARIOS_DIR / "complex.json")

    results = compare_policies(
        list(SchedulingPolicy),
        scenario_path,
        max_ticks=100,
        run_simulation_func=lambda **kwargs: simulator.run_simulation(logger=quiet, **kwargs)
    )

    assert [r.policy for r in results] == list(SchedulingPolicy)
    assert all(r.finished_all() for r in results)
    assert all(r.deadlock_count == 0 for r in results)
    assert results[0].preemption_count > 0
    assert results[1].preemption_count == 0

    report = generate_comparison_report(results, scenario_path)
    assert "POLICY COMPARISON REPORT" in report
    assert "Policy: ROUND ROBIN" in report


def test_compare_policies_requires_runner():
    with pytest.raises(ValueError):
        compare_policies([SchedulingPolicy.PRIORITY], "unused.json")


def test_metrics_report():
    _, metrics, stop_reason = _run("round_robin.json")

    report = format_metrics_report(metrics, verbose=True, policy="Round Robin", stop_reason=stop_reason)
    assert "Completed Processes: 4" in report
    assert "PER-PROCESS SUMMARY" in report
    assert "Memory(1024MB)" in report
    assert 0 < metrics.get_core_utilization() <= 100
    assert metrics.get_throughput() > 0


def test_load_bundled_scenario():
    scenario = load_scenario(str(SCENARIOS_DIR / "starvation.json"))

    assert scenario.cores == 2
    assert scenario.policy == SchedulingPolicy.ROUND_ROBIN
    assert scenario.resources == {PRINTER: 2, memory(2048): 2}
    assert scenario.num_processes == 4
    assert scenario.last_arrival == 4
    assert [s.pid for s in scenario.arrivals[2]] == [3]
    assert scenario.arrivals[1][0].required == {memory(2048): 2}


@pytest.mark.parametrize("content", [
    "{not json",
    json.dumps({"cores": 1}),
    json.dumps({"cores": "two", "processes": []}),
    json.dumps({"policy": "lottery", "processes": []}),
    json.dumps({"processes": [{"pid": 1, "burst": 2}, {"pid": 1, "burst": 3}]}),
    json.dumps({"processes": [{"pid": 1}]}),
    json.dumps({"processes": [{"pid": 1, "burst": -2}]}),
    json.dumps({"processes": [{"pid": 1, "burst": 2, "requires": [{"kind": "plotter", "amount": 1}]}]}),
    json.dumps({"resources": [{"kind": "printer", "instances": -1}], "processes": []}),
    json.dumps([1, 2]),
    json.dumps({"processes": 5}),
    json.dumps({"processes": [3]}),
    json.dumps({"processes": [], "resources": [3]}),
    json.dumps({"processes": [], "resources": {"printer": 1}}),
    json.dumps({"processes": [{"pid": 1, "burst": 2, "requires": "printer"}]}),
])
def test_invalid_scenarios_are_rejected(tmp_path, content):
    path = tmp_path / "scenario.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ScenarioLoadError):
        load_scenario(str(path))


def test_missing_scenario_file(tmp_path):
    with pytest.raises(ScenarioLoadError):
        load_scenario(str(tmp_path / "missing.json"))


def test_directory_is_not_a_scenario(tmp_path):
    with pytest.raises(ScenarioLoadError):
        load_scenario(str(tmp_path))


@pytest.mark.parametrize("target", ["missing.json", ".", "bad.json"])
def test_main_reports_load_failure(tmp_path, monkeypatch, target):
    (tmp_path / "bad.json").write_text(json.dumps({"processes": 5}), encoding="utf-8")
    path = tmp_path / target if target != "." else tmp_path

    monkeypatch.setattr(sys, "argv", ["simulator.py", "--scenario", str(path)])
    assert simulator.main() == 1


def test_main_runs_scenario(tmp_path, monkeypatch, capsys):
    log_file = tmp_path / "run.log"
    monkeypatch.setattr(sys, "argv", [
        "simulator.py", "--scenario", str(SCENARIOS_DIR / "round_robin.json"),
        "--policy", "sjf", "--log-file", str(log_file)
    ])

    assert simulator.main() == 0
    assert "SIMULATION COMPLETE" in capsys.readouterr().out
    assert "SIMULATION COMPLETE" in log_file.read_text(encoding="utf-8")
