"""
Scenario Loader for the Multi-Core Scheduler Simulator.

Loads and validates JSON scenario files: the machine configuration (cores,
quantum, policy, resource capacities) and a scripted workload of processes
with arrival ticks.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from algorithms.selection import SchedulingPolicy
from models.process import ProcessSpec
from models.resource import ResourceKind


class ScenarioLoadError(Exception):
    """Exception raised when scenario file cannot be loaded or is invalid."""
    pass


@dataclass
class Scenario:
    """
    A loaded scenario.

    Attributes:
        description: Free-text description
        cores: Number of cores
        quantum: Round Robin quantum
        policy: Scheduling policy
        resources: Capacity per resource kind (None = default set)
        arrivals: Process specs grouped by the tick they are submitted at
    """
    description: str
    cores: int
    quantum: int
    policy: SchedulingPolicy
    resources: Optional[Dict[ResourceKind, int]] = None
    arrivals: Dict[int, List[ProcessSpec]] = field(default_factory=dict)

    @property
    def num_processes(self) -> int:
        return sum(len(specs) for specs in self.arrivals.values())

    @property
    def last_arrival(self) -> int:
        return max(self.arrivals) if self.arrivals else 0


def load_scenario(file_path: str) -> Scenario:
    """
    Load scenario from JSON file.

    Args:
        file_path: Path to scenario JSON file

    Returns:
        Scenario with configuration and arrivals

    Raises:
        ScenarioLoadError: If file cannot be loaded or is invalid
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError:
        raise ScenarioLoadError(f"Scenario file not found: {file_path}")
    except OSError as e:
        raise ScenarioLoadError(f"Cannot read scenario file {file_path}: {e}")
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ScenarioLoadError(f"Invalid JSON in scenario file: {e}")

    return parse_scenario(data)


def parse_scenario(data: Dict[str, Any]) -> Scenario:
    """
    Build a Scenario from already-decoded JSON data.

    Raises:
        ScenarioLoadError: If the data is invalid
    """
    if not isinstance(data, dict):
        raise ScenarioLoadError("Scenario must be a JSON object")
    if 'processes' not in data:
        raise ScenarioLoadError("Scenario missing 'processes' field")

    cores = data.get('cores', 1)
    quantum = data.get('quantum', 1)
    if not isinstance(cores, int) or not isinstance(quantum, int):
        raise ScenarioLoadError("'cores' and 'quantum' must be integers")

    try:
        policy = SchedulingPolicy.parse(data.get('policy', 'round_robin'))
    except (AttributeError, ValueError) as e:
        raise ScenarioLoadError(str(e))

    resources = None
    if 'resources' in data:
        resources = _load_resources(_object_list(data['resources'], "'resources'"))

    arrivals: Dict[int, List[ProcessSpec]] = {}
    seen_pids = set()
    for proc_data in _object_list(data['processes'], "'processes'"):
        spec, arrival_tick = _load_process(proc_data)
        if spec.pid in seen_pids:
            raise ScenarioLoadError(f"Duplicate process id: {spec.pid}")
        seen_pids.add(spec.pid)
        arrivals.setdefault(arrival_tick, []).append(spec)

    return Scenario(
        description=data.get('description', ''),
        cores=cores,
        quantum=quantum,
        policy=policy,
        resources=resources,
        arrivals=dict(sorted(arrivals.items())),
    )


def _load_resources(resource_data: List[Dict]) -> Dict[ResourceKind, int]:
    """
    Load resource capacities from scenario data.

    Args:
        resource_data: List of {"kind": ..., "instances": ...} dictionaries

    Returns:
        Capacity per resource kind, in file order
    """
    resources = {}

    for res in resource_data:
        if 'kind' not in res:
            raise ScenarioLoadError("Resource missing 'kind' field")
        if 'instances' not in res:
            raise ScenarioLoadError(f"Resource {res['kind']} missing 'instances'")

        kind = _parse_kind(res['kind'])
        if kind in resources:
            raise ScenarioLoadError(f"Resource {kind} declared twice")
        if not isinstance(res['instances'], int) or res['instances'] < 0:
            raise ScenarioLoadError(f"Resource {kind}: 'instances' must be a non-negative integer")
        resources[kind] = res['instances']

    return resources


def _load_process(proc_data: Dict) -> tuple:
    """
    Load a single process from scenario data.

    Args:
        proc_data: Process dictionary from scenario

    Returns:
        Tuple of (ProcessSpec, arrival tick)
    """
    required_fields = ['pid', 'burst']
    for field_name in required_fields:
        if field_name not in proc_data:
            raise ScenarioLoadError(f"Process missing required field: {field_name}")

    pid = proc_data['pid']
    arrival_tick = proc_data.get('arrival_tick', 0)
    if not isinstance(arrival_tick, int) or arrival_tick < 0:
        raise ScenarioLoadError(f"Process {pid}: 'arrival_tick' must be a non-negative integer")

    required = {}
    for req in _object_list(proc_data.get('requires', []), f"Process {pid}: 'requires'"):
        if 'kind' not in req or 'amount' not in req:
            raise ScenarioLoadError(f"Process {pid}: requirement needs 'kind' and 'amount'")
        required[_parse_kind(req['kind'])] = req['amount']

    try:
        spec = ProcessSpec(
            pid=pid,
            total_time=proc_data['burst'],
            priority=proc_data.get('priority', 0),
            required=required,
        )
    except (TypeError, ValueError) as e:
        raise ScenarioLoadError(f"Process {pid}: {e}")

    return spec, arrival_tick


def _object_list(value: Any, name: str) -> List[Dict]:
    """Check that a scenario field is a list of JSON objects."""
    if not isinstance(value, list) or not all(isinstance(item, dict) for item in value):
        raise ScenarioLoadError(f"{name} must be a list of objects")
    return value


def _parse_kind(text: str) -> ResourceKind:
    try:
        return ResourceKind.parse(text)
    except (AttributeError, ValueError) as e:
        raise ScenarioLoadError(str(e))
