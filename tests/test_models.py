"""
Core Data Model Tests

Tests ResourceKind, ResourceLedger, ProcessSpec/ProcessRecord and SystemState.
"""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from algorithms.selection import SchedulingPolicy
from models.core import CoreSlot
from models.process import ProcessRecord, ProcessSpec, ProcessState
from models.resource import (
    DISK,
    PRINTER,
    SCANNER,
    ResourceKind,
    ResourceLedger,
    ResourceType,
    default_capacities,
    memory,
)
from models.system_state import ConfigurationError, SystemState


def test_memory_kinds_are_keyed_by_capacity():
    """Memory(1024) and Memory(2048) are separate pools."""
    ledger = ResourceLedger({memory(1024): 8, memory(2048): 0})

    assert memory(1024) != memory(2048)
    assert memory(1024) == ResourceKind(ResourceType.MEMORY, 1024)
    assert not ledger.try_reserve({memory(2048): 1}), "2048MB pool is empty"
    assert ledger.try_reserve({memory(1024): 1})
    assert ledger.available(memory(1024)) == 7
    assert ledger.available(memory(2048)) == 0


def test_resource_kind_validation_and_parsing():
    with pytest.raises(ValueError):
        ResourceKind(ResourceType.MEMORY)
    with pytest.raises(ValueError):
        ResourceKind(ResourceType.PRINTER, 512)

    assert ResourceKind.parse("printer") == PRINTER
    assert ResourceKind.parse(" Scanner ") == SCANNER
    assert ResourceKind.parse("memory:1024") == memory(1024)
    assert ResourceKind.parse("Memory(2048)") == memory(2048)
    assert ResourceKind.parse("Memory(512MB)") == memory(512)
    with pytest.raises(ValueError):
        ResourceKind.parse("plotter")

    assert str(memory(1024)) == "Memory(1024MB)"
    assert str(DISK) == "Disk"


def test_ledger_reservation_is_all_or_nothing():
    """A failed reservation debits nothing."""
    ledger = ResourceLedger({PRINTER: 1, SCANNER: 0, DISK: 3})

    assert not ledger.try_reserve({PRINTER: 1, DISK: 2, SCANNER: 1})
    assert ledger.snapshot() == {PRINTER: 1, SCANNER: 0, DISK: 3}

    assert ledger.try_reserve({PRINTER: 1, DISK: 2})
    assert ledger.snapshot() == {PRINTER: 0, SCANNER: 0, DISK: 1}


def test_ledger_release():
    ledger = ResourceLedger({PRINTER: 2, DISK: 3})
    assert ledger.try_reserve({PRINTER: 2, DISK: 1})

    ledger.release({})
    assert ledger.available(PRINTER) == 0

    ledger.release({PRINTER: 2, DISK: 1})
    assert ledger.snapshot() == {PRINTER: 2, DISK: 3}

    with pytest.raises(ValueError):
        ledger.release({PRINTER: 1})
    with pytest.raises(ValueError):
        ledger.release({SCANNER: 1})


def test_ledger_unknown_kind_is_never_satisfiable():
    ledger = ResourceLedger({PRINTER: 1})

    assert ledger.available(SCANNER) == 0
    assert not ledger.can_satisfy({SCANNER: 1})
    assert ledger.can_satisfy({SCANNER: 0})
    assert ledger.try_reserve({SCANNER: 0, PRINTER: 1})
    assert ledger.available(PRINTER) == 0


def test_ledger_snapshot_is_a_copy():
    ledger = ResourceLedger({PRINTER: 2})
    snapshot = ledger.snapshot()
    snapshot[PRINTER] = 0
    assert ledger.available(PRINTER) == 2

    with pytest.raises(ValueError):
        ResourceLedger({PRINTER: -1})


def test_default_capacities():
    assert default_capacities() == {PRINTER: 2, SCANNER: 1, DISK: 3, memory(1024): 8}


def test_process_spec_and_record():
    spec = ProcessSpec(pid=1, total_time=100, priority=5).requires(PRINTER, 1).requires(memory(256), 2)

    assert spec.required == {PRINTER: 1, memory(256): 2}

    record = ProcessRecord.from_spec(spec, arrival_tick=7)
    assert record.pid == 1
    assert record.priority == 5
    assert record.total_time == 100
    assert record.remaining_time == 100
    assert record.arrival_tick == 7
    assert record.state == ProcessState.READY
    assert record.allocated == {}

    record.grant()
    assert record.allocated == {PRINTER: 1, memory(256): 2}
    assert record.allocation_within_requirement()

    released = record.release_all_resources()
    assert released == {PRINTER: 1, memory(256): 2}
    assert record.allocated == {}


def test_process_validation():
    with pytest.raises(ValueError):
        ProcessSpec(pid=0, total_time=3)
    with pytest.raises(ValueError):
        ProcessSpec(pid=1, total_time=-1)
    with pytest.raises(ValueError):
        ProcessSpec(pid=1, total_time=3, required={PRINTER: -1})
    with pytest.raises(ValueError):
        ProcessRecord(pid=1, priority=0, total_time=3, remaining_time=4, arrival_tick=0)


def test_allocation_subset_check():
    record = ProcessRecord(
        pid=1, priority=0, total_time=3, remaining_time=3, arrival_tick=0,
        required={PRINTER: 1}
    )
    record.allocated = {PRINTER: 2}
    assert not record.allocation_within_requirement()
    record.allocated = {SCANNER: 1}
    assert not record.allocation_within_requirement()


def test_core_slot():
    core = CoreSlot(core_id=0)
    record = ProcessRecord(pid=1, priority=0, total_time=3, remaining_time=3, arrival_tick=0)

    assert core.is_idle
    core.assign(record)
    assert not core.is_idle
    with pytest.raises(ValueError):
        core.assign(record)
    assert core.vacate() is record
    assert core.is_idle


def test_system_state_configuration_errors():
    with pytest.raises(ConfigurationError):
        SystemState.create(0, 2, SchedulingPolicy.ROUND_ROBIN)
    with pytest.raises(ConfigurationError):
        SystemState.create(2, 0, SchedulingPolicy.ROUND_ROBIN)
    with pytest.raises(ConfigurationError):
        SystemState.create(2, 2, SchedulingPolicy.ROUND_ROBIN, {PRINTER: -1})

    # Quantum is ignored outside Round Robin
    state = SystemState.create(2, 0, SchedulingPolicy.PRIORITY)
    assert state.num_cores == 2
    assert state.ledger.snapshot() == default_capacities()


def test_system_state_matrices():
    state = SystemState.create(1, 1, SchedulingPolicy.ROUND_ROBIN, {PRINTER: 2, DISK: 3})
    p1 = ProcessRecord(pid=1, priority=0, total_time=3, remaining_time=3, arrival_tick=0,
                       required={PRINTER: 1, DISK: 2})
    p2 = ProcessRecord(pid=2, priority=0, total_time=3, remaining_time=3, arrival_tick=0,
                       required={SCANNER: 1})
    state.ready_queue.extend([p1, p2])

    kinds = state.resource_kinds()
    assert kinds == [PRINTER, DISK, SCANNER], "unknown kinds are appended after ledger kinds"

    required = state.requirement_matrix([p1, p2], kinds)
    assert required.shape == (2, 3)
    assert np.array_equal(required, np.array([[1, 2, 0], [0, 0, 1]]))
    assert not state.allocation_matrix([p1, p2], kinds).any()


def test_resource_conservation_assertion():
    state = SystemState.create(1, 1, SchedulingPolicy.ROUND_ROBIN, {PRINTER: 2})
    record = ProcessRecord(pid=1, priority=0, total_time=3, remaining_time=3, arrival_tick=0,
                           required={PRINTER: 1})
    state.ready_queue.append(record)
    state.assert_resource_conservation("initially")

    # Ledger debited without anyone holding the instance
    assert state.ledger.try_reserve({PRINTER: 1})
    with pytest.raises(AssertionError):
        state.assert_resource_conservation("after a leaked reservation")

    record.grant()
    state.assert_resource_conservation("after granting P1")


def test_snapshot_is_detached():
    state = SystemState.create(2, 3, SchedulingPolicy.ROUND_ROBIN, {PRINTER: 1})
    record = ProcessRecord(pid=1, priority=2, total_time=3, remaining_time=3, arrival_tick=0)
    state.ready_queue.append(record)

    snapshot = state.snapshot()
    assert snapshot.tick == 0
    assert snapshot.ready_pids == [1]
    assert snapshot.running_pids == []
    assert [c.idle_ticks for c in snapshot.cores] == [0, 0]

    snapshot.available[PRINTER] = 0
    record.remaining_time = 1
    assert state.ledger.available(PRINTER) == 1
    assert snapshot.ready[0].remaining_time == 3

    display = state.display()
    assert "P1" in display
    assert "Printer" in display
