"""
Resource model for the Multi-Core Scheduler Simulator.

Defines the resource kinds a process can demand and the ledger that tracks
how many instances of each kind are currently unreserved.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Mapping, Optional

import numpy as np


class ResourceType(Enum):
    """Variants of shared resource in the simulation."""
    PRINTER = "PRINTER"
    SCANNER = "SCANNER"
    DISK = "DISK"
    MEMORY = "MEMORY"


_MEMORY_PATTERN = re.compile(r"^memory\s*[:(]\s*(\d+)\s*(?:mb)?\s*\)?$", re.IGNORECASE)


@dataclass(frozen=True)
class ResourceKind:
    """
    A resource kind, keyed by value.

    Memory carries its capacity as part of the key, so Memory(1024) and
    Memory(2048) are two different kinds with two separate pools.

    Attributes:
        resource_type: Variant of the resource
        capacity_mb: Block size in MB (MEMORY only)
    """
    resource_type: ResourceType
    capacity_mb: Optional[int] = None

    def __post_init__(self):
        """Validate the payload against the variant."""
        if self.resource_type == ResourceType.MEMORY:
            if self.capacity_mb is None or self.capacity_mb <= 0:
                raise ValueError("Memory resource requires a positive capacity_mb")
        elif self.capacity_mb is not None:
            raise ValueError(f"{self.resource_type.value} does not take a capacity")

    @classmethod
    def parse(cls, text: str) -> "ResourceKind":
        """
        Parse a resource kind from its text form.

        Accepted forms: "printer", "scanner", "disk", "memory:1024",
        "Memory(1024)", "Memory(1024MB)".

        Raises:
            ValueError: If the text names no known kind
        """
        cleaned = text.strip()
        match = _MEMORY_PATTERN.match(cleaned)
        if match:
            return cls(ResourceType.MEMORY, int(match.group(1)))
        try:
            resource_type = ResourceType(cleaned.upper())
        except ValueError:
            raise ValueError(f"Unknown resource kind: {text!r}")
        return cls(resource_type)

    def __str__(self) -> str:
        if self.resource_type == ResourceType.MEMORY:
            return f"Memory({self.capacity_mb}MB)"
        return self.resource_type.value.capitalize()


PRINTER = ResourceKind(ResourceType.PRINTER)
SCANNER = ResourceKind(ResourceType.SCANNER)
DISK = ResourceKind(ResourceType.DISK)


def memory(capacity_mb: int) -> ResourceKind:
    """Memory kind for blocks of the given size."""
    return ResourceKind(ResourceType.MEMORY, capacity_mb)


def default_capacities() -> Dict[ResourceKind, int]:
    """Ledger contents used when a simulation is built without explicit resources."""
    return {
        PRINTER: 2,
        SCANNER: 1,
        DISK: 3,
        memory(1024): 8,
    }


def format_resources(resources: Mapping[ResourceKind, int]) -> str:
    """Render a resource mapping as "Printer:1, Memory(1024MB):2"."""
    parts = [f"{kind}:{amount}" for kind, amount in resources.items() if amount > 0]
    return ", ".join(parts) if parts else "none"


class ResourceLedger:
    """
    Authoritative count of unreserved instances per resource kind.

    Invariant:
        0 <= available(kind) <= capacity(kind) for every known kind
    """

    def __init__(self, capacities: Mapping[ResourceKind, int]):
        """
        Initialize the ledger with every instance available.

        Args:
            capacities: Total instances per resource kind

        Raises:
            ValueError: If a capacity is negative
        """
        for kind, total in capacities.items():
            if total < 0:
                raise ValueError(f"{kind}: capacity cannot be negative ({total})")
        self._capacity: Dict[ResourceKind, int] = dict(capacities)
        self._available: Dict[ResourceKind, int] = dict(capacities)

    @property
    def kinds(self) -> List[ResourceKind]:
        """Resource kinds known to the ledger, in declaration order."""
        return list(self._capacity)

    def capacity(self, kind: ResourceKind) -> int:
        """Total instances of a kind (0 if unknown)."""
        return self._capacity.get(kind, 0)

    def available(self, kind: ResourceKind) -> int:
        """Unreserved instances of a kind (0 if unknown)."""
        return self._available.get(kind, 0)

    def can_satisfy(self, request: Mapping[ResourceKind, int]) -> bool:
        """
        Check whether every entry of a request fits in current availability.

        Feasibility only: nothing is reserved.
        """
        return all(amount <= self.available(kind) for kind, amount in request.items())

    def try_reserve(self, request: Mapping[ResourceKind, int]) -> bool:
        """
        Reserve a whole request or nothing at all.

        The first pass checks every entry; only when all of them fit does the
        second pass debit them.

        Args:
            request: Instances wanted per resource kind

        Returns:
            True if the request was reserved, False if nothing changed
        """
        if not self.can_satisfy(request):
            return False

        for kind, amount in request.items():
            if amount > 0:
                self._available[kind] -= amount
        return True

    def release(self, allocation: Mapping[ResourceKind, int]) -> None:
        """
        Credit back every entry of an allocation.

        Args:
            allocation: Instances held per resource kind (may be empty)

        Raises:
            ValueError: If a release would exceed the kind's capacity
        """
        for kind, amount in allocation.items():
            if amount <= 0:
                continue
            if kind not in self._capacity:
                raise ValueError(f"Cannot release {amount} of {kind}: unknown resource kind")
            if self._available[kind] + amount > self._capacity[kind]:
                raise ValueError(
                    f"{kind}: release of {amount} would exceed "
                    f"capacity ({self._capacity[kind]})"
                )
            self._available[kind] += amount

    def snapshot(self) -> Dict[ResourceKind, int]:
        """Copy of the available counts."""
        return dict(self._available)

    def capacities(self) -> Dict[ResourceKind, int]:
        """Copy of the total capacities."""
        return dict(self._capacity)

    def available_vector(self, kinds: List[ResourceKind]) -> np.ndarray:
        """Available counts ordered by the given kinds [R]."""
        return np.array([self.available(kind) for kind in kinds], dtype=int)

    def capacity_vector(self, kinds: List[ResourceKind]) -> np.ndarray:
        """Total capacities ordered by the given kinds [R]."""
        return np.array([self.capacity(kind) for kind in kinds], dtype=int)

    def __repr__(self) -> str:
        return f"ResourceLedger(available={{{format_resources(self._available)}}})"
