"""Typed records passed between the collector pool, the aggregator and the renderers."""
from __future__ import annotations
from dataclasses import dataclass, fields
from enum import Enum
from typing import Dict, Any, FrozenSet


class HealthStatus(str, Enum):
    READY = 'Ready'
    NOT_READY = 'NotReady'
    UNKNOWN = 'Unknown'


class Pressure(str, Enum):
    MEMORY = 'MemoryPressure'
    DISK = 'DiskPressure'
    PID = 'PIDPressure'
    NETWORK = 'NetworkUnavailable'

    @property
    def short(self) -> str:
        return _PRESSURE_SHORT[self]


_PRESSURE_SHORT = {
    Pressure.MEMORY: 'Mem',
    Pressure.DISK: 'Disk',
    Pressure.PID: 'PID',
    Pressure.NETWORK: 'Net',
}

STATUS_OK = 0
STATUS_NOT_READY = 1
STATUS_PRESSURE = 2


@dataclass(frozen=True)
class NodeRecord:
    name: str
    health: HealthStatus = HealthStatus.UNKNOWN
    pressures: FrozenSet[Pressure] = frozenset()
    status_code: int = STATUS_NOT_READY
    # cores
    cpu_requested: float = 0.0
    cpu_limited: float = 0.0
    cpu_used: float = 0.0
    cpu_capacity: float = 0.0
    # GiB
    mem_requested: float = 0.0
    mem_limited: float = 0.0
    mem_used: float = 0.0
    mem_capacity: float = 0.0
    disk_used: float = 0.0
    disk_capacity: float = 0.0
    disk_requested: float = 0.0
    # percentages
    cpu_use_pct: float = 0.0
    mem_use_pct: float = 0.0
    disk_use_pct: float = 0.0
    cpu_req_pct: float = 0.0
    mem_req_pct: float = 0.0
    pods_total: int = 0
    pods_ready: int = 0

    @classmethod
    def unknown(cls, name: str) -> 'NodeRecord':
        """Record emitted when nothing could be learned about a node."""
        return cls(name=name)

    @property
    def status_text(self) -> str:
        if not self.pressures:
            return self.health.value
        # fixed display order
        shorts = [p.short for p in Pressure if p in self.pressures]
        return f"{self.health.value}({','.join(shorts)})"

    @property
    def pods_display(self) -> str:
        if self.pods_total == 0:
            return '0/0'
        return f'{self.pods_ready}/{self.pods_total}'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'status': self.status_text,
            'status_code': self.status_code,
            'pods': self.pods_total,
            'pods_ready': self.pods_ready,
            'cpu_req': self.cpu_requested,
            'cpu_lim': self.cpu_limited,
            'cpu_use': self.cpu_used,
            'cpu_pct': self.cpu_use_pct,
            'cpu_total': self.cpu_capacity,
            'cpu_req_pct': self.cpu_req_pct,
            'mem_req_gi': self.mem_requested,
            'mem_lim_gi': self.mem_limited,
            'mem_use_gi': self.mem_used,
            'mem_pct': self.mem_use_pct,
            'mem_total_gi': self.mem_capacity,
            'mem_req_pct': self.mem_req_pct,
            'disk_use_gi': self.disk_used,
            'disk_cap_gi': self.disk_capacity,
            'disk_pct': self.disk_use_pct,
            'disk_req_gi': self.disk_requested,
        }


# Raw (non-percentage) fields summed into the cluster totals.
TOTALLED_FIELDS = (
    'cpu_requested', 'cpu_limited', 'cpu_used', 'cpu_capacity',
    'mem_requested', 'mem_limited', 'mem_used', 'mem_capacity',
    'disk_used', 'disk_capacity', 'disk_requested',
    'pods_total', 'pods_ready',
)


@dataclass
class ClusterTotals:
    node_count: int = 0
    cpu_requested: float = 0.0
    cpu_limited: float = 0.0
    cpu_used: float = 0.0
    cpu_capacity: float = 0.0
    mem_requested: float = 0.0
    mem_limited: float = 0.0
    mem_used: float = 0.0
    mem_capacity: float = 0.0
    disk_used: float = 0.0
    disk_capacity: float = 0.0
    disk_requested: float = 0.0
    pods_total: int = 0
    pods_ready: int = 0

    def add(self, record: NodeRecord) -> None:
        for name in TOTALLED_FIELDS:
            setattr(self, name, getattr(self, name) + getattr(record, name))
        self.node_count += 1

    @property
    def pods_display(self) -> str:
        if self.pods_total == 0:
            return '0/0'
        return f'{self.pods_ready}/{self.pods_total}'

    def to_dict(self) -> Dict[str, Any]:
        out = {f.name: getattr(self, f.name) for f in fields(self)}
        for key, value in out.items():
            if isinstance(value, float):
                out[key] = round(value, 3)
        return out
