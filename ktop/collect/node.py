from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional, Tuple, FrozenSet
from ..kube.allocation import AllocationReport
from ..kube.client import QueryError
from ..models import NodeRecord, HealthStatus, Pressure, STATUS_OK, STATUS_NOT_READY, STATUS_PRESSURE
from ..resources.fallback import FallbackCalculator
from ..resources.quantity import (
    normalize, storage_to_gib, cpu_to_cores, percent, is_kib_suffixed, is_plain_integer,
)
from ..util import logging as log


@dataclass(frozen=True)
class UsageSample:
    cpu_cores: float = 0.0
    memory_gib: float = 0.0
    disk_gib: Optional[float] = None

    @classmethod
    def from_metrics(cls, item: Dict[str, Any]) -> 'UsageSample':
        usage = item.get('usage') or {}
        disk_raw = usage.get('ephemeral-storage')
        return cls(
            cpu_cores=cpu_to_cores(usage.get('cpu')),
            memory_gib=normalize(usage.get('memory')).or_default(0.0),
            disk_gib=storage_to_gib(disk_raw) if disk_raw not in (None, '') else None,
        )


@dataclass(frozen=True)
class Snapshot:
    """Batch data fetched once per cycle and shared read-only by every worker."""
    nodes: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    usage: Dict[str, UsageSample] = field(default_factory=dict)

    @classmethod
    def build(cls, node_items: List[Dict[str, Any]], metric_items: List[Dict[str, Any]]) -> 'Snapshot':
        nodes = {}
        for item in node_items:
            name = (item.get('metadata') or {}).get('name')
            if name:
                nodes[name] = item
        usage = {}
        for item in metric_items:
            name = (item.get('metadata') or {}).get('name')
            if name:
                usage[name] = UsageSample.from_metrics(item)
        return cls(nodes=nodes, usage=usage)

    @property
    def node_names(self) -> List[str]:
        return list(self.nodes.keys())


def resolve_health(node: Dict[str, Any], detailed: bool) -> Tuple[HealthStatus, FrozenSet[Pressure], int]:
    conditions = {}
    for cond in (node.get('status') or {}).get('conditions') or []:
        conditions[cond.get('type')] = cond.get('status')
    ready = conditions.get('Ready')
    if ready == 'True':
        health, code = HealthStatus.READY, STATUS_OK
    elif ready == 'False':
        health, code = HealthStatus.NOT_READY, STATUS_NOT_READY
    else:
        health, code = HealthStatus.UNKNOWN, STATUS_NOT_READY
    pressures: FrozenSet[Pressure] = frozenset()
    if detailed:
        pressures = frozenset(p for p in Pressure if conditions.get(p.value) == 'True')
        if pressures:
            code = STATUS_PRESSURE
    return health, pressures, code


def reconcile_disk(capacity_raw, allocatable_raw) -> Tuple[float, float]:
    """Ephemeral storage capacity and allocatable in GiB.

    The two fields are sometimes reported in different units. An allocatable
    larger than a bare-integer capacity means the capacity is a KiB count.
    """
    capacity = storage_to_gib(capacity_raw)
    allocatable = storage_to_gib(allocatable_raw)
    if allocatable > capacity > 0 and is_plain_integer(capacity_raw) and is_kib_suffixed(allocatable_raw):
        capacity = round(int(str(capacity_raw).strip()) / (1024 * 1024), 1)
    return capacity, allocatable


def estimate_disk_used(capacity: float, allocatable: float) -> float:
    """Reserved ephemeral storage (capacity - allocatable) as a usage proxy."""
    if capacity <= 0 or allocatable <= 0 or allocatable > capacity:
        return 0.0
    return round(capacity - allocatable, 1)


def count_pods(pods: List[Dict[str, Any]]) -> Tuple[int, int]:
    ready = 0
    for pod in pods:
        conditions = (pod.get('status') or {}).get('conditions') or []
        if any(c.get('type') == 'Ready' and c.get('status') == 'True' for c in conditions):
            ready += 1
    return len(pods), ready


class NodeCollector:
    """Builds one NodeRecord per node from the shared snapshot plus per-node queries."""

    def __init__(self, source, snapshot: Snapshot, show_conditions: bool = False):
        self.source = source
        self.snapshot = snapshot
        self.show_conditions = show_conditions

    def _node_json(self, name: str) -> Optional[Dict[str, Any]]:
        node = self.snapshot.nodes.get(name)
        if node:
            return node
        try:
            return self.source.get_node(name) or None
        except QueryError as e:
            log.info('node unavailable', node=name, error=str(e))
            return None

    def _allocation(self, name: str) -> AllocationReport:
        try:
            return self.source.describe_node(name)
        except QueryError as e:
            log.info('allocation report unavailable, using zero allocation', node=name, error=str(e))
            return AllocationReport()

    def _usage(self, name: str) -> UsageSample:
        sample = self.snapshot.usage.get(name)
        if sample is not None:
            return sample
        try:
            return UsageSample.from_metrics(self.source.get_node_metrics(name))
        except QueryError as e:
            log.info('usage unavailable', node=name, error=str(e))
            return UsageSample()

    def _pod_provider(self):
        cache: Dict[str, List[Dict[str, Any]]] = {}

        def pods(name: str) -> List[Dict[str, Any]]:
            if name not in cache:
                try:
                    cache[name] = self.source.list_node_pods(name)
                except QueryError as e:
                    log.info('pod listing unavailable', node=name, error=str(e))
                    cache[name] = []
            return cache[name]
        return pods

    @staticmethod
    def _memory_capacity(allocatable: Dict[str, Any], capacity: Dict[str, Any]) -> float:
        result = normalize(allocatable.get('memory'))
        if result.corrupted:
            result = normalize(capacity.get('memory'))
        return result.or_default(0.0)

    @staticmethod
    def _resolve(name: str, raw, resource: str, bound: str, fallback: FallbackCalculator) -> float:
        result = normalize(raw)
        if not result.corrupted:
            return result.value
        log.debug('corrupted quantity, recomputing from workloads', node=name, resource=resource, bound=bound, raw=raw)
        return fallback.recompute(name, resource, bound)

    def collect(self, name: str) -> NodeRecord:
        node = self._node_json(name)
        if node is None:
            return NodeRecord.unknown(name)
        health, pressures, code = resolve_health(node, self.show_conditions)
        status = node.get('status') or {}
        allocatable = status.get('allocatable') or {}
        capacity = status.get('capacity') or {}

        cpu_capacity = cpu_to_cores(allocatable.get('cpu'))
        mem_capacity = self._memory_capacity(allocatable, capacity)
        disk_capacity, disk_allocatable = reconcile_disk(
            capacity.get('ephemeral-storage'), allocatable.get('ephemeral-storage'))

        pods = self._pod_provider()
        fallback = FallbackCalculator(pods)
        report = self._allocation(name)
        mem_requested = self._resolve(name, report.memory_requests, 'memory', 'requests', fallback)
        mem_limited = self._resolve(name, report.memory_limits, 'memory', 'limits', fallback)
        disk_requested = self._resolve(name, report.storage_requests, 'ephemeral-storage', 'requests', fallback)

        usage = self._usage(name)
        if usage.disk_gib:
            disk_used = usage.disk_gib
        else:
            disk_used = estimate_disk_used(disk_capacity, disk_allocatable)

        pods_total, pods_ready = count_pods(pods(name))
        return NodeRecord(
            name=name,
            health=health,
            pressures=pressures,
            status_code=code,
            cpu_requested=cpu_to_cores(report.cpu_requests),
            cpu_limited=cpu_to_cores(report.cpu_limits),
            cpu_used=usage.cpu_cores,
            cpu_capacity=cpu_capacity,
            mem_requested=mem_requested,
            mem_limited=mem_limited,
            mem_used=usage.memory_gib,
            mem_capacity=mem_capacity,
            disk_used=disk_used,
            disk_capacity=disk_capacity,
            disk_requested=disk_requested,
            cpu_use_pct=percent(usage.cpu_cores, cpu_capacity),
            mem_use_pct=percent(usage.memory_gib, mem_capacity),
            disk_use_pct=percent(disk_used, disk_capacity),
            pods_total=pods_total,
            pods_ready=pods_ready,
        )
