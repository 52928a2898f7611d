from __future__ import annotations
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Iterable, List, Any
from .models import NodeRecord, ClusterTotals
from .resources.quantity import percent


class SortField(str, Enum):
    NAME = 'name'
    CPU_REQ = 'cpu-req'
    CPU_LIM = 'cpu-lim'
    CPU_USE = 'cpu-use'
    CPU_PCT = 'cpu-pct'
    CPU_CAP = 'cpu-cap'
    CPU_REQ_PCT = 'cpu-req-pct'
    MEM_REQ = 'mem-req'
    MEM_LIM = 'mem-lim'
    MEM_USE = 'mem-use'
    MEM_PCT = 'mem-pct'
    MEM_CAP = 'mem-cap'
    MEM_REQ_PCT = 'mem-req-pct'
    DISK_USE = 'disk-use'
    DISK_CAP = 'disk-cap'
    DISK_PCT = 'disk-pct'
    PODS = 'pods'
    STATUS = 'status'

    @property
    def key(self) -> Callable[[NodeRecord], Any]:
        attr = _SORT_ATTRIBUTES[self]
        if self is SortField.NAME:
            return lambda r: r.name
        return lambda r: float(getattr(r, attr))


_SORT_ATTRIBUTES = {
    SortField.NAME: 'name',
    SortField.CPU_REQ: 'cpu_requested',
    SortField.CPU_LIM: 'cpu_limited',
    SortField.CPU_USE: 'cpu_used',
    SortField.CPU_PCT: 'cpu_use_pct',
    SortField.CPU_CAP: 'cpu_capacity',
    SortField.CPU_REQ_PCT: 'cpu_req_pct',
    SortField.MEM_REQ: 'mem_requested',
    SortField.MEM_LIM: 'mem_limited',
    SortField.MEM_USE: 'mem_used',
    SortField.MEM_PCT: 'mem_use_pct',
    SortField.MEM_CAP: 'mem_capacity',
    SortField.MEM_REQ_PCT: 'mem_req_pct',
    SortField.DISK_USE: 'disk_used',
    SortField.DISK_CAP: 'disk_capacity',
    SortField.DISK_PCT: 'disk_use_pct',
    SortField.PODS: 'pods_total',
    SortField.STATUS: 'status_code',
}


@dataclass
class AggregateResult:
    records: List[NodeRecord]
    totals: ClusterTotals
    sort_by: SortField
    reverse: bool

    @property
    def sort_order(self) -> str:
        return 'asc' if self.reverse else 'desc'


def with_request_percentages(record: NodeRecord) -> NodeRecord:
    return replace(
        record,
        cpu_req_pct=percent(record.cpu_requested, record.cpu_capacity),
        mem_req_pct=percent(record.mem_requested, record.mem_capacity),
    )


def sort_records(records: Iterable[NodeRecord], sort_by: SortField, reverse: bool = False) -> List[NodeRecord]:
    """Descending by default; ``reverse`` gives ascending.

    Descending is the exact mirror of ascending, so flipping the direction
    always yields the reversed sequence, ties included.
    """
    ordered = sorted(records, key=sort_by.key)
    if not reverse:
        ordered.reverse()
    return ordered


def aggregate(records: Iterable[NodeRecord], sort_by: SortField | str = SortField.CPU_REQ,
              reverse: bool = False) -> AggregateResult:
    sort_by = SortField(sort_by)
    enriched = [with_request_percentages(r) for r in records]
    ordered = sort_records(enriched, sort_by, reverse)
    totals = ClusterTotals()
    for record in ordered:
        totals.add(record)
    return AggregateResult(records=ordered, totals=totals, sort_by=sort_by, reverse=reverse)

