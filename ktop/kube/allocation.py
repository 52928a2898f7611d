"""Node "Allocated resources" summary, computed the way the API tooling does.

Requests and limits are summed over the non-terminated pods bound to a node.
A pod contributes the larger of its regular containers' sum and its biggest
init container, plus any pod overhead. Sums are rendered back as quantity
strings, so fractional byte totals carry a milli suffix exactly like the
upstream output the normalizer has to cope with.
"""
from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Any, Iterable, List
from kubernetes.utils import parse_quantity
from ..resources.quantity import format_quantity
from ..util import logging as log

RESOURCES = ('cpu', 'memory', 'ephemeral-storage')


@dataclass(frozen=True)
class AllocationReport:
    cpu_requests: str = '0m'
    cpu_limits: str = '0m'
    memory_requests: str = '0'
    memory_limits: str = '0'
    storage_requests: str = '0'
    storage_limits: str = '0'


def _quantity(value: Any) -> Decimal:
    if value in (None, ''):
        return Decimal(0)
    try:
        return parse_quantity(value)
    except (ValueError, TypeError):
        log.debug('ignoring unparseable quantity', value=value)
        return Decimal(0)


def _containers_total(containers: List[Dict[str, Any]], bound: str, resource: str) -> Decimal:
    return sum((_quantity(((c.get('resources') or {}).get(bound) or {}).get(resource)) for c in containers), Decimal(0))


def _init_max(containers: List[Dict[str, Any]], bound: str, resource: str) -> Decimal:
    values = [_quantity(((c.get('resources') or {}).get(bound) or {}).get(resource)) for c in containers]
    return max(values, default=Decimal(0))


def pod_resource(pod: Dict[str, Any], bound: str, resource: str) -> Decimal:
    spec = pod.get('spec') or {}
    main = _containers_total(spec.get('containers') or [], bound, resource)
    init = _init_max(spec.get('initContainers') or [], bound, resource)
    overhead = _quantity((spec.get('overhead') or {}).get(resource))
    return max(main, init) + overhead


def summarize_allocation(pods: Iterable[Dict[str, Any]]) -> AllocationReport:
    pods = list(pods)
    totals = {}
    for bound in ('requests', 'limits'):
        for resource in RESOURCES:
            amount = sum((pod_resource(p, bound, resource) for p in pods), Decimal(0))
            kind = 'cpu' if resource == 'cpu' else 'bytes'
            totals[(bound, resource)] = format_quantity(amount, kind)
    return AllocationReport(
        cpu_requests=totals[('requests', 'cpu')],
        cpu_limits=totals[('limits', 'cpu')],
        memory_requests=totals[('requests', 'memory')],
        memory_limits=totals[('limits', 'memory')],
        storage_requests=totals[('requests', 'ephemeral-storage')],
        storage_limits=totals[('limits', 'ephemeral-storage')],
    )
