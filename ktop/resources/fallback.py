from __future__ import annotations
from typing import Callable, Dict, Any, List
from .quantity import workload_quantity_to_gib
from ..util import logging as log

RESOURCE_KINDS = ('memory', 'ephemeral-storage')
BOUND_KINDS = ('requests', 'limits')


def container_quantities(pods: List[Dict[str, Any]], resource: str, bound: str) -> List[str]:
    """Declared quantity of every container on the node, missing values read as "0"."""
    out = []
    for pod in pods:
        for c in (pod.get('spec') or {}).get('containers') or []:
            declared = ((c.get('resources') or {}).get(bound) or {}).get(resource)
            out.append(declared if declared not in (None, '') else '0')
    return out


class FallbackCalculator:
    """Recompute a node's memory/storage allocation from its workloads' specs.

    Only used when the node's aggregate report is flagged as corrupted; a
    valid zero must never reach this path.
    """

    def __init__(self, pod_provider: Callable[[str], List[Dict[str, Any]]]):
        self._pod_provider = pod_provider

    def recompute(self, node: str, resource: str, bound: str) -> float:
        if resource not in RESOURCE_KINDS:
            raise ValueError(f'Unsupported resource kind: {resource}')
        if bound not in BOUND_KINDS:
            raise ValueError(f'Unsupported bound kind: {bound}')
        pods = self._pod_provider(node)
        total = sum(workload_quantity_to_gib(q) for q in container_quantities(pods, resource, bound))
        log.debug('recomputed from workloads', node=node, resource=resource, bound=bound, pods=len(pods), gib=round(total, 1))
        return round(total, 1)
