"""Cluster object builders and an in-memory cluster source for tests."""
from ktop.kube.allocation import summarize_allocation
from ktop.kube.client import QueryError


def make_node(name, cpu='4', memory='16Gi', disk_capacity=None, disk_allocatable=None,
              ready='True', conditions=None, capacity_memory=None, labels=None):
    allocatable = {'cpu': cpu, 'memory': memory}
    capacity = {'cpu': cpu, 'memory': capacity_memory or memory}
    if disk_capacity is not None:
        capacity['ephemeral-storage'] = disk_capacity
    if disk_allocatable is not None:
        allocatable['ephemeral-storage'] = disk_allocatable
    conds = []
    if ready is not None:
        conds.append({'type': 'Ready', 'status': ready})
    for ctype, cstatus in (conditions or {}).items():
        conds.append({'type': ctype, 'status': cstatus})
    return {
        'metadata': {'name': name, 'labels': labels or {}},
        'status': {'allocatable': allocatable, 'capacity': capacity, 'conditions': conds},
    }


def make_metrics(name, cpu='500m', memory='4Gi', disk=None):
    usage = {'cpu': cpu, 'memory': memory}
    if disk is not None:
        usage['ephemeral-storage'] = disk
    return {'metadata': {'name': name}, 'usage': usage}


def make_pod(name, requests=None, limits=None, ready=True, phase='Running'):
    return {
        'metadata': {'name': name, 'namespace': 'default'},
        'spec': {'containers': [{'name': 'main', 'resources': {'requests': requests or {}, 'limits': limits or {}}}]},
        'status': {
            'phase': phase,
            'conditions': [{'type': 'Ready', 'status': 'True' if ready else 'False'}],
        },
    }


class FakeSource:
    """Implements the same read interface as KubeSource over in-memory data.

    ``fail`` names operations (optionally ``op:node``) that raise QueryError.
    ``allocations`` overrides the allocation report for a node.
    """

    def __init__(self, nodes=None, metrics=None, pods=None, allocations=None, fail=()):
        self.nodes = list(nodes or [])
        self.metrics = list(metrics or [])
        self.pods = dict(pods or {})
        self.allocations = dict(allocations or {})
        self.fail = set(fail)
        self.calls = []

    def _check(self, op, name=None):
        self.calls.append((op, name))
        if op in self.fail or (name and f'{op}:{name}' in self.fail):
            raise QueryError(f'/{op}', 3, 'boom')

    def list_nodes(self, selector=None):
        self._check('list_nodes')
        return list(self.nodes)

    def list_node_metrics(self, selector=None):
        self._check('list_node_metrics')
        return list(self.metrics)

    def get_node(self, name):
        self._check('get_node', name)
        for node in self.nodes:
            if node['metadata']['name'] == name:
                return node
        raise QueryError(f'/nodes/{name}', 1, 'not found', 404)

    def get_node_metrics(self, name):
        self._check('get_node_metrics', name)
        for item in self.metrics:
            if item['metadata']['name'] == name:
                return item
        raise QueryError(f'/metrics/{name}', 1, 'not found', 404)

    def list_node_pods(self, name):
        self._check('list_node_pods', name)
        return list(self.pods.get(name, []))

    def describe_node(self, name):
        self._check('describe_node', name)
        if name in self.allocations:
            return self.allocations[name]
        return summarize_allocation(self.pods.get(name, []))
