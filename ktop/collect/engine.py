from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List
from ..aggregate import aggregate, AggregateResult
from ..config import AppConfig
from ..kube.client import QueryError
from ..models import NodeRecord
from ..util import logging as log
from .node import NodeCollector, Snapshot


class ClusterUnavailable(RuntimeError):
    """A batch query failed; the cycle cannot produce a meaningful table."""

    def __init__(self, what: str, hint: str, cause: Exception):
        self.what = what
        self.hint = hint
        super().__init__(f'{what}: {cause}')


class CollectionEngine:
    def __init__(self, source, cfg: AppConfig):
        self.source = source
        self.cfg = cfg

    def prefetch(self) -> Snapshot:
        selector = self.cfg.node_selector
        try:
            nodes = self.source.list_nodes(selector)
        except QueryError as e:
            raise ClusterUnavailable('Cannot access Kubernetes cluster',
                                     'Check your kubeconfig and cluster connectivity (try: kubectl cluster-info).', e) from e
        try:
            metrics = self.source.list_node_metrics(selector)
        except QueryError as e:
            raise ClusterUnavailable('metrics-server is not installed or not working properly',
                                     'Install metrics-server and wait a few minutes for it to start collecting metrics.', e) from e
        return Snapshot.build(nodes, metrics)

    def _collect_one(self, collector: NodeCollector, name: str) -> NodeRecord:
        try:
            return collector.collect(name)
        except Exception as e:
            log.warn('node collection failed', node=name, error=str(e))
            return NodeRecord.unknown(name)

    def collect(self, snapshot: Snapshot) -> List[NodeRecord]:
        names = snapshot.node_names
        if not names:
            return []
        collector = NodeCollector(self.source, snapshot, show_conditions=self.cfg.show_conditions)
        max_workers = min(self.cfg.parallel, len(names))
        log.info('starting parallel collection', nodes=len(names), max_workers=max_workers)
        records: List[NodeRecord] = []
        executor = ThreadPoolExecutor(max_workers=max_workers)
        try:
            futures = [executor.submit(self._collect_one, collector, name) for name in names]
            for fut in as_completed(futures):
                records.append(fut.result())
        finally:
            # pending nodes are dropped on interrupt; running ones finish within
            # MAX_ATTEMPTS request timeouts plus backoff
            executor.shutdown(wait=False, cancel_futures=True)
        return records

    def run_cycle(self) -> AggregateResult:
        snapshot = self.prefetch()
        records = self.collect(snapshot)
        return aggregate(records, self.cfg.sort_by, self.cfg.reverse)
