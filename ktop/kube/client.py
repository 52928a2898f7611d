from __future__ import annotations
from typing import Dict, Any, List, Optional, Iterable
from kubernetes import config as k8s_config, client as k8s_client
from kubernetes.client.exceptions import ApiException
import urllib3, time, json
from ..util import logging as log
from .allocation import AllocationReport, summarize_allocation
urllib3.disable_warnings()

MAX_ATTEMPTS = 3
BACKOFF_BASE = 2.0
# seconds per attempt
REQUEST_TIMEOUT = 10
METRICS_BASE = '/apis/metrics.k8s.io/v1beta1'
NON_TERMINATED_SELECTOR = 'status.phase!=Succeeded,status.phase!=Failed'
# never become valid by retrying
_NON_RETRYABLE = (401, 403, 404)


class QueryError(Exception):
    def __init__(self, path: str, attempts: int, reason: str, status: int | None = None):
        self.path = path
        self.attempts = attempts
        self.reason = reason
        self.status = status
        detail = f' (status {status})' if status else ''
        super().__init__(f'GET {path} failed after {attempts} attempt(s){detail}: {reason}')


def load_kubeconfig(kubeconfig: str | None = None, context: str | None = None) -> k8s_client.ApiClient:
    k8s_config.load_kube_config(config_file=kubeconfig, context=context)
    return k8s_client.ApiClient()


def query(api_client, path: str, params: Optional[Dict[str, str]] = None, *, attempts: int = MAX_ATTEMPTS,
          backoff: float = BACKOFF_BASE, quiet: bool = False, critical: bool = True) -> Dict[str, Any]:
    """GET a raw API path and decode the JSON body.

    Retries with exponential backoff (``backoff``, doubling per attempt).
    ``quiet`` suppresses retry warnings; the final failure is only logged as an
    error for critical, non-quiet queries. Raises ``QueryError`` once attempts
    are exhausted.
    """
    query_params = [(k, v) for k, v in (params or {}).items() if v]
    delay = backoff
    reason, status = '', None
    attempt = 0
    while attempt < attempts:
        attempt += 1
        try:
            resp = api_client.call_api(path, 'GET', query_params=query_params, response_type='object',
                                       _preload_content=False, auth_settings=['BearerToken'],
                                       _request_timeout=REQUEST_TIMEOUT)
            return json.loads(resp[0].data)
        except ApiException as e:
            status = getattr(e, 'status', None)
            reason = getattr(e, 'reason', None) or str(e)
            if status in _NON_RETRYABLE:
                break
        except Exception as e:
            status, reason = None, str(e)
        if attempt < attempts:
            if not quiet:
                log.warn('query failed, retrying', path=path, status=status, attempt=attempt, attempts=attempts, sleep=delay)
            time.sleep(delay)
            delay *= 2
    if critical and not quiet:
        log.error('query failed', path=path, status=status, attempts=attempt, reason=reason)
    else:
        log.debug('query failed', path=path, status=status, attempts=attempt, reason=reason)
    raise QueryError(path, attempt, reason, status)


class KubeSource:
    """Read-only view of the cluster used by the collection engine.

    Batch queries (node list, usage snapshot) log their failures; per-node
    queries run quietly since a failure there only degrades one record.
    """

    def __init__(self, api_client, attempts: int = MAX_ATTEMPTS, backoff: float = BACKOFF_BASE):
        self.api_client = api_client
        self.attempts = attempts
        self.backoff = backoff

    def _get(self, path: str, params: Optional[Dict[str, str]] = None, per_node: bool = False) -> Dict[str, Any]:
        return query(self.api_client, path, params, attempts=self.attempts, backoff=self.backoff,
                     quiet=per_node, critical=not per_node)

    def _list(self, path: str, params: Optional[Dict[str, str]] = None, per_node: bool = False) -> Iterable[Dict[str, Any]]:
        params = dict(params or {})
        while True:
            payload = self._get(path, params, per_node=per_node)
            for item in payload.get('items') or []:
                yield item
            cont = (payload.get('metadata') or {}).get('continue')
            if not cont:
                break
            params['continue'] = cont

    def list_nodes(self, selector: str | None = None) -> List[Dict[str, Any]]:
        return list(self._list('/api/v1/nodes', {'labelSelector': selector}))

    def list_node_metrics(self, selector: str | None = None) -> List[Dict[str, Any]]:
        return list(self._list(f'{METRICS_BASE}/nodes', {'labelSelector': selector}))

    def get_node(self, name: str) -> Dict[str, Any]:
        return self._get(f'/api/v1/nodes/{name}', per_node=True)

    def get_node_metrics(self, name: str) -> Dict[str, Any]:
        return self._get(f'{METRICS_BASE}/nodes/{name}', per_node=True)

    def list_node_pods(self, name: str) -> List[Dict[str, Any]]:
        return list(self._list('/api/v1/pods', {'fieldSelector': f'spec.nodeName={name}'}, per_node=True))

    def describe_node(self, name: str) -> AllocationReport:
        selector = f'spec.nodeName={name},{NON_TERMINATED_SELECTOR}'
        pods = list(self._list('/api/v1/pods', {'fieldSelector': selector}, per_node=True))
        return summarize_allocation(pods)
