import pytest
from ktop.resources.fallback import FallbackCalculator, container_quantities
from builders import make_pod


def test_recompute_sums_container_requests():
    pods = {'worker-1': [
        make_pod('a', requests={'memory': '1Gi'}),
        make_pod('b', requests={'memory': '512Mi'}),
        make_pod('c'),
    ]}
    calc = FallbackCalculator(lambda node: pods.get(node, []))
    assert calc.recompute('worker-1', 'memory', 'requests') == 1.5
    assert calc.recompute('worker-1', 'memory', 'limits') == 0.0
    assert calc.recompute('worker-2', 'memory', 'requests') == 0.0


def test_recompute_storage_limits_and_byte_counts():
    pods = [make_pod('a', limits={'ephemeral-storage': str(2 * 1024 ** 3)}),
            make_pod('b', limits={'ephemeral-storage': '1Gi'})]
    calc = FallbackCalculator(lambda node: pods)
    assert calc.recompute('n', 'ephemeral-storage', 'limits') == 3.0


def test_missing_values_default_to_zero():
    pod = make_pod('a', requests={'cpu': '100m'})
    pod['spec']['containers'].append({'name': 'sidecar'})
    assert container_quantities([pod], 'memory', 'requests') == ['0', '0']


def test_unsupported_kind_rejected():
    calc = FallbackCalculator(lambda node: [])
    with pytest.raises(ValueError):
        calc.recompute('n', 'cpu', 'requests')
    with pytest.raises(ValueError):
        calc.recompute('n', 'memory', 'bursts')
