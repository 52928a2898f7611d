from ktop.kube.allocation import summarize_allocation, AllocationReport
from builders import make_pod


def test_empty_node_allocation():
    assert summarize_allocation([]) == AllocationReport()


def test_allocation_sums_requests_and_limits():
    pods = [
        make_pod('a', requests={'cpu': '250m', 'memory': '1Gi'}, limits={'cpu': '1', 'memory': '2Gi'}),
        make_pod('b', requests={'cpu': '500m', 'memory': '512Mi', 'ephemeral-storage': '1Gi'}),
    ]
    report = summarize_allocation(pods)
    assert report.cpu_requests == '750m'
    assert report.cpu_limits == '1000m'
    assert report.memory_requests == '1536Mi'
    assert report.memory_limits == '2Gi'
    assert report.storage_requests == '1Gi'
    assert report.storage_limits == '0'


def test_init_containers_and_overhead():
    pod = make_pod('a', requests={'memory': '1Gi'})
    pod['spec']['initContainers'] = [{'name': 'init', 'resources': {'requests': {'memory': '3Gi'}}}]
    pod['spec']['overhead'] = {'memory': '1Gi'}
    assert summarize_allocation([pod]).memory_requests == '4Gi'


def test_fractional_byte_sum_uses_milli_suffix():
    pods = [make_pod('a', requests={'memory': '100m'}), make_pod('b', requests={'memory': '1'})]
    assert summarize_allocation(pods).memory_requests == '1100m'


def test_unparseable_quantity_ignored():
    pods = [make_pod('a', requests={'memory': 'lots'}), make_pod('b', requests={'memory': '1Gi'})]
    assert summarize_allocation(pods).memory_requests == '1Gi'


def test_module_docstrings_present():
    from ktop import models
    from ktop.kube import allocation
    assert 'Allocated resources' in allocation.__doc__
    assert 'Typed records' in models.__doc__
