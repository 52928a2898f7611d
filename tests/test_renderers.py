import json
import pytest
from ktop.aggregate import aggregate
from ktop.config import AppConfig
from ktop.models import NodeRecord, HealthStatus, Pressure, STATUS_OK, STATUS_PRESSURE
from ktop.reporting.base import get_renderer, get_formats
from ktop.reporting.common import usage_color, status_color, truncate, sort_banner, CSV_HEADERS
from ktop.reporting import table_report  # noqa: F401
from ktop.reporting import csv_report  # noqa: F401
from ktop.reporting import json_report  # noqa: F401


def _result(sort_by='cpu-req', reverse=False, records=None):
    if records is None:
        records = [
            NodeRecord(name='worker-1', health=HealthStatus.READY, status_code=STATUS_OK,
                       cpu_requested=0.85, cpu_limited=2.0, cpu_used=0.5, cpu_capacity=4.0, cpu_use_pct=12.5,
                       mem_requested=4.5, mem_limited=8.0, mem_used=6.0, mem_capacity=16.0, mem_use_pct=37.5,
                       disk_used=20.0, disk_capacity=100.0, disk_use_pct=20.0, disk_requested=1.0,
                       pods_total=10, pods_ready=9),
            NodeRecord(name='worker-2', health=HealthStatus.READY, status_code=STATUS_PRESSURE,
                       pressures=frozenset({Pressure.MEMORY}),
                       cpu_requested=3.5, cpu_capacity=4.0, cpu_used=3.4, cpu_use_pct=85.0,
                       mem_requested=14.0, mem_capacity=16.0, mem_used=13.0, mem_use_pct=81.3),
        ]
    return aggregate(records, sort_by, reverse)


def test_formats_registered():
    assert get_formats() == ['csv', 'json', 'table']


def test_unknown_format():
    with pytest.raises(ValueError):
        get_renderer('xml')


def test_table_plain():
    out = get_renderer('table').render(_result(), AppConfig(no_color=True))
    lines = out.splitlines()
    assert lines[0].startswith('WORKER_NODE')
    assert 'CPU_REQ_%' in lines[0] and 'DISK_%' in lines[0]
    assert set(lines[1]) == {'='}
    assert lines[2].startswith('worker-2')
    assert 'Ready(Mem)' in lines[2]
    assert '0/0' in lines[2]
    assert '3.5' in lines[2] and '87.5%' in lines[2]
    assert lines[3].startswith('worker-1')
    assert '850m' in lines[3] and '9/10' in lines[3] and '20.0Gi' in lines[3]
    assert set(lines[4]) == {'='}
    assert lines[5].startswith('TOTAL (2)')
    assert '9/10' in lines[5]
    assert '\x1b[' not in out


def test_table_totals_use_placeholders_for_percentages():
    out = get_renderer('table').render(_result(), AppConfig(no_color=True))
    total = out.splitlines()[-1]
    assert '%' not in total
    assert ' - ' in total
    assert '8.0' in total


def test_table_no_sum():
    out = get_renderer('table').render(_result(), AppConfig(no_color=True, no_sum=True))
    assert 'TOTAL' not in out


def test_table_sort_banner_only_for_non_default_sort():
    default = get_renderer('table').render(_result(), AppConfig(no_color=True))
    assert 'Sorted by' not in default
    cfg = AppConfig(no_color=True, sort_by='mem-pct', reverse=True)
    out = get_renderer('table').render(_result('mem-pct', True), cfg)
    assert out.splitlines()[0] == 'Sorted by: mem-pct (ascending)'


def test_table_color():
    out = get_renderer('table').render(_result(), AppConfig())
    assert '\x1b[' in out


def test_table_truncates_long_names():
    record = NodeRecord(name='ip-10-0-0-1.eu-west-1.compute.internal')
    out = get_renderer('table').render(_result(records=[record]), AppConfig(no_color=True))
    assert 'ip-10-0-0-1.eu-west-1...' in out.splitlines()[2]


def test_csv():
    out = get_renderer('csv').render(_result(), AppConfig())
    lines = out.splitlines()
    assert lines[0] == ','.join(CSV_HEADERS)
    assert lines[1].startswith('worker-2,Ready(Mem),0/0,3.5,')
    row = lines[2].split(',')
    assert row[:4] == ['worker-1', 'Ready', '9/10', '850m']
    assert row[6] == '12.5%'
    assert row[9] == '4.5Gi'
    assert row[-1] == '1.0Gi'
    assert len(lines) == 3
    assert '\x1b[' not in out


def test_json():
    out = get_renderer('json').render(_result(), AppConfig())
    doc = json.loads(out)
    assert doc['sort_by'] == 'cpu-req'
    assert doc['sort_order'] == 'desc'
    assert doc['timestamp'].endswith('+00:00')
    assert [n['name'] for n in doc['nodes']] == ['worker-2', 'worker-1']
    node = doc['nodes'][1]
    assert node['cpu_req'] == 0.85
    assert node['mem_req_gi'] == 4.5
    assert node['pods'] == 10
    assert node['status_code'] == 0
    assert doc['totals']['node_count'] == 2
    assert doc['totals']['cpu_requested'] == pytest.approx(4.35)


def test_json_no_sum():
    doc = json.loads(get_renderer('json').render(_result(), AppConfig(no_sum=True)))
    assert 'totals' not in doc


@pytest.mark.parametrize('pct,color', [
    (0.0, 'green'), (59.9, 'green'), (60.0, 'yellow'), (79.9, 'yellow'), (80.0, 'red'), (150.0, 'red'),
])
def test_usage_color(pct, color):
    assert usage_color(pct) == color


def test_status_color():
    assert status_color(0) == 'green'
    assert status_color(1) == 'red'
    assert status_color(2) == 'yellow'


def test_helpers():
    assert truncate('short', 24, 22) == 'short'
    assert truncate('x' * 30, 24, 22) == 'x' * 22 + '..'
    assert sort_banner('name', 'desc') == 'Sorted by: name (descending)'
