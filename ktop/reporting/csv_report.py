from __future__ import annotations
import csv
import io
from .base import Renderer, register
from .common import CSV_HEADERS, format_pct
from ..resources.quantity import format_cpu, format_gib


@register
class CsvRenderer(Renderer):
    format_name = 'csv'

    def render(self, result, cfg) -> str:
        buf = io.StringIO()
        writer = csv.writer(buf, lineterminator='\n')
        writer.writerow(CSV_HEADERS)
        for r in result.records:
            writer.writerow([
                r.name, r.status_text, r.pods_display,
                format_cpu(r.cpu_requested), format_cpu(r.cpu_limited), format_cpu(r.cpu_used),
                format_pct(r.cpu_use_pct), f'{r.cpu_capacity:.1f}', format_pct(r.cpu_req_pct),
                format_gib(r.mem_requested), format_gib(r.mem_limited), format_gib(r.mem_used),
                format_pct(r.mem_use_pct), format_gib(r.mem_capacity), format_pct(r.mem_req_pct),
                format_gib(r.disk_used), format_gib(r.disk_capacity), format_pct(r.disk_use_pct),
                format_gib(r.disk_requested),
            ])
        return buf.getvalue().rstrip('\n')
