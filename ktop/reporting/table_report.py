from __future__ import annotations
from typing import List, Optional, Sequence
from .base import Renderer, register
from .common import (
    TABLE_HEADERS, usage_color, status_color, paint, truncate, format_pct, sort_banner,
)
from ..models import NodeRecord, ClusterTotals
from ..resources.quantity import format_cpu, format_gib

# (width, separator written before the column)
_LAYOUT = (
    (24, ''), (10, ''), (10, ''),
    (8, '| '), (8, ' '), (8, ' '), (6, ' '), (8, ' '), (9, ' '),
    (8, ' | '), (8, ' '), (8, ' '), (6, ' '), (8, ' '), (9, ' '),
    (8, ' | '), (9, ' '), (6, ' '),
)
RULE = '=' * 181


def _line(cells: Sequence[str], colors: Sequence[Optional[str]], color: bool, bold: bool = False) -> str:
    parts = []
    for (width, sep), cell, fg in zip(_LAYOUT, cells, colors):
        # pad before styling so escape codes do not shift the columns
        parts.append(sep + paint(cell.ljust(width), fg, color))
    line = ''.join(parts)
    return paint(line, None, color, bold=True) if bold else line


def _node_cells(r: NodeRecord) -> List[str]:
    return [
        truncate(r.name, 24, 22),
        truncate(r.status_text, 10, 9),
        r.pods_display,
        format_cpu(r.cpu_requested), format_cpu(r.cpu_limited), format_cpu(r.cpu_used),
        format_pct(r.cpu_use_pct), f'{r.cpu_capacity:.1f}', format_pct(r.cpu_req_pct),
        format_gib(r.mem_requested)[:8], format_gib(r.mem_limited)[:8], format_gib(r.mem_used)[:8],
        format_pct(r.mem_use_pct), format_gib(r.mem_capacity)[:8], format_pct(r.mem_req_pct),
        format_gib(r.disk_used)[:8], format_gib(r.disk_capacity)[:9], format_pct(r.disk_use_pct),
    ]


def _node_colors(r: NodeRecord) -> List[Optional[str]]:
    cpu = usage_color(r.cpu_use_pct)
    mem = usage_color(r.mem_use_pct)
    disk = usage_color(r.disk_use_pct)
    return [
        None, status_color(r.status_code), None,
        None, None, None, cpu, None, cpu,
        None, None, None, mem, None, mem,
        None, None, disk,
    ]


def _total_cells(t: ClusterTotals) -> List[str]:
    return [
        f'TOTAL ({t.node_count})', '-', t.pods_display,
        format_cpu(t.cpu_requested)[:8], format_cpu(t.cpu_limited)[:8], format_cpu(t.cpu_used)[:8],
        '-', f'{t.cpu_capacity:.1f}', '-',
        format_gib(t.mem_requested)[:8], format_gib(t.mem_limited)[:8], format_gib(t.mem_used)[:8],
        '-', format_gib(t.mem_capacity)[:8], '-',
        format_gib(t.disk_used)[:8], format_gib(t.disk_capacity)[:9], '-',
    ]


@register
class TableRenderer(Renderer):
    format_name = 'table'

    def render(self, result, cfg) -> str:
        color = not cfg.no_color
        no_colors = [None] * len(_LAYOUT)
        lines = []
        if not cfg.is_default_sort:
            lines.append(paint(sort_banner(result.sort_by.value, result.sort_order), None, color, bold=True))
        lines.append(_line(TABLE_HEADERS, no_colors, color).rstrip())
        lines.append(RULE)
        for record in result.records:
            lines.append(_line(_node_cells(record), _node_colors(record), color).rstrip())
        if not cfg.no_sum and result.records:
            lines.append(RULE)
            lines.append(_line(_total_cells(result.totals), no_colors, color, bold=True).rstrip())
        return '\n'.join(lines)
