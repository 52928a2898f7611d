"""Shared formatting helpers for the renderers."""
from __future__ import annotations
import click

MEDIUM_THRESHOLD = 60
HIGH_THRESHOLD = 80

STATUS_COLORS = {0: 'green', 1: 'red', 2: 'yellow'}

# Column titles in display order, shared by table and csv output.
TABLE_HEADERS = (
    'WORKER_NODE', 'STATUS', 'PODS',
    'CPU_REQ', 'CPU_LIM', 'CPU_USE', 'CPU_%', 'CPU_CAP', 'CPU_REQ_%',
    'MEM_REQ', 'MEM_LIM', 'MEM_USE', 'MEM_%', 'MEM_CAP', 'MEM_REQ_%',
    'DISK_USE', 'DISK_CAP', 'DISK_%',
)
CSV_HEADERS = (
    'NODE', 'STATUS', 'PODS',
    'CPU_REQ', 'CPU_LIM', 'CPU_USE', 'CPU_%', 'CPU_TOTAL', 'CPU_REQ_%',
    'MEM_REQ', 'MEM_LIM', 'MEM_USE', 'MEM_%', 'MEM_TOTAL', 'MEM_REQ_%',
    'DISK_USE', 'DISK_CAP', 'DISK_%', 'DISK_REQ',
)


def usage_color(pct: float) -> str:
    whole = int(pct)
    if whole >= HIGH_THRESHOLD:
        return 'red'
    if whole >= MEDIUM_THRESHOLD:
        return 'yellow'
    return 'green'


def status_color(code: int) -> str | None:
    return STATUS_COLORS.get(code)


def paint(text: str, color: str | None, enabled: bool, bold: bool = False) -> str:
    if not enabled or (color is None and not bold):
        return text
    return click.style(text, fg=color, bold=bold)


def truncate(text: str, limit: int, keep: int) -> str:
    return text[:keep] + '..' if len(text) > limit else text


def format_pct(value: float) -> str:
    return f'{value:.1f}%'


def sort_banner(sort_by: str, sort_order: str) -> str:
    return f'Sorted by: {sort_by} ({sort_order}ending)'
