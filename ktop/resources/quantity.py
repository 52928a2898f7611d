"""Quantity normalization for node and workload resources.

Every memory and storage figure that leaves this module is expressed in GiB
(one decimal place) and CPU figures in cores. Raw values coming back from the
cluster are not always well-formed: byte counts are occasionally reported with
a millicore ``m`` suffix, which would otherwise read as an exabyte-scale
quantity. ``normalize`` flags those as corrupted so callers can recompute them
from the workloads scheduled on the node.

The corruption heuristic (more than 10 digits before ``m``, more than
1000 GiB after conversion) is an approximation: an extremely large but
legitimate value will be classified as corrupted as well.
"""
from __future__ import annotations
import math
import re
from dataclasses import dataclass
from decimal import Decimal, ROUND_CEILING
from typing import Optional

GIB = 1024 ** 3
SANITY_CEILING_GIB = 1000.0
MAX_MILLICORE_DIGITS = 10

_MILLI_RE = re.compile(r'^(\d+)m$')
_INT_RE = re.compile(r'^\d+$')
_BINARY_SUFFIX_RE = re.compile(r'^(\d+(?:\.\d+)?)(ti|gi|mi|ki)$', re.IGNORECASE)
_BARE_K_RE = re.compile(r'^(\d+)k$')

# GiB per unit
_GIB_SCALE = {
    'ti': 1024.0,
    'gi': 1.0,
    'mi': 1.0 / 1024,
    'ki': 1.0 / (1024 * 1024),
}

_BINARY_UNITS = (('Ti', 1024 ** 4), ('Gi', 1024 ** 3), ('Mi', 1024 ** 2), ('Ki', 1024))


@dataclass(frozen=True)
class Normalized:
    """Result of normalizing one raw quantity: a GiB value or a corruption flag."""
    value: float = 0.0
    corrupted: bool = False

    @classmethod
    def valid(cls, value: float) -> 'Normalized':
        return cls(value=round(value, 1), corrupted=False)

    @classmethod
    def corrupt(cls) -> 'Normalized':
        return cls(value=0.0, corrupted=True)

    def or_default(self, default: float = 0.0) -> float:
        return default if self.corrupted else self.value


def _clean(raw) -> str:
    if raw is None:
        return ''
    return str(raw).strip()


def millicore_digits(raw) -> Optional[str]:
    """Digits of a value carrying only a millicore suffix, else None."""
    m = _MILLI_RE.match(_clean(raw))
    return m.group(1) if m else None


def is_mislabelled_byte_count(digits: str) -> bool:
    return len(digits) > MAX_MILLICORE_DIGITS


def exceeds_sanity_ceiling(gib: float) -> bool:
    return gib > SANITY_CEILING_GIB


def bytes_to_gib(count) -> float:
    return round(float(count) / GIB, 1)


def _suffixed_to_gib(value: str) -> Optional[float]:
    m = _BINARY_SUFFIX_RE.match(value)
    if m:
        return float(m.group(1)) * _GIB_SCALE[m.group(2).lower()]
    m = _BARE_K_RE.match(value)
    if m:
        return float(m.group(1)) * _GIB_SCALE['ki']
    return None


def _checked_bytes(digits: str) -> Normalized:
    gib = bytes_to_gib(int(digits))
    if exceeds_sanity_ceiling(gib):
        return Normalized.corrupt()
    return Normalized.valid(gib)


def normalize(raw) -> Normalized:
    """Convert a memory/storage quantity to GiB.

    Precedence: millicore-suffixed values, empty or zero, plain byte counts,
    binary suffixes (Ti/Gi/Mi/Ki, case-insensitive, bare ``k`` as Ki), and
    finally anything unrecognised which reads as 0.
    """
    value = _clean(raw)
    digits = millicore_digits(value)
    if digits is not None:
        if is_mislabelled_byte_count(digits):
            return _checked_bytes(digits)
        # a CPU-style suffix on a memory field is a unit mismatch, not a value
        return Normalized.valid(0.0)
    if not value or value == '0':
        return Normalized.valid(0.0)
    if _INT_RE.match(value):
        return _checked_bytes(value)
    gib = _suffixed_to_gib(value)
    if gib is not None:
        return Normalized.valid(gib)
    return Normalized.valid(0.0)


def workload_quantity_to_gib(raw) -> float:
    """Per-container conversion used when recomputing from workload specs.

    Plain integers are byte counts and are not subject to the sanity ceiling;
    a single container cannot carry the upstream reporting defect.
    """
    value = _clean(raw)
    if not value:
        return 0.0
    if _INT_RE.match(value):
        return float(value) / GIB
    gib = _suffixed_to_gib(value)
    return gib if gib is not None else 0.0


def storage_to_gib(raw) -> float:
    """Disk capacity/allocatable: like ``normalize`` but large byte counts are trusted."""
    result = normalize(raw)
    if result.corrupted:
        value = _clean(raw)
        if _INT_RE.match(value):
            return bytes_to_gib(int(value))
        return 0.0
    return result.value


def is_kib_suffixed(raw) -> bool:
    value = _clean(raw)
    return value.lower().endswith('ki') or bool(_BARE_K_RE.match(value))


def is_plain_integer(raw) -> bool:
    return bool(_INT_RE.match(_clean(raw)))


def cpu_to_cores(raw) -> float:
    value = _clean(raw)
    if not value:
        return 0.0
    scale = 1.0
    if value[-1] in ('m', 'u', 'n'):
        scale = {'m': 1e-3, 'u': 1e-6, 'n': 1e-9}[value[-1]]
        value = value[:-1]
    try:
        cores = float(value) * scale
    except ValueError:
        return 0.0
    if not math.isfinite(cores) or cores < 0:
        return 0.0
    return cores


def percent(part: float, whole: float) -> float:
    if not whole or whole <= 0:
        return 0.0
    return round(part * 100.0 / whole, 1)


def format_quantity(amount: Decimal, kind: str) -> str:
    """Render a summed quantity the way the API server prints it.

    CPU is always printed in millicores. Memory and storage are printed with
    the largest binary suffix that divides them, as a plain byte count
    otherwise, and in milli-units when the sum is fractional.
    """
    if kind == 'cpu':
        milli = (amount * 1000).to_integral_value(rounding=ROUND_CEILING)
        return f'{int(milli)}m'
    if amount != amount.to_integral_value():
        milli = (amount * 1000).to_integral_value(rounding=ROUND_CEILING)
        return f'{int(milli)}m'
    count = int(amount)
    if count == 0:
        return '0'
    for suffix, size in _BINARY_UNITS:
        if count % size == 0:
            return f'{count // size}{suffix}'
    return str(count)


def format_cpu(cores: float) -> str:
    if cores >= 1:
        return f'{cores:.1f}'
    return f'{int(round(cores * 1000))}m'


def format_gib(value: float) -> str:
    return f'{value:.1f}Gi'
