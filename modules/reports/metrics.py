# -*- coding: utf-8 -*-
"""
Numeric helpers shared by every report: safe sums, rates, category
normalization and the breakdown (group-by with percentage share) builder.
"""
from __future__ import annotations

import math
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

UNKNOWN = "unknown"
NOT_AVAILABLE = "N/A"


def safe_number(value: Any) -> float:
    """Coerce a field to a float; missing, non-numeric, NaN and inf count as 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        num = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(num) or math.isinf(num):
        return 0.0
    return num


def first_number(*values: Any) -> float:
    """First value that is a non-zero number, else 0 (``actual or estimated or 0``)."""
    for v in values:
        num = safe_number(v)
        if num:
            return num
    return 0.0


def safe_sum(values: Iterable[Any]) -> float:
    return sum((safe_number(v) for v in values), 0.0)


def rate(part: float, total: float) -> str:
    """``part/total`` as a one-decimal percentage string; ``"0.0"`` when total is 0."""
    if not total:
        return "0.0"
    return f"{(part / total) * 100:.1f}"


def normalize_category(value: Any, vocabulary: Optional[Sequence[str]] = None) -> str:
    """Map a raw categorical value onto the fixed vocabulary, or ``"unknown"``."""
    if value is None:
        return UNKNOWN
    text = str(value).strip().lower().replace(" ", "_").replace("-", "_")
    if not text:
        return UNKNOWN
    if vocabulary is not None and text not in vocabulary:
        return UNKNOWN
    return text


def display_category(value: Any, vocabulary: Optional[Sequence[str]] = None) -> str:
    """Display form of a categorical value: normalized, or ``"N/A"`` when unknown."""
    norm = normalize_category(value, vocabulary)
    return NOT_AVAILABLE if norm == UNKNOWN else norm


def allot_percentages(counts: Sequence[int]) -> List[float]:
    """Percentage share of each count at one-decimal precision.

    Uses the largest-remainder method on tenths of a percent, so the shares of
    a positive total always add up to exactly 100.0. A zero total yields 0.0
    for every entry.
    """
    total = sum(counts)
    if total <= 0:
        return [0.0 for _ in counts]
    tenths = [(c * 1000) // total for c in counts]
    remainders = [(c * 1000) % total for c in counts]
    shortfall = 1000 - sum(tenths)
    order = sorted(range(len(counts)), key=lambda i: (-remainders[i], i))
    for i in order[:shortfall]:
        tenths[i] += 1
    return [t / 10 for t in tenths]


def build_breakdown(
    records: Iterable[Any],
    key: Callable[[Any], str],
    extras: Optional[Dict[str, Callable[[List[Any]], Any]]] = None,
) -> List[Dict[str, Any]]:
    """Partition ``records`` by ``key`` and annotate each partition.

    Each entry is ``{category, count, percentage, **extras}`` where every extra
    is computed from the partition's records. Entries are ordered by count
    descending, then category ascending.
    """
    groups: Dict[str, List[Any]] = {}
    for rec in records:
        cat = key(rec) or UNKNOWN
        groups.setdefault(cat, []).append(rec)

    ordered = sorted(groups.items(), key=lambda kv: (-len(kv[1]), kv[0]))
    shares = allot_percentages([len(members) for _, members in ordered])

    out: List[Dict[str, Any]] = []
    for (cat, members), pct in zip(ordered, shares):
        entry = {"category": cat, "count": len(members), "percentage": pct}
        for name, fn in (extras or {}).items():
            entry[name] = fn(members)
        out.append(entry)
    return out


def average(values: Sequence[Any], digits: Optional[int] = None) -> float:
    if not values:
        return 0.0
    avg = safe_sum(values) / len(values)
    return round(avg, digits) if digits is not None else avg
