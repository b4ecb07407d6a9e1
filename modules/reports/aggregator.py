# -*- coding: utf-8 -*-
"""
Report aggregation: query the store, project display rows, compute the
summary metrics and the categorical breakdowns for one report type.

Every report type runs through the same ``query -> rows -> summary ->
breakdowns`` pipeline; what differs is captured by a ``ReportDefinition``
(see ``definitions.py``). Aggregation is a pure read and all-or-nothing:
any store failure becomes an :class:`AggregationError`.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from flask import current_app

from .errors import AggregationError, UnknownReportTypeError
from .filters import ReportFilters, current_month_filters
from .metrics import build_breakdown

logger = logging.getLogger(__name__)

Metric = Tuple[str, Callable[[List[Any]], Any]]


@dataclass(frozen=True)
class BreakdownSpec:
    """Group records by ``key`` and attach ``extras`` computed per partition."""

    name: str
    key: Callable[[Any], str]
    extras: Dict[str, Callable[[List[Any]], Any]] = field(default_factory=dict)


@dataclass(frozen=True)
class ReportDefinition:
    report_type: str
    title: str
    description: str
    filter_keys: Tuple[str, ...]
    query: Callable[[ReportFilters], Any]
    project: Callable[[Any], Dict[str, Any]]
    summary: Tuple[Metric, ...]
    breakdowns: Tuple[BreakdownSpec, ...] = ()
    extras: Tuple[Metric, ...] = ()


@dataclass
class ReportBundle:
    """Aggregated data for one report request. Never cached or persisted."""

    report_type: str
    rows: List[Dict[str, Any]]
    summary: Dict[str, Any]
    breakdowns: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)
    extras: Dict[str, Any] = field(default_factory=dict)

    @property
    def total_records(self) -> int:
        return len(self.rows)

    def context(self) -> Dict[str, Any]:
        """Bundle fields as template variables (breakdowns and extras flattened)."""
        ctx: Dict[str, Any] = {
            "rows": self.rows,
            "summary": self.summary,
            "breakdowns": self.breakdowns,
        }
        ctx.update(self.breakdowns)
        ctx.update(self.extras)
        return ctx

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "reportType": self.report_type,
            "rows": self.rows,
            "summary": self.summary,
            "breakdowns": self.breakdowns,
        }
        data.update(self.extras)
        return to_jsonable(data)


def to_jsonable(value: Any) -> Any:
    """Recursively convert dates to ISO strings for JSON responses."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def run_definition(definition: ReportDefinition, filters: Optional[ReportFilters] = None) -> ReportBundle:
    """Run the shared aggregation pipeline for one report definition."""
    filters = filters or ReportFilters()
    try:
        records = definition.query(filters).all()
        rows = [definition.project(rec) for rec in records]
        summary = {name: metric(records) for name, metric in definition.summary}
        breakdowns = {
            spec.name: build_breakdown(records, spec.key, spec.extras)
            for spec in definition.breakdowns
        }
        extras = {name: metric(records) for name, metric in definition.extras}
    except Exception as exc:
        logger.exception('Error generating %s report: %s', definition.report_type, exc)
        raise AggregationError(definition.report_type) from exc
    logger.debug('%s report aggregated: %d rows', definition.report_type, len(rows))
    return ReportBundle(
        report_type=definition.report_type,
        rows=rows,
        summary=summary,
        breakdowns=breakdowns,
        extras=extras,
    )


def get_definition(report_type: str) -> ReportDefinition:
    from .definitions import DEFINITIONS
    try:
        return DEFINITIONS[report_type]
    except KeyError:
        raise UnknownReportTypeError(f"Unknown report type: {report_type}")


def aggregate(report_type: str, filters: Optional[ReportFilters] = None) -> ReportBundle:
    return run_definition(get_definition(report_type), filters)


def bookings_report(filters: Optional[ReportFilters] = None) -> ReportBundle:
    return aggregate('bookings', filters)


def payments_report(filters: Optional[ReportFilters] = None) -> ReportBundle:
    return aggregate('payments', filters)


def jobs_report(filters: Optional[ReportFilters] = None) -> ReportBundle:
    return aggregate('jobs', filters)


def leaves_report(filters: Optional[ReportFilters] = None) -> ReportBundle:
    return aggregate('leaves', filters)


def inventory_report(filters: Optional[ReportFilters] = None) -> ReportBundle:
    return aggregate('inventory', filters)


def users_report(filters: Optional[ReportFilters] = None) -> ReportBundle:
    return aggregate('users', filters)


# ---------------------------------------------------------------------------
# Dashboard composite
# ---------------------------------------------------------------------------

DASHBOARD_SECTIONS: Sequence[str] = ('bookings', 'payments', 'jobs', 'inventory')


def dashboard_report(today: Optional[date] = None, max_workers: int = 4) -> Dict[str, Any]:
    """Current-month headline figures from four reports, aggregated concurrently.

    Inventory is a stock snapshot and is never date-filtered. Only the
    summary sections are merged.
    """
    month = current_month_filters(today)
    section_filters = {
        'bookings': month,
        'payments': month,
        'jobs': month,
        'inventory': ReportFilters(),
    }
    app = current_app._get_current_object()

    def _run(report_type: str) -> ReportBundle:
        with app.app_context():
            return aggregate(report_type, section_filters[report_type])

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix='dashboard') as pool:
        futures = {name: pool.submit(_run, name) for name in DASHBOARD_SECTIONS}
        try:
            bundles = {name: fut.result() for name, fut in futures.items()}
        except AggregationError as exc:
            logger.error('Dashboard section %s failed', exc.report_type)
            raise AggregationError('dashboard') from exc

    bookings = bundles['bookings'].summary
    payments = bundles['payments'].summary
    jobs = bundles['jobs'].summary
    inventory = bundles['inventory'].summary
    return {
        'summary': {
            'totalBookings': bookings['totalBookings'],
            'completedBookings': bookings['completedBookings'],
            'totalRevenue': payments['totalRevenue'],
            'paidInvoices': payments['paidInvoices'],
            'totalJobs': jobs['totalJobs'],
            'completedJobs': jobs['completedJobs'],
            'lowStockItems': inventory['lowStockItems'],
            'totalInventoryValue': inventory['totalValue'],
        },
        'sections': {name: bundles[name].summary for name in DASHBOARD_SECTIONS},
        'period': f"{month.date_from.isoformat()} to {month.date_to.isoformat()}",
    }
