# -*- coding: utf-8 -*-
"""
Report filters: parsing raw query arguments into a typed filter record,
date-range validation and the date bounds used by the store queries.
"""
from __future__ import annotations

import calendar
from dataclasses import dataclass, fields, replace
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Mapping, Optional

from .errors import ReportValidationError

TRUE_VALUES = ('1', 'true', 'yes', 'on')


@dataclass(frozen=True)
class ReportFilters:
    """Recognized filter keys across all report types.

    Each report type reads only the keys it understands; anything else is
    ignored. ``date_from``/``date_to`` are calendar days, both inclusive.
    """

    status: Optional[str] = None
    service_type: Optional[str] = None
    priority: Optional[str] = None
    payment_status: Optional[str] = None
    category: Optional[str] = None
    technician_id: Optional[int] = None
    leave_type: Optional[str] = None
    employee_id: Optional[int] = None
    role: Optional[str] = None
    specialization: Optional[str] = None
    low_stock: bool = False
    out_of_stock: bool = False
    date_from: Optional[date] = None
    date_to: Optional[date] = None

    @property
    def has_range(self) -> bool:
        return self.date_from is not None and self.date_to is not None

    def range_start(self) -> Optional[datetime]:
        """Inclusive lower bound as a datetime (start of ``date_from``)."""
        if self.date_from is None:
            return None
        return datetime.combine(self.date_from, time.min)

    def range_end(self) -> Optional[datetime]:
        """Exclusive upper bound (start of the day after ``date_to``)."""
        if self.date_to is None:
            return None
        return datetime.combine(self.date_to + timedelta(days=1), time.min)

    def with_technician(self, technician_id: int) -> "ReportFilters":
        return replace(self, technician_id=technician_id)

    def to_dict(self) -> Dict[str, Any]:
        """Echo of the filters in the camelCase vocabulary of the query string."""
        out: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, date):
                value = value.isoformat()
            out[_CAMEL[f.name]] = value
        return out


# query-string name -> dataclass field
_QUERY_KEYS = {
    'status': 'status',
    'serviceType': 'service_type',
    'priority': 'priority',
    'paymentStatus': 'payment_status',
    'category': 'category',
    'technicianId': 'technician_id',
    'leaveType': 'leave_type',
    'employeeId': 'employee_id',
    'role': 'role',
    'specialization': 'specialization',
    'lowStock': 'low_stock',
    'outOfStock': 'out_of_stock',
    'dateFrom': 'date_from',
    'dateTo': 'date_to',
}
_CAMEL = {v: k for k, v in _QUERY_KEYS.items()}


def parse_date(value: Any, name: str) -> Optional[date]:
    """Parse ``YYYY-MM-DD`` (or a full ISO datetime) into a date."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace('Z', '+00:00')).date()
    except ValueError:
        raise ReportValidationError(f"Invalid {name}: expected YYYY-MM-DD, got '{text}'")


def _parse_int(value: Any, name: str) -> Optional[int]:
    if value is None or value == '':
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ReportValidationError(f"Invalid {name}: expected an integer id")


def _parse_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def validate_date_range(date_from: Optional[date], date_to: Optional[date]) -> None:
    if date_from and date_to and date_from > date_to:
        raise ReportValidationError('Invalid date range: dateFrom cannot be after dateTo')


def parse_filters(args: Mapping[str, Any]) -> ReportFilters:
    """Build a :class:`ReportFilters` from query arguments.

    Unrecognized keys are ignored. Raises :class:`ReportValidationError` for
    malformed values and for an inverted date range.
    """
    values: Dict[str, Any] = {}
    for query_key, attr in _QUERY_KEYS.items():
        raw = args.get(query_key)
        if attr in ('date_from', 'date_to'):
            values[attr] = parse_date(raw, query_key)
        elif attr in ('technician_id', 'employee_id'):
            values[attr] = _parse_int(raw, query_key)
        elif attr in ('low_stock', 'out_of_stock'):
            values[attr] = str(raw or '').strip().lower() in TRUE_VALUES
        else:
            values[attr] = _parse_text(raw)
    validate_date_range(values['date_from'], values['date_to'])
    return ReportFilters(**values)


def current_month_filters(today: Optional[date] = None) -> ReportFilters:
    """Filters spanning the calendar month containing ``today``."""
    today = today or date.today()
    last_day = calendar.monthrange(today.year, today.month)[1]
    return ReportFilters(date_from=today.replace(day=1), date_to=today.replace(day=last_day))
