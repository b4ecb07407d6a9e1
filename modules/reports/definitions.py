# -*- coding: utf-8 -*-
"""
Per-report-type aggregation settings: which filters apply, how a record
becomes a display row, which summary metrics and breakdowns are computed.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import selectinload

from models import (
    Booking,
    Invoice,
    Job,
    JobAssignment,
    LeaveRequest,
    InventoryItem,
    User,
    BOOKING_STATUSES,
    SERVICE_TYPES,
    PRIORITIES,
    PAYMENT_STATUSES,
    PAYMENT_METHODS,
    JOB_STATUSES,
    JOB_CATEGORIES,
    LEAVE_TYPES,
    LEAVE_STATUSES,
    INVENTORY_CATEGORIES,
    USER_ROLES,
)
from .aggregator import BreakdownSpec, ReportDefinition
from .filters import ReportFilters
from .metrics import (
    NOT_AVAILABLE,
    average,
    display_category,
    first_number,
    normalize_category,
    rate,
    safe_number,
    safe_sum,
)

RECENT_REGISTRATION_DAYS = 30


# ---------------------------------------------------------------------------
# Shared projections
# ---------------------------------------------------------------------------

def record_code(code: Optional[str], prefix: str, pk: Any) -> str:
    if code:
        return code
    return f"{prefix}-{int(pk or 0):06d}"


def person_name(user: Optional[User]) -> str:
    """Display name of a referenced user; a missing reference is ``"N/A"``."""
    if user is None:
        return NOT_AVAILABLE
    name = f"{user.first_name or ''} {user.last_name or ''}".strip()
    return name or user.username or NOT_AVAILABLE


def vehicle_info(vehicle) -> str:
    if vehicle is None:
        return NOT_AVAILABLE
    make = vehicle.make or NOT_AVAILABLE
    model = vehicle.model or NOT_AVAILABLE
    year = vehicle.year or NOT_AVAILABLE
    return f"{make} {model} ({year})"


def count_where(predicate: Callable[[Any], bool]) -> Callable[[List[Any]], int]:
    return lambda records: sum(1 for r in records if predicate(r))


def rate_where(predicate: Callable[[Any], bool]) -> Callable[[List[Any]], str]:
    return lambda records: rate(sum(1 for r in records if predicate(r)), len(records))


def sum_of(getter: Callable[[Any], Any], digits: int = 2) -> Callable[[List[Any]], float]:
    return lambda records: round(safe_sum(getter(r) for r in records), digits)


def total(records: List[Any]) -> int:
    return len(records)


def _normalized(column):
    """SQL mirror of :func:`normalize_category`, so filters and breakdowns agree."""
    return func.replace(func.replace(func.lower(func.trim(column)), ' ', '_'), '-', '_')


def _equals(column, value: Optional[str]):
    return _normalized(column) == normalize_category(value)


def _in_range(query, column, filters: ReportFilters):
    """Inclusive whole-day range on ``column``; applied only when both bounds are set."""
    if filters.has_range:
        query = query.filter(column >= filters.range_start(), column < filters.range_end())
    return query


# ---------------------------------------------------------------------------
# Bookings
# ---------------------------------------------------------------------------

def _booking_status(b) -> str:
    return normalize_category(b.status, BOOKING_STATUSES)


def _booking_revenue(b) -> float:
    return first_number(b.actual_cost, b.estimated_cost)


def _bookings_query(filters: ReportFilters):
    q = Booking.query.options(
        selectinload(Booking.customer),
        selectinload(Booking.vehicle),
        selectinload(Booking.assigned_inspector),
    )
    if filters.status:
        q = q.filter(_equals(Booking.status, filters.status))
    if filters.service_type:
        q = q.filter(_equals(Booking.service_type, filters.service_type))
    if filters.priority:
        q = q.filter(_equals(Booking.priority, filters.priority))
    q = _in_range(q, Booking.scheduled_date, filters)
    return q.order_by(Booking.created_at.desc(), Booking.id.desc())


def _booking_row(b) -> Dict[str, Any]:
    return {
        'bookingId': record_code(b.booking_code, 'BK', b.id),
        'customerName': person_name(b.customer),
        'vehicleInfo': vehicle_info(b.vehicle),
        'inspectorName': person_name(b.assigned_inspector),
        'serviceType': display_category(b.service_type, SERVICE_TYPES),
        'scheduledDate': b.scheduled_date,
        'status': display_category(b.status, BOOKING_STATUSES),
        'priority': display_category(b.priority, PRIORITIES),
        'estimatedCost': safe_number(b.estimated_cost),
        'actualCost': safe_number(b.actual_cost),
    }


BOOKINGS = ReportDefinition(
    report_type='bookings',
    title='Bookings Report',
    description='Comprehensive overview of vehicle service bookings',
    filter_keys=('status', 'serviceType', 'priority', 'dateFrom', 'dateTo'),
    query=_bookings_query,
    project=_booking_row,
    summary=(
        ('totalBookings', total),
        ('completedBookings', count_where(lambda b: _booking_status(b) == 'completed')),
        ('inProgressBookings', count_where(lambda b: _booking_status(b) in ('inspecting', 'working', 'in_progress'))),
        ('totalRevenue', sum_of(_booking_revenue)),
        ('completionRate', rate_where(lambda b: _booking_status(b) == 'completed')),
    ),
    breakdowns=(
        BreakdownSpec('bookingsByStatus', _booking_status),
        BreakdownSpec(
            'bookingsByServiceType',
            lambda b: normalize_category(b.service_type, SERVICE_TYPES),
            {'averageCost': lambda rs: average([_booking_revenue(b) for b in rs], 2)},
        ),
    ),
)


# ---------------------------------------------------------------------------
# Payments (invoices)
# ---------------------------------------------------------------------------

def _payment_status(i) -> str:
    return normalize_category(i.payment_status, PAYMENT_STATUSES)


def _payments_query(filters: ReportFilters):
    q = Invoice.query.options(selectinload(Invoice.customer), selectinload(Invoice.booking))
    if filters.payment_status:
        q = q.filter(_equals(Invoice.payment_status, filters.payment_status))
    q = _in_range(q, Invoice.issue_date, filters)
    return q.order_by(Invoice.created_at.desc(), Invoice.id.desc())


def _invoice_row(i) -> Dict[str, Any]:
    return {
        'invoiceId': record_code(i.invoice_code, 'INV', i.id),
        'bookingId': (i.booking.booking_code or record_code(None, 'BK', i.booking.id)) if i.booking else NOT_AVAILABLE,
        'customerName': person_name(i.customer),
        'issueDate': i.issue_date or i.created_at,
        'dueDate': i.due_date,
        'subtotal': safe_number(i.subtotal),
        'tax': safe_number(i.tax),
        'totalAmount': safe_number(i.total_amount),
        'paymentStatus': display_category(i.payment_status, PAYMENT_STATUSES),
        'paymentMethod': display_category(i.payment_method, PAYMENT_METHODS),
    }


def _average_invoice(records: List[Any]) -> float:
    if not records:
        return 0
    return round(safe_sum(i.total_amount for i in records) / len(records), 2)


PAYMENTS = ReportDefinition(
    report_type='payments',
    title='Payments Report',
    description='Financial summary of invoices and payments',
    filter_keys=('paymentStatus', 'dateFrom', 'dateTo'),
    query=_payments_query,
    project=_invoice_row,
    summary=(
        ('totalInvoices', total),
        ('paidInvoices', count_where(lambda i: _payment_status(i) == 'paid')),
        ('totalRevenue', sum_of(lambda i: i.total_amount)),
        ('averageInvoice', _average_invoice),
        ('paymentRate', rate_where(lambda i: _payment_status(i) == 'paid')),
    ),
    breakdowns=(
        BreakdownSpec(
            'paymentsByStatus',
            _payment_status,
            {'totalAmount': sum_of(lambda i: i.total_amount)},
        ),
    ),
)


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------

def _job_status(j) -> str:
    return normalize_category(j.status, JOB_STATUSES)


def _job_hours(j) -> float:
    return first_number(j.actual_hours, j.estimated_hours)


def _jobs_query(filters: ReportFilters):
    q = Job.query.options(
        selectinload(Job.booking),
        selectinload(Job.assignments).selectinload(JobAssignment.labourer),
    )
    if filters.status:
        q = q.filter(_equals(Job.status, filters.status))
    if filters.category:
        q = q.filter(_equals(Job.category, filters.category))
    if filters.priority:
        q = q.filter(_equals(Job.priority, filters.priority))
    if filters.technician_id is not None:
        q = q.filter(Job.assignments.any(JobAssignment.labourer_id == filters.technician_id))
    q = _in_range(q, Job.created_at, filters)
    return q.order_by(Job.created_at.desc(), Job.id.desc())


def _technician_names(j) -> str:
    if not j.assignments:
        return 'Unassigned'
    return ', '.join(person_name(a.labourer) for a in j.assignments)


def _job_row(j) -> Dict[str, Any]:
    return {
        'jobId': record_code(j.job_code, 'JB', j.id),
        'bookingId': (j.booking.booking_code or record_code(None, 'BK', j.booking.id)) if j.booking else NOT_AVAILABLE,
        'title': j.title or NOT_AVAILABLE,
        'category': display_category(j.category, JOB_CATEGORIES),
        'technicianName': _technician_names(j),
        'status': display_category(j.status, JOB_STATUSES),
        'priority': display_category(j.priority, PRIORITIES),
        'estimatedHours': safe_number(j.estimated_hours),
        'actualHours': safe_number(j.actual_hours),
        'createdAt': j.created_at,
        'completedAt': j.completed_at,
    }


JOBS = ReportDefinition(
    report_type='jobs',
    title='Jobs Report',
    description='Technical work assignments and completion status',
    filter_keys=('status', 'category', 'priority', 'technicianId', 'dateFrom', 'dateTo'),
    query=_jobs_query,
    project=_job_row,
    summary=(
        ('totalJobs', total),
        ('completedJobs', count_where(lambda j: _job_status(j) == 'completed')),
        ('inProgressJobs', count_where(lambda j: _job_status(j) in ('working', 'in_progress'))),
        ('totalHours', sum_of(_job_hours, 1)),
        ('completionRate', rate_where(lambda j: _job_status(j) == 'completed')),
    ),
    breakdowns=(
        BreakdownSpec(
            'jobsByCategory',
            lambda j: normalize_category(j.category, JOB_CATEGORIES),
            {'averageHours': lambda rs: average([_job_hours(j) for j in rs], 1)},
        ),
        BreakdownSpec('jobsByStatus', _job_status),
    ),
)


# ---------------------------------------------------------------------------
# Leave requests
# ---------------------------------------------------------------------------

def _leave_status(l) -> str:
    return normalize_category(l.status, LEAVE_STATUSES)


def _leaves_query(filters: ReportFilters):
    q = LeaveRequest.query.options(
        selectinload(LeaveRequest.employee),
        selectinload(LeaveRequest.approved_by),
    )
    if filters.status:
        q = q.filter(_equals(LeaveRequest.status, filters.status))
    if filters.leave_type:
        q = q.filter(_equals(LeaveRequest.leave_type, filters.leave_type))
    if filters.employee_id is not None:
        q = q.filter(LeaveRequest.employee_id == filters.employee_id)
    if filters.has_range:
        # any overlap between the leave period and the requested range
        q = q.filter(
            LeaveRequest.start_date < filters.range_end(),
            func.coalesce(LeaveRequest.end_date, LeaveRequest.start_date) >= filters.range_start(),
        )
    return q.order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc())


def _leave_row(l) -> Dict[str, Any]:
    return {
        'requestId': record_code(l.request_code, 'LV', l.id),
        'employeeName': person_name(l.employee),
        'leaveType': display_category(l.leave_type, LEAVE_TYPES),
        'startDate': l.start_date,
        'endDate': l.end_date,
        'totalDays': safe_number(l.total_days),
        'status': display_category(l.status, LEAVE_STATUSES),
        'approvedByName': person_name(l.approved_by),
    }


LEAVES = ReportDefinition(
    report_type='leaves',
    title='Leave Requests Report',
    description='Employee leave requests and approvals',
    filter_keys=('status', 'leaveType', 'employeeId', 'dateFrom', 'dateTo'),
    query=_leaves_query,
    project=_leave_row,
    summary=(
        ('totalRequests', total),
        ('approvedRequests', count_where(lambda l: _leave_status(l) == 'approved')),
        ('pendingRequests', count_where(lambda l: _leave_status(l) == 'pending')),
        ('totalDays', sum_of(lambda l: l.total_days, 1)),
        ('approvalRate', rate_where(lambda l: _leave_status(l) == 'approved')),
    ),
    breakdowns=(
        BreakdownSpec(
            'leavesByType',
            lambda l: normalize_category(l.leave_type, LEAVE_TYPES),
            {'totalDays': sum_of(lambda l: l.total_days, 1)},
        ),
        BreakdownSpec('leavesByStatus', _leave_status),
    ),
)


# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------

def is_low_stock(item) -> bool:
    """At or below the reorder threshold (includes out-of-stock items)."""
    return safe_number(item.current_stock) <= safe_number(item.minimum_stock)


def is_out_of_stock(item) -> bool:
    return safe_number(item.current_stock) <= 0


def stock_status(item) -> str:
    if is_out_of_stock(item):
        return 'out_of_stock'
    if is_low_stock(item):
        return 'low_stock'
    return 'in_stock'


def _item_value(item) -> float:
    return safe_number(item.current_stock) * safe_number(item.unit_price)


def _inventory_query(filters: ReportFilters):
    q = InventoryItem.query
    current = func.coalesce(InventoryItem.current_stock, 0)
    if filters.category:
        q = q.filter(_equals(InventoryItem.category, filters.category))
    if filters.low_stock:
        q = q.filter(current <= func.coalesce(InventoryItem.minimum_stock, 0))
    if filters.out_of_stock:
        q = q.filter(current <= 0)
    return q.order_by(InventoryItem.name.asc(), InventoryItem.id.asc())


def _item_row(item) -> Dict[str, Any]:
    return {
        'itemId': record_code(item.item_code, 'IT', item.id),
        'name': item.name or NOT_AVAILABLE,
        'category': display_category(item.category, INVENTORY_CATEGORIES),
        'brand': item.brand or NOT_AVAILABLE,
        'currentStock': safe_number(item.current_stock),
        'minimumStock': safe_number(item.minimum_stock),
        'unit': item.unit or 'piece',
        'unitPrice': safe_number(item.unit_price),
        'totalValue': round(_item_value(item), 2),
        'stockStatus': stock_status(item),
    }


def low_stock_alerts(records: List[Any]) -> List[Dict[str, Any]]:
    """Items at or below threshold that still have stock; empty shelves are
    reported through ``outOfStockItems`` instead."""
    return [_item_row(i) for i in records if is_low_stock(i) and not is_out_of_stock(i)]


INVENTORY = ReportDefinition(
    report_type='inventory',
    title='Inventory Report',
    description='Parts and supplies inventory analysis',
    filter_keys=('category', 'lowStock', 'outOfStock'),
    query=_inventory_query,
    project=_item_row,
    summary=(
        ('totalItems', total),
        ('lowStockItems', count_where(is_low_stock)),
        ('outOfStockItems', count_where(is_out_of_stock)),
        ('totalValue', sum_of(_item_value)),
        ('stockHealth', rate_where(lambda i: not is_low_stock(i))),
    ),
    breakdowns=(
        BreakdownSpec(
            'itemsByCategory',
            lambda i: normalize_category(i.category, INVENTORY_CATEGORIES),
            {'totalValue': sum_of(_item_value)},
        ),
    ),
    extras=(
        ('lowStockAlerts', low_stock_alerts),
    ),
)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

def _user_role(u) -> str:
    return normalize_category(u.role, USER_ROLES)


def _is_active(u) -> bool:
    return bool(u.active)


def _users_query(filters: ReportFilters):
    q = User.query
    if filters.role:
        q = q.filter(_equals(User.role, filters.role))
    # any status other than "active" selects the inactive accounts
    if filters.status:
        if normalize_category(filters.status) == 'active':
            q = q.filter(User.active.is_(True))
        else:
            q = q.filter(or_(User.active.is_(False), User.active.is_(None)))
    if filters.specialization:
        q = q.filter(User.specialization.ilike(f"%{filters.specialization}%"))
    # either bound alone narrows the registration window
    if filters.date_from is not None:
        q = q.filter(User.created_at >= filters.range_start())
    if filters.date_to is not None:
        q = q.filter(User.created_at < filters.range_end())
    return q.order_by(User.created_at.desc(), User.id.desc())


def _user_row(u) -> Dict[str, Any]:
    return {
        'userId': record_code(None, 'US', u.id),
        'username': u.username,
        'email': u.email or NOT_AVAILABLE,
        'firstName': u.first_name or '',
        'lastName': u.last_name or '',
        'role': display_category(u.role, USER_ROLES),
        'phone': u.phone or NOT_AVAILABLE,
        'specialization': u.specialization or NOT_AVAILABLE,
        'isActive': _is_active(u),
        'createdAt': u.created_at,
        'lastLogin': u.last_login_at,
        'loyaltyPoints': int(safe_number(u.loyalty_points)),
    }


def _recent_registrations(records: List[Any]) -> int:
    cutoff = datetime.utcnow() - timedelta(days=RECENT_REGISTRATION_DAYS)
    return sum(1 for u in records if u.created_at is not None and u.created_at >= cutoff)


def _has_profile(u) -> bool:
    return bool((u.first_name or '').strip() or (u.last_name or '').strip())


USERS = ReportDefinition(
    report_type='users',
    title='Users Report',
    description='System user accounts and role distribution',
    filter_keys=('role', 'status', 'specialization', 'dateFrom', 'dateTo'),
    query=_users_query,
    project=_user_row,
    summary=(
        ('totalUsers', total),
        ('activeUsers', count_where(_is_active)),
        ('inactiveUsers', count_where(lambda u: not _is_active(u))),
        ('recentRegistrations', _recent_registrations),
        ('profileCompletionRate', rate_where(_has_profile)),
    ),
    breakdowns=(
        BreakdownSpec(
            'roleDistribution',
            _user_role,
            {
                'active': count_where(_is_active),
                'inactive': count_where(lambda u: not _is_active(u)),
            },
        ),
    ),
    extras=(
        ('activeUsersPercentage', rate_where(_is_active)),
    ),
)


DEFINITIONS: Dict[str, ReportDefinition] = {
    d.report_type: d for d in (BOOKINGS, PAYMENTS, JOBS, LEAVES, INVENTORY, USERS)
}
