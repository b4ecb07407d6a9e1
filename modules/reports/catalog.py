# -*- coding: utf-8 -*-
"""Which roles may run which report, and what each report accepts."""
from __future__ import annotations

from typing import Any, Dict, Tuple

REPORT_ROLES: Dict[str, Tuple[str, ...]] = {
    'bookings': ('cashier', 'manager', 'admin'),
    'payments': ('cashier', 'manager', 'admin'),
    'jobs': ('service_advisor', 'technician', 'manager', 'admin'),
    'leaves': ('admin', 'manager'),
    'inventory': ('manager', 'admin'),
    'users': ('admin', 'manager'),
    'dashboard': ('manager', 'admin'),
}

REPORT_CATALOG: Dict[str, Dict[str, Any]] = {
    'bookings': {
        'name': 'Bookings Report',
        'description': 'Comprehensive overview of vehicle service bookings',
        'filters': ['status', 'serviceType', 'priority', 'dateRange'],
        'formats': ['pdf', 'json'],
    },
    'payments': {
        'name': 'Payments Report',
        'description': 'Financial summary of invoices and payments',
        'filters': ['paymentStatus', 'dateRange'],
        'formats': ['pdf', 'json'],
    },
    'jobs': {
        'name': 'Jobs Report',
        'description': 'Technical work assignments and completion status',
        'filters': ['status', 'category', 'priority', 'technicianId', 'dateRange'],
        'formats': ['pdf', 'json'],
    },
    'leaves': {
        'name': 'Leave Requests Report',
        'description': 'Employee leave requests and approvals',
        'filters': ['status', 'leaveType', 'employeeId', 'dateRange'],
        'formats': ['pdf', 'json'],
    },
    'inventory': {
        'name': 'Inventory Report',
        'description': 'Parts and supplies inventory analysis',
        'filters': ['category', 'lowStock', 'outOfStock'],
        'formats': ['pdf', 'json'],
    },
    'users': {
        'name': 'Users Report',
        'description': 'System user accounts and role distribution',
        'filters': ['role', 'status', 'specialization', 'dateRange'],
        'formats': ['pdf', 'json'],
    },
    'dashboard': {
        'name': 'Dashboard Summary',
        'description': 'Current month headline figures across bookings, payments, jobs and inventory',
        'filters': [],
        'formats': ['json'],
    },
}


def role_allowed(report_type: str, role: str | None) -> bool:
    return (role or '') in REPORT_ROLES.get(report_type, ())


def available_reports(role: str | None) -> Dict[str, Dict[str, Any]]:
    return {
        key: dict(entry, roles=list(REPORT_ROLES[key]))
        for key, entry in REPORT_CATALOG.items()
        if role_allowed(key, role)
    }
