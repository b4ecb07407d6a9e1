# -*- coding: utf-8 -*-
from __future__ import annotations

from datetime import date, datetime

import pytest

from modules.reports.errors import ReportValidationError
from modules.reports.filters import ReportFilters, current_month_filters, parse_date, parse_filters


def test_parse_filters_reads_query_vocabulary():
    f = parse_filters({
        'status': ' completed ',
        'serviceType': 'oil_change',
        'technicianId': '7',
        'lowStock': 'true',
        'outOfStock': 'no',
        'dateFrom': '2024-01-01',
        'dateTo': '2024-01-31T18:00:00',
        'format': 'json',
        'unexpected': 'ignored',
    })
    assert f.status == 'completed'
    assert f.service_type == 'oil_change'
    assert f.technician_id == 7
    assert f.low_stock is True
    assert f.out_of_stock is False
    assert f.date_from == date(2024, 1, 1)
    assert f.date_to == date(2024, 1, 31)
    assert f.has_range


def test_blank_values_are_absent():
    f = parse_filters({'status': '   ', 'dateFrom': '', 'employeeId': ''})
    assert f == ReportFilters()


def test_inverted_range_rejected():
    with pytest.raises(ReportValidationError) as exc:
        parse_filters({'dateFrom': '2024-02-01', 'dateTo': '2024-01-01'})
    assert exc.value.status_code == 400


def test_same_day_range_is_valid():
    f = parse_filters({'dateFrom': '2024-02-01', 'dateTo': '2024-02-01'})
    assert f.range_start() == datetime(2024, 2, 1)
    assert f.range_end() == datetime(2024, 2, 2)


@pytest.mark.parametrize('value', ['2024-13-01', 'soon', '01/02/2024', '2024-01-15garbage', '2024-01-15 junk'])
def test_unparseable_dates(value):
    with pytest.raises(ReportValidationError):
        parse_date(value, 'dateFrom')


def test_with_technician_overrides_supplied_id():
    f = parse_filters({'technicianId': '99', 'status': 'working'})
    scoped = f.with_technician(3)
    assert scoped.technician_id == 3
    assert scoped.status == 'working'
    assert f.technician_id == 99


def test_to_dict_uses_query_names():
    d = ReportFilters(payment_status='paid', date_from=date(2024, 5, 1)).to_dict()
    assert d['paymentStatus'] == 'paid'
    assert d['dateFrom'] == '2024-05-01'
    assert d['dateTo'] is None


def test_current_month_filters():
    f = current_month_filters(date(2024, 2, 10))
    assert (f.date_from, f.date_to) == (date(2024, 2, 1), date(2024, 2, 29))
