# -*- coding: utf-8 -*-
"""Stage ordering and short-circuiting of the report pipeline."""
from __future__ import annotations

import os
import shutil
from datetime import date, datetime

import pytest

from conftest import FAKE_PDF, FakeEmitter
from modules.reports.errors import ReportValidationError, TemplateNotFoundError, UnsupportedFormatError
from modules.reports.filters import ReportFilters
from modules.reports.pipeline import ReportPipeline, normalize_format, reject_pdf, report_filename
from modules.reports.renderer import ReportRenderer

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
TEMPLATE_DIR = os.path.join(ROOT, 'templates', 'reports')


class SpyRenderer(ReportRenderer):
    def __init__(self, calls, template_dir=TEMPLATE_DIR):
        super().__init__(template_dir)
        self.calls = calls

    def render(self, *args, **kwargs):
        self.calls.append('render')
        return super().render(*args, **kwargs)


class SpyEmitter(FakeEmitter):
    def __init__(self, calls):
        super().__init__()
        self.order = calls

    def emit(self, html, options=None):
        self.order.append('emit')
        return super().emit(html, options)


def test_report_filename():
    assert report_filename('bookings', datetime(2024, 3, 7, 22, 10)) == 'bookings-report-2024-03-07.pdf'


def test_normalize_format():
    assert normalize_format(None) == 'pdf'
    assert normalize_format(' JSON ') == 'json'
    with pytest.raises(ReportValidationError):
        normalize_format('xlsx')


def test_reject_pdf():
    reject_pdf('dashboard', None)
    reject_pdf('dashboard', 'json')
    with pytest.raises(UnsupportedFormatError) as exc:
        reject_pdf('dashboard', 'pdf')
    assert exc.value.status_code == 501


def test_json_skips_render_and_emit(app_context):
    calls = []
    pipeline = ReportPipeline(SpyRenderer(calls), SpyEmitter(calls))
    result = pipeline.generate('payments', ReportFilters(payment_status='paid'), 'json', 'Cass Cashier')
    assert calls == []
    assert result.pdf is None
    body = result.to_json()
    assert body['success'] is True
    assert body['data']['reportType'] == 'payments'
    assert body['data']['summary']['paymentRate'] == '0.0'
    # only the filters payments understands are echoed
    assert body['filters'] == {'paymentStatus': 'paid', 'dateFrom': None, 'dateTo': None}
    assert 'generatedAt' in body


def test_pdf_renders_then_emits(app_context):
    calls = []
    emitter = SpyEmitter(calls)
    pipeline = ReportPipeline(SpyRenderer(calls), emitter)
    filters = ReportFilters(date_from=date(2024, 1, 1), date_to=date(2024, 1, 31))
    result = pipeline.generate('jobs', filters, 'pdf', 'Sam Advisor')
    assert calls == ['render', 'emit']
    assert result.pdf == FAKE_PDF
    assert result.filename == f"jobs-report-{result.generated_at:%Y-%m-%d}.pdf"
    html = emitter.calls[0]
    assert 'Jobs Report' in html
    assert 'Jan 01, 2024 - Jan 31, 2024' in html
    assert 'Sam Advisor' in html


def test_missing_template_never_reaches_emitter(app_context, tmp_path):
    shutil.copy(os.path.join(TEMPLATE_DIR, 'base.html'), tmp_path / 'base.html')
    calls = []
    emitter = SpyEmitter(calls)
    pipeline = ReportPipeline(SpyRenderer(calls, str(tmp_path)), emitter)
    with pytest.raises(TemplateNotFoundError):
        pipeline.generate('bookings', ReportFilters(), 'pdf')
    assert calls == ['render']
    assert emitter.calls == []


def test_aggregation_failure_stops_pipeline(app_context, monkeypatch):
    from modules.reports import pipeline as pipeline_module
    from modules.reports.errors import AggregationError

    def _fail(report_type, filters):
        raise AggregationError(report_type)

    monkeypatch.setattr(pipeline_module, 'aggregate', _fail)
    calls = []
    pipeline = ReportPipeline(SpyRenderer(calls), SpyEmitter(calls))
    with pytest.raises(AggregationError):
        pipeline.generate('inventory', ReportFilters(), 'pdf')
    assert calls == []
