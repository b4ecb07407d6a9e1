# -*- coding: utf-8 -*-
"""
HTML rendering of report bundles.

A report document is the shared ``base.html`` layout with the report
type's ``<type>-report.html`` fragment placed in its ``content_template``
slot. Compiled template pairs are memoized per report type inside the
renderer; nothing global is mutated per request.
"""
from __future__ import annotations

import base64
import logging
import os
import threading
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional, Tuple

from jinja2 import Environment, FileSystemLoader, Template, TemplateError, TemplateNotFound, select_autoescape

from .aggregator import ReportBundle
from .errors import RenderError, TemplateNotFoundError
from .filters import ReportFilters
from .metrics import NOT_AVAILABLE, safe_number
from .themes import get_theme

logger = logging.getLogger(__name__)

LAYOUT_TEMPLATE = 'base.html'

REPORT_TITLES = {
    'bookings': 'Bookings Report',
    'payments': 'Payments Report',
    'jobs': 'Jobs Report',
    'leaves': 'Leave Requests Report',
    'inventory': 'Inventory Report',
    'users': 'Users Report',
}

REPORT_SUBTITLES = {
    'bookings': 'Comprehensive overview of vehicle service bookings',
    'payments': 'Financial summary of invoices and payments',
    'jobs': 'Technical work assignments and completion status',
    'leaves': 'Employee leave requests and approvals',
    'inventory': 'Parts and supplies inventory analysis',
    'users': 'System user accounts and role distribution',
}


# ---------------------------------------------------------------------------
# Template helpers
# ---------------------------------------------------------------------------

def _is_blank(value: Any) -> bool:
    return value is None or value == '' or value == 'Never'


def _to_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
        except ValueError:
            return None
    return None


def _clock(dt: datetime) -> str:
    hour = dt.hour % 12 or 12
    return f"{hour}:{dt:%M} {'AM' if dt.hour < 12 else 'PM'}"


def format_date(value: Any) -> str:
    """``Jan 05, 2024``; ``N/A`` for empty input, ``Invalid Date`` when unparseable."""
    if _is_blank(value):
        return NOT_AVAILABLE
    dt = _to_datetime(value)
    if dt is None:
        return 'Invalid Date'
    return f"{dt:%b %d, %Y}"


def format_datetime(value: Any) -> str:
    """``Jan 05, 2024 at 3:07 PM``; same empty/invalid handling as :func:`format_date`."""
    if _is_blank(value):
        return NOT_AVAILABLE
    dt = _to_datetime(value)
    if dt is None:
        return 'Invalid Date'
    return f"{dt:%b %d, %Y} at {_clock(dt)}"


def format_currency(amount: Any) -> str:
    """Two decimals with thousands separators, no symbol."""
    return f"{safe_number(amount):,.2f}"


def format_percent(value: Any) -> str:
    return f"{safe_number(value):.1f}"


def titleize(value: Any) -> str:
    """``oil_change`` -> ``Oil change``; ``N/A`` and empty values pass through."""
    if value is None or value == '':
        return NOT_AVAILABLE
    text = str(value)
    if text == NOT_AVAILABLE:
        return text
    text = text.replace('_', ' ')
    return text[:1].upper() + text[1:]


def eq(a: Any, b: Any) -> bool:
    return a == b


def gt(a: Any, b: Any) -> bool:
    try:
        return a > b
    except TypeError:
        return False


def lt(a: Any, b: Any) -> bool:
    try:
        return a < b
    except TypeError:
        return False


TEMPLATE_FILTERS = {
    'format_date': format_date,
    'format_datetime': format_datetime,
    'format_currency': format_currency,
    'format_percent': format_percent,
    'titleize': titleize,
}

TEMPLATE_GLOBALS = {
    'eq': eq,
    'gt': gt,
    'lt': lt,
}


# ---------------------------------------------------------------------------
# Render context
# ---------------------------------------------------------------------------

def report_period(filters: Optional[ReportFilters]) -> str:
    if filters is not None and filters.has_range:
        return f"{format_date(filters.date_from)} - {format_date(filters.date_to)}"
    return 'All Time'


def build_render_context(
    report_type: str,
    bundle: ReportBundle,
    filters: Optional[ReportFilters],
    generated_by: str,
    logo_base64: str = '',
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Metadata, theme and the bundle's fields merged into one template context."""
    now = now or datetime.now()
    context: Dict[str, Any] = {
        'reportTitle': REPORT_TITLES.get(report_type, 'Report'),
        'reportSubtitle': REPORT_SUBTITLES.get(report_type, 'System report'),
        'generatedBy': generated_by or 'System Administrator',
        'generatedDate': f"{now:%B %d, %Y}",
        'reportPeriod': report_period(filters),
        'totalRecords': bundle.total_records,
        'reportType': report_type[:1].upper() + report_type[1:],
        'currentYear': now.year,
        'timestamp': f"{now:%B %d, %Y} at {_clock(now)}",
        'logoBase64': logo_base64,
        'theme': get_theme(report_type),
    }
    context.update(bundle.context())
    return context


# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------

class ReportRenderer:
    """Binds report bundles into complete, self-contained HTML documents."""

    def __init__(self, template_dir: str, logo_path: Optional[str] = None):
        self.template_dir = template_dir
        self.logo_path = logo_path
        self.env = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(['html']),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters.update(TEMPLATE_FILTERS)
        self.env.globals.update(TEMPLATE_GLOBALS)
        self._compiled: Dict[str, Tuple[Template, Template]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def content_template_name(report_type: str) -> str:
        return f"{report_type}-report.html"

    def templates_for(self, report_type: str) -> Tuple[Template, Template]:
        """Compiled ``(layout, content)`` pair for ``report_type``.

        A missing fragment raises :class:`TemplateNotFoundError`; failures are
        not memoized, so a later request retries the load.
        """
        cached = self._compiled.get(report_type)
        if cached is not None:
            return cached
        name = self.content_template_name(report_type)
        try:
            layout = self.env.get_template(LAYOUT_TEMPLATE)
            content = self.env.get_template(name)
        except TemplateNotFound as exc:
            logger.error('Error loading template %s: %s', exc.name, exc)
            raise TemplateNotFoundError(exc.name or name) from exc
        except TemplateError as exc:
            logger.error('Error compiling template %s: %s', name, exc)
            raise RenderError(f"Template {name} could not be compiled") from exc
        with self._lock:
            pair = self._compiled.setdefault(report_type, (layout, content))
        return pair

    def load_logo(self) -> str:
        """Company logo as base64; an absent logo is not an error."""
        if not self.logo_path:
            return ''
        try:
            with open(self.logo_path, 'rb') as f:
                return base64.b64encode(f.read()).decode('ascii')
        except OSError:
            logger.warning('Logo file not found at %s, proceeding without logo', self.logo_path)
            return ''

    def render(
        self,
        report_type: str,
        bundle: ReportBundle,
        filters: Optional[ReportFilters] = None,
        generated_by: str = 'System Administrator',
        now: Optional[datetime] = None,
    ) -> str:
        layout, content = self.templates_for(report_type)
        context = build_render_context(
            report_type,
            bundle,
            filters,
            generated_by,
            logo_base64=self.load_logo(),
            now=now,
        )
        context['content_template'] = content
        try:
            return layout.render(context)
        except Exception as exc:
            logger.exception('Error rendering %s report: %s', report_type, exc)
            raise RenderError(f"Failed to render {report_type} report") from exc


def renderer_from_config(config: Mapping[str, Any]) -> ReportRenderer:
    template_dir = config.get('REPORTS_TEMPLATE_DIR') or os.path.join(
        os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))),
        'templates', 'reports',
    )
    return ReportRenderer(template_dir, logo_path=config.get('REPORTS_LOGO_PATH'))
