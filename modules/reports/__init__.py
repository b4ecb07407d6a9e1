# -*- coding: utf-8 -*-
"""Report generation: aggregation, HTML rendering and PDF emission."""
from .aggregator import (
    ReportBundle,
    aggregate,
    bookings_report,
    payments_report,
    jobs_report,
    leaves_report,
    inventory_report,
    users_report,
    dashboard_report,
)
from .emitter import PdfEmitter, PdfOptions
from .errors import (
    ReportError,
    ReportValidationError,
    AggregationError,
    RenderError,
    TemplateNotFoundError,
    PDFGenerationError,
    UnsupportedFormatError,
)
from .filters import ReportFilters, parse_filters
from .pipeline import ReportPipeline, ReportResult, generate_report
from .renderer import ReportRenderer

__all__ = [
    "ReportBundle",
    "aggregate",
    "bookings_report",
    "payments_report",
    "jobs_report",
    "leaves_report",
    "inventory_report",
    "users_report",
    "dashboard_report",
    "PdfEmitter",
    "PdfOptions",
    "ReportError",
    "ReportValidationError",
    "AggregationError",
    "RenderError",
    "TemplateNotFoundError",
    "PDFGenerationError",
    "UnsupportedFormatError",
    "ReportFilters",
    "parse_filters",
    "ReportPipeline",
    "ReportResult",
    "generate_report",
    "ReportRenderer",
]
