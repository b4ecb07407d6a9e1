# -*- coding: utf-8 -*-
"""
Report orchestration: aggregate, then (for PDF) render and emit, strictly
in that order and stopping at the first failure.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from .aggregator import ReportBundle, aggregate, get_definition
from .emitter import PdfEmitter
from .errors import UnsupportedFormatError, ReportValidationError
from .filters import ReportFilters
from .renderer import ReportRenderer

logger = logging.getLogger(__name__)

FORMATS = ('pdf', 'json')


@dataclass
class ReportResult:
    report_type: str
    format: str
    bundle: ReportBundle
    filters: ReportFilters
    generated_at: datetime
    pdf: Optional[bytes] = None

    @property
    def filename(self) -> str:
        return report_filename(self.report_type, self.generated_at)

    def echo_filters(self) -> Dict[str, Any]:
        keys = get_definition(self.report_type).filter_keys
        return {k: v for k, v in self.filters.to_dict().items() if k in keys}

    def to_json(self) -> Dict[str, Any]:
        return {
            'success': True,
            'data': self.bundle.to_dict(),
            'filters': self.echo_filters(),
            'generatedAt': self.generated_at.isoformat(),
        }


def report_filename(report_type: str, when: Optional[datetime] = None) -> str:
    when = when or datetime.now()
    return f"{report_type}-report-{when:%Y-%m-%d}.pdf"


def normalize_format(fmt: Optional[str], default: str = 'pdf') -> str:
    value = (fmt or default).strip().lower()
    if value not in FORMATS:
        raise ReportValidationError(f"Unsupported format '{fmt}': expected one of {', '.join(FORMATS)}")
    return value


class ReportPipeline:
    """Aggregator -> Renderer -> Emitter for a single request."""

    def __init__(self, renderer: ReportRenderer, emitter: PdfEmitter):
        self.renderer = renderer
        self.emitter = emitter

    def generate(
        self,
        report_type: str,
        filters: Optional[ReportFilters] = None,
        fmt: str = 'pdf',
        generated_by: str = 'System Administrator',
    ) -> ReportResult:
        fmt = normalize_format(fmt)
        filters = filters or ReportFilters()
        generated_at = datetime.now()

        bundle = aggregate(report_type, filters)
        result = ReportResult(
            report_type=report_type,
            format=fmt,
            bundle=bundle,
            filters=filters,
            generated_at=generated_at,
        )
        if fmt != 'pdf':
            return result

        html = self.renderer.render(report_type, bundle, filters, generated_by, now=generated_at)
        result.pdf = self.emitter.emit(html)
        logger.info('%s report PDF generated for %s', report_type, generated_by)
        return result


def generate_report(
    report_type: str,
    filters: Optional[ReportFilters] = None,
    fmt: str = 'pdf',
    generated_by: str = 'System Administrator',
) -> ReportResult:
    """Run the current app's pipeline (``app.extensions['report_pipeline']``)."""
    from flask import current_app
    pipeline: ReportPipeline = current_app.extensions['report_pipeline']
    return pipeline.generate(report_type, filters, fmt, generated_by)


def reject_pdf(report_type: str, fmt: Optional[str]) -> None:
    """Reports without a PDF layout refuse ``format=pdf`` outright."""
    if normalize_format(fmt, default='json') == 'pdf':
        raise UnsupportedFormatError(f"PDF output is not available for the {report_type} report")
