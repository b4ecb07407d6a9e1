# -*- coding: utf-8 -*-
"""
Report pipeline errors. Each stage raises its own type so the HTTP layer
can tell a bad request from a failed aggregation, render or emission.
"""
from __future__ import annotations


class ReportError(Exception):
    """Base class for report pipeline failures."""

    status_code = 500
    code = "report_failed"
    public_message = "Report generation failed"

    def __init__(self, message: str | None = None, detail: str | None = None):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message
        # logged only, never sent to the client
        self.detail = detail or self.message


class ReportValidationError(ReportError):
    """Bad filter combination (e.g. inverted date range). Rejected before aggregation."""

    status_code = 400
    code = "invalid_request"
    public_message = "Invalid report parameters"


class UnknownReportTypeError(ReportValidationError):
    status_code = 404
    code = "unknown_report"
    public_message = "Unknown report type"


class UnsupportedFormatError(ReportError):
    status_code = 501
    code = "unsupported_format"
    public_message = "Requested output format is not supported for this report"


class AggregationError(ReportError):
    code = "aggregation_failed"
    public_message = "Failed to generate report"

    def __init__(self, report_type: str):
        super().__init__(f"Failed to generate {report_type} report")
        self.report_type = report_type


class RenderError(ReportError):
    """Reaches the client as a plain PDF-generation failure; the cause stays in ``detail``."""

    code = "render_failed"
    public_message = "PDF generation failed"

    def __init__(self, detail: str | None = None):
        super().__init__(self.public_message, detail)


class TemplateNotFoundError(RenderError):
    code = "template_not_found"

    def __init__(self, template_name: str):
        super().__init__(f"Template {template_name} not found")
        self.template_name = template_name


class PDFGenerationError(ReportError):
    code = "pdf_failed"
    public_message = "PDF generation failed"
