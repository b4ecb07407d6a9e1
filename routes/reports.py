# Reports blueprint: PDF / JSON report downloads.
from __future__ import annotations

import logging
from datetime import datetime

from flask import Blueprint, jsonify, make_response, request
from flask_login import current_user, login_required

from modules.reports.aggregator import dashboard_report
from modules.reports.catalog import REPORT_ROLES, available_reports
from modules.reports.errors import RenderError, ReportError
from modules.reports.filters import parse_filters
from modules.reports.pipeline import generate_report, normalize_format, reject_pdf
from routes.common import display_name, json_error, roles_required

logger = logging.getLogger(__name__)

bp = Blueprint("reports", __name__, url_prefix="/reports")


def _generate(report_type: str):
    fmt = normalize_format(request.args.get('format'))
    filters = parse_filters(request.args)
    if report_type == 'jobs' and getattr(current_user, 'role', '') == 'technician':
        # technicians only ever see their own assignments
        filters = filters.with_technician(current_user.id)

    result = generate_report(report_type, filters, fmt, generated_by=display_name(current_user))
    if result.pdf is None:
        return jsonify(result.to_json()), 200

    resp = make_response(result.pdf)
    resp.headers['Content-Type'] = 'application/pdf'
    resp.headers['Content-Disposition'] = f'attachment; filename="{result.filename}"'
    resp.headers['Content-Length'] = str(len(result.pdf))
    return resp


@bp.errorhandler(ReportError)
def _report_error(err: ReportError):
    message = err.message
    if err.status_code >= 500 and err.status_code != 501:
        logger.error('Report request failed: %s %s -> %s', request.method, request.path, err.detail)
        if isinstance(err, RenderError):
            message = err.public_message
    return json_error(message, err.status_code, err.code)


@bp.route('/available', methods=['GET'], endpoint='available')
@login_required
def available():
    role = getattr(current_user, 'role', None)
    return jsonify({
        'success': True,
        'data': {
            'userRole': role,
            'availableReports': available_reports(role),
        },
    })


@bp.route('/bookings', methods=['GET'], endpoint='bookings')
@login_required
@roles_required(*REPORT_ROLES['bookings'])
def bookings():
    return _generate('bookings')


@bp.route('/payments', methods=['GET'], endpoint='payments')
@login_required
@roles_required(*REPORT_ROLES['payments'])
def payments():
    return _generate('payments')


@bp.route('/jobs', methods=['GET'], endpoint='jobs')
@login_required
@roles_required(*REPORT_ROLES['jobs'])
def jobs():
    return _generate('jobs')


@bp.route('/leaves', methods=['GET'], endpoint='leaves')
@login_required
@roles_required(*REPORT_ROLES['leaves'])
def leaves():
    return _generate('leaves')


@bp.route('/inventory', methods=['GET'], endpoint='inventory')
@login_required
@roles_required(*REPORT_ROLES['inventory'])
def inventory():
    return _generate('inventory')


@bp.route('/users', methods=['GET'], endpoint='users')
@login_required
@roles_required(*REPORT_ROLES['users'])
def users():
    return _generate('users')


@bp.route('/dashboard', methods=['GET'], endpoint='dashboard')
@login_required
@roles_required(*REPORT_ROLES['dashboard'])
def dashboard():
    reject_pdf('dashboard', request.args.get('format'))
    data = dashboard_report()
    return jsonify({
        'success': True,
        'data': data,
        'period': data['period'],
        'generatedAt': datetime.now().isoformat(),
    })
