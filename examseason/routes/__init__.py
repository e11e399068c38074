"""
API Routes module for the exam season prescriptions report
==========================================================

This module contains the Flask route definitions for the read-only report API.
Routes are organized by functionality:
- Health and status endpoints
- Report table endpoints (comparison, seasons, periods, drugs, diagnostics)
- Period classification endpoint
"""

from flask import Blueprint, current_app, jsonify, request
import logging

from ..pipeline.aggregate import drug_columns
from ..pipeline.compare import COMPARISON_COLUMNS
from ..pipeline.periods import classify, season_of
from ..reporting.tables import write_reports
from ..services import AnalysisService
from ..utils.error_handlers import ConfigurationError
from ..utils.helpers import dataframe_to_records
from ..utils.responses import success_response, table_response
from ..utils.validators import validate_period_stamp, validate_refresh_request, validate_season

logger = logging.getLogger(__name__)

# Create blueprints for different route groups
health_bp = Blueprint('health', __name__)
report_bp = Blueprint('report', __name__)
periods_bp = Blueprint('periods', __name__)

# Analysis service instance (will be injected)
analysis_service: AnalysisService = None


def create_blueprints(service: AnalysisService):
    """
    Create and return blueprints with the analysis service injected.

    Args:
        service: AnalysisService instance

    Returns:
        List of Flask blueprints
    """
    global analysis_service
    analysis_service = service

    return [health_bp, report_bp, periods_bp]


def _service() -> AnalysisService:
    if analysis_service is None:
        raise ConfigurationError("Analysis service not initialized")
    return analysis_service


# ============================================================================
# Health and Status Routes
# ============================================================================

@health_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    ready = analysis_service.is_ready() if analysis_service else False
    return jsonify({
        'status': 'healthy',
        'report_ready': ready,
        'version': '1.0.0'
    })


@health_bp.route('/status', methods=['GET'])
def status():
    """Detailed status: run parameters and the state of the latest result."""
    return success_response(_service().status(), "Status retrieved")


# ============================================================================
# Report Routes
# ============================================================================

@report_bp.route('/comparison', methods=['GET'])
def comparison():
    """Exam vs non-exam per-capita rates per health board."""
    result = _service().get_result()
    return table_response('comparison', dataframe_to_records(result.comparison), COMPARISON_COLUMNS)


@report_bp.route('/seasons/<season>', methods=['GET'])
def season_table(season):
    """Per-board, per-drug table for one season."""
    season = validate_season(season)
    table = _service().get_result().season_table(season)
    return table_response(f'{season.value} season', dataframe_to_records(table), list(table.columns))


@report_bp.route('/periods', methods=['GET'])
def period_table():
    """Per-capita rate per board and academic period."""
    table = _service().get_result().period_table
    return table_response('periods', dataframe_to_records(table), list(table.columns))


@report_bp.route('/drugs', methods=['GET'])
def drug_table():
    """Per-drug comparison over all compared boards."""
    result = _service().get_result()
    table = result.drug_comparison
    return success_response({
        'table': 'drugs',
        'drugs': drug_columns(result.exam_table),
        'row_count': len(table),
        'rows': dataframe_to_records(table)
    }, "drugs table retrieved")


@report_bp.route('/summary', methods=['GET'])
def summary():
    """Summary statistics of the comparison."""
    return success_response(_service().get_result().summary, "Summary retrieved")


@report_bp.route('/diagnostics', methods=['GET'])
def diagnostics():
    """Rows dropped or left undefined during the run."""
    return success_response(_service().get_result().diagnostics.to_dict(), "Diagnostics retrieved")


@report_bp.route('/refresh', methods=['POST'])
def refresh():
    """Re-run the pipeline over the current input files."""
    options = validate_refresh_request(request.get_json(silent=True))
    result = _service().run()

    written = {}
    if options['write_reports']:
        written = {name: str(path) for name, path in
                   write_reports(result, current_app.config['REPORTS_DIR']).items()}

    return success_response({
        'status': _service().status(),
        'reports': written
    }, "Report refreshed")


# ============================================================================
# Period Classification Routes
# ============================================================================

@periods_bp.route('/<stamp>', methods=['GET'])
def classify_period(stamp):
    """Academic period and season of a YYYYMM stamp."""
    parsed = validate_period_stamp(stamp)
    calendar = analysis_service.settings.calendar if analysis_service else None
    period = classify(parsed['month'], calendar)
    season = season_of(period)
    return success_response({
        'stamp': stamp,
        'year': parsed['year'],
        'month': parsed['month'],
        'period': period.value,
        'season': season.value if season else None
    }, "Period classified")
