"""
Input validation utilities for the exam season prescriptions report API
=======================================================================

This module provides validation functions for:
- Season names in report URLs
- YYYYMM period stamps
- Refresh request bodies
"""

from typing import Any, Dict

from ..pipeline.periods import Season, parse_period_month
from .error_handlers import ValidationError

SEASON_ALIASES = {
    'exam': Season.EXAM,
    'non-exam': Season.NON_EXAM,
    'non_exam': Season.NON_EXAM,
    'nonexam': Season.NON_EXAM,
}


def validate_season(value: str) -> Season:
    """
    Validate a season name from a request.

    Args:
        value: Season name, e.g. 'exam' or 'non-exam'

    Returns:
        The matching Season

    Raises:
        ValidationError: If the season is unknown
    """
    season = SEASON_ALIASES.get(str(value).strip().lower())
    if season is None:
        raise ValidationError(
            f"Season must be one of: {[s.value for s in Season]}",
            {"season": value}
        )
    return season


def validate_period_stamp(value: str) -> Dict[str, int]:
    """
    Validate a YYYYMM stamp.

    Returns:
        Dictionary with 'year' and 'month'

    Raises:
        ValidationError: If the stamp is malformed
    """
    try:
        year, month = parse_period_month(value)
    except ValueError as e:
        raise ValidationError(str(e), {"stamp": value})
    return {'year': year, 'month': month}


def validate_refresh_request(data: Any) -> Dict[str, Any]:
    """
    Validate the optional body of a refresh request.

    Only ``{"write_reports": bool}`` is accepted.
    """
    if data is None:
        return {'write_reports': False}
    if not isinstance(data, dict):
        raise ValidationError("Request must be a JSON object")
    unknown = sorted(set(data) - {'write_reports'})
    if unknown:
        raise ValidationError(f"Unknown fields: {unknown}", {"fields": unknown})
    write_reports = data.get('write_reports', False)
    if not isinstance(write_reports, bool):
        raise ValidationError("write_reports must be a boolean")
    return {'write_reports': write_reports}
