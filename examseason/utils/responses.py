"""
Response utilities for the exam season prescriptions report API
===============================================================

This module provides standardized response functions for:
- Success responses with consistent formatting
- Error responses with detailed error information
- Report table responses carrying row counts and column lists
"""

from flask import jsonify
from typing import Dict, Any, List
from datetime import datetime


def success_response(data: Dict[str, Any], message: str = "Success", status_code: int = 200) -> tuple:
    """
    Generate standardized success response.

    Args:
        data: Response data
        message: Success message
        status_code: HTTP status code

    Returns:
        Tuple of (Flask response, status_code)
    """
    response = {
        'success': True,
        'message': message,
        'timestamp': datetime.now().isoformat(),
        'data': data,
        'exam_season_report': {
            'version': '1.0.0',
            'system': 'Exam Season Prescriptions Report API',
            'capabilities': ['season_comparison', 'period_breakdown', 'diagnostics']
        }
    }

    return jsonify(response), status_code


def error_response(message: str, status_code: int = 400, error_code: str = None, details: Dict[str, Any] = None) -> tuple:
    """
    Generate standardized error response.

    Args:
        message: Error message
        status_code: HTTP status code
        error_code: Optional error code
        details: Additional error details

    Returns:
        Tuple of (Flask response, status_code)
    """
    response = {
        'success': False,
        'error': {
            'message': message,
            'code': error_code or f"ERROR_{status_code}",
            'timestamp': datetime.now().isoformat(),
            'details': details or {}
        },
        'exam_season_report': {
            'version': '1.0.0',
            'system': 'Exam Season Prescriptions Report API',
            'support': 'Check the input files and configuration, then refresh the report'
        }
    }

    return jsonify(response), status_code


def table_response(name: str, records: List[Dict[str, Any]], columns: List[str], message: str = None) -> tuple:
    """
    Generate response for a report table.

    Args:
        name: Table name
        records: Table rows as dictionaries (missing values already None)
        columns: Column order
        message: Optional success message

    Returns:
        Tuple of (Flask response, status_code)
    """
    return success_response(
        {
            'table': name,
            'columns': columns,
            'row_count': len(records),
            'rows': records
        },
        message or f"{name} table retrieved",
        200
    )
