"""
Utilities Package for the Exam Season Prescriptions Analysis
============================================================

This package contains utility functions for:
- Error types and Flask error handlers
- Response formatting and standardization
- Request validation
- DataFrame serialization and file helpers
"""

from .error_handlers import (
    AnalysisError,
    ConfigurationError,
    DivisionUndefined,
    MalformedPrescriptionRow,
    MalformedReferenceData,
    UnresolvedJoin,
    ValidationError
)

from .responses import (
    success_response,
    error_response,
    table_response
)

__all__ = [
    'AnalysisError',
    'ConfigurationError',
    'DivisionUndefined',
    'MalformedPrescriptionRow',
    'MalformedReferenceData',
    'UnresolvedJoin',
    'ValidationError',
    'success_response',
    'error_response',
    'table_response'
]
