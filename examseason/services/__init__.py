"""
Services Package for the Exam Season Prescriptions Analysis
===========================================================

This package contains the service that runs the analysis pipeline and keeps
its latest result for the report API and the command-line report.
"""

from .analysis_service import AnalysisResult, AnalysisService

__all__ = ['AnalysisService', 'AnalysisResult']
