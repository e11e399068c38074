"""
Exam Season Prescriptions Analysis Package
==========================================

This package compares per-capita antidepressant prescribing across Scottish
health boards between exam and non-exam periods of the academic calendar,
and serves the resulting tables through a small read-only report API.
"""

__version__ = "1.0.0"
__author__ = "Exam Season Prescriptions Team"
