"""
Reporting Package
=================

Text tables and report files (``tables``) and chart figures (``charts``)
rendered from a completed analysis.
"""
