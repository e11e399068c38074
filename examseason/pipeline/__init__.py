"""
Analysis Pipeline Package
=========================

Stages, in data-flow order:
- reference: health boards, populations and young-adult shares
- periods: academic period and season classification
- ingest: monthly prescription extracts to enriched events
- aggregate: per-board, per-drug season and period tables
- compare: exam vs non-exam change and summary statistics
- diagnostics: recoverable errors collected along the way
"""
