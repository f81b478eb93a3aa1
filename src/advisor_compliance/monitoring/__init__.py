"""Compliance monitoring engine.

Pure computations over snapshots of the compliance store:
- expiry: days-until-expiry derivation for documents
- scoring: check tally, overall score, health label and trend
- actions: bounded next-actions queue
- insights: remote insights with heuristic fallback
- case_lifecycle: case status transition table
- rules: rule grouping by category
- documents: document status summary
"""
