"""Local Library - Services Package

This package contains request-independent helpers:
- Parallel aggregation of named store lookups
- Catalog record counts for the dashboard and CLI
"""
