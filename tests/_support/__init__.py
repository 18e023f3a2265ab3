"""
Test support utilities for dataquery tests.

Helpers that are not pytest fixtures: fake DB-API drivers and record
types shared across test modules.
"""
