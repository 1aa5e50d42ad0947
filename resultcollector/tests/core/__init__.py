"""Unit tests for the core aggregation logic.

These tests exercise the record store and aggregator without touching
the filesystem. External ports are replaced with in-memory fakes from
tests/fakes/.
"""
