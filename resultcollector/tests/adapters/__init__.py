"""Tests for adapter implementations.

These tests exercise adapters against a temporary filesystem and a
nested pytest session to validate translation between tool results,
core records and the on-disk report.
"""
