"""Fake implementations of core ports for testing.

- FakeToolAdapter: configurable classification, records every call
- FakeReportStorage: captured writes, optional simulated failure
"""

from .storage import FakeReportStorage
from .tool_adapter import FakeToolAdapter

__all__ = [
    "FakeReportStorage",
    "FakeToolAdapter",
]
