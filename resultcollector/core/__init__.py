"""Core aggregation logic for the result collector.

This package contains zero external dependencies. Tool integrations and
report storage live in the adapters package and are wired together in
main.py.
"""

from .aggregator import ReportConfig, ResultAggregator
from .models import (
    ResultEvent,
    ResultRecord,
    ResultStatus,
    error_reason,
    identity_of,
)
from .ports import ReportStoragePort, ToolAdapterPort
from .record_store import RecordStore

__all__ = [
    "RecordStore",
    "ReportConfig",
    "ReportStoragePort",
    "ResultAggregator",
    "ResultEvent",
    "ResultRecord",
    "ResultStatus",
    "ToolAdapterPort",
    "error_reason",
    "identity_of",
]
