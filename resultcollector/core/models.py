"""Domain models for the result collector.

Test events arrive from external tools as open-ended mappings, so records
are kept as plain dicts rather than fixed dataclasses. This module only
pins down the parts the core relies on: the status vocabulary and the
identity rule used to key records.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any, TypeAlias

# Raw per-test payload as received from a test tool.
ResultEvent: TypeAlias = Mapping[str, Any]

# Stored value: event fields plus status annotations.
ResultRecord: TypeAlias = dict[str, Any]

IDENTITY_FIELDS = ("fullName", "browserId")
IDENTITY_SEPARATOR = "."


class ResultStatus(str, Enum):
    """Terminal states a test record can carry.

    State transitions per identity:
        unstarted -> started (mark_start) -> SUCCESS | FAIL | SKIPPED | ERROR

    A terminal state may be reached without a start, and any terminal
    state may be entered again; the newer record replaces the older one.
    """

    SUCCESS = "success"
    FAIL = "fail"
    SKIPPED = "skipped"
    ERROR = "error"


def identity_of(event: Mapping[str, Any]) -> str:
    """Derive the key a record is stored under.

    ``fullName`` and ``browserId`` are joined with a dot when both are set,
    the single value is used when only one is set, and the empty string
    otherwise. ``None`` and empty strings count as unset.

    Examples:
        >>> identity_of({"fullName": "suite test", "browserId": "chrome"})
        'suite test.chrome'
        >>> identity_of({"browserId": "chrome"})
        'chrome'
        >>> identity_of({})
        ''
    """
    parts = [
        str(event[name])
        for name in IDENTITY_FIELDS
        if event.get(name) not in (None, "")
    ]
    return IDENTITY_SEPARATOR.join(parts)


def error_reason(event: Mapping[str, Any]) -> str:
    """Pick the error text for an errored test, preferring the stack trace."""
    return event.get("stack") or event.get("message") or ""
