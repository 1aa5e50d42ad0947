"""Passthrough tool adapter.

For tools (or replay logs) whose events already use the collector's field
names. Events are copied as-is, optionally stamped with a default browser
id, and classified from their ``state`` and ``skipReason`` fields.
"""

from typing import Any

from resultcollector.core.models import ResultEvent
from resultcollector.core.ports import ToolAdapterPort

DEFAULT_SKIP_REASON = "No skip reason"


class PassthroughToolAdapter(ToolAdapterPort):
    """Tool adapter for events already in the collector's shape."""

    def __init__(self, browser_id: str = ""):
        """Initialize passthrough adapter.

        Args:
            browser_id: Value for ``browserId`` on events that carry none.
                Empty string leaves events untouched.
        """
        self.browser_id = browser_id

    def configure_test_result(self, event: ResultEvent) -> dict[str, Any]:
        result = dict(event)
        if self.browser_id and not result.get("browserId"):
            result["browserId"] = self.browser_id
        return result

    def is_failed_test(self, event: ResultEvent) -> bool:
        """A retry counts as a failure only when the test itself failed."""
        return event.get("state") == "failed"

    def get_skip_reason(self, event: ResultEvent) -> str:
        return str(event.get("skipReason") or DEFAULT_SKIP_REASON)
