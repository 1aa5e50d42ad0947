"""In-memory record store keyed by test identity.

Holds the latest record for every test seen during a run, plus the start
times recorded by ``mark_start`` until a terminal event consumes them.
"""

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from .models import ResultRecord, identity_of


class RecordStore:
    """Mapping of test identity to the most recent record.

    Appending a record whose identity is already present replaces the
    stored record entirely; nothing is merged.

    Not thread-safe. Callers serialize events before they reach the store.
    """

    def __init__(self) -> None:
        self._table: dict[str, ResultRecord] = {}
        self._start_times: dict[str, float] = {}

    @classmethod
    def create(cls) -> "RecordStore":
        """Create an empty store."""
        return cls()

    def append(self, record: Mapping[str, Any]) -> str:
        """Store ``record`` under its identity, overwriting any prior record.

        Args:
            record: Any mapping. ``fullName`` and ``browserId`` are used for
                the key when present.

        Returns:
            The identity the record was stored under.
        """
        identity = identity_of(record)
        self._table[identity] = dict(record)
        return identity

    def get_data(self) -> Mapping[str, ResultRecord]:
        """Return a read-only snapshot of the current table.

        The snapshot is detached from the store: records appended after
        this call are not visible through it, and editing a record taken
        from it does not change the stored one.
        """
        return MappingProxyType(
            {identity: dict(record) for identity, record in self._table.items()}
        )

    def save_start_time(self, event: Mapping[str, Any], timestamp: float) -> None:
        """Remember when the test identified by ``event`` started."""
        self._start_times[identity_of(event)] = timestamp

    def pop_start_time(self, event: Mapping[str, Any]) -> float | None:
        """Consume the start time recorded for ``event``'s identity, if any."""
        return self._start_times.pop(identity_of(event), None)

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, identity: object) -> bool:
        return identity in self._table
