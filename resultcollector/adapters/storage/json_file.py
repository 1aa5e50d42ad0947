"""JSON file storage adapter.

Implements ReportStoragePort by writing the report to a temporary file in
the destination directory and renaming it over the target, so a reader
never sees a half-written report.
"""

import asyncio
import json
import logging
import os
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from resultcollector.core.ports import ReportStoragePort

logger = logging.getLogger(__name__)


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


class JsonFileReportStorage(ReportStoragePort):
    """Writes reports as JSON files, creating parent directories as needed."""

    def __init__(self, indent: int | None = 4):
        """Initialize JSON file storage.

        Args:
            indent: Indentation passed to ``json.dumps``. None writes the
                report on a single line.
        """
        self.indent = indent

    async def write_json(self, path: str, data: Mapping[str, Any]) -> None:
        """Serialize ``data`` and atomically write it to ``path``.

        Raises:
            OSError: If the directory cannot be created or the file cannot
                be written or renamed.
        """
        # Serialize before touching the filesystem so encoding errors
        # leave nothing behind.
        content = json.dumps(data, indent=self.indent, ensure_ascii=False, default=str)
        target = Path(path)

        await asyncio.to_thread(self._write_atomic, target, content)

        logger.debug(
            f"Wrote JSON report to {target}",
            extra={"path": str(target), "size": len(content)},
        )

    @staticmethod
    def _write_atomic(target: Path, content: str) -> None:
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OSError(f"Failed to create report directory {target.parent}: {e}") from e

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{target.name}.", suffix=".tmp", dir=target.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            # mkstemp creates 0600; give the report the mode a plain open() would.
            os.chmod(tmp_name, 0o666 & ~_current_umask())
            os.replace(tmp_name, target)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
