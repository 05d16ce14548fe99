"""Change-event records as delivered by the CDC source."""

import json
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

from ..dml.errors import MalformedEventError


@dataclass
class SinkRecord:
    """One key/value record read from a CDC topic."""

    value: Optional[dict[str, Any]]
    key: Optional[dict[str, Any]] = None
    topic: Optional[str] = None

    @property
    def is_tombstone(self) -> bool:
        """Tombstones follow deletes so the topic can be compacted."""
        return self.value is None

    @property
    def source_table(self) -> Optional[str]:
        """Table name from the event's source block, if present."""
        if not self.value:
            return None
        source = (self.value.get("payload") or {}).get("source") or {}
        return source.get("table")


def read_records(path: Union[str, Path]) -> Iterator[SinkRecord]:
    """Read records from a newline-delimited JSON file.

    Each non-blank line is an object with a ``value`` envelope and optional
    ``key`` envelope and ``topic``.

    Raises:
        MalformedEventError: If a line is not a JSON object
    """
    with open(path) as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError as e:
                raise MalformedEventError(f"Line {line_number}: invalid JSON: {e}") from e
            if not isinstance(data, dict):
                raise MalformedEventError(f"Line {line_number}: expected a JSON object")

            yield SinkRecord(
                value=data.get("value"),
                key=data.get("key"),
                topic=data.get("topic"),
            )


__all__ = ["SinkRecord", "read_records"]
