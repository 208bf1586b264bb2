"""
Generation event log: one JSONL file per trip, one record per line.

Every ItineraryGenerator run writes to  <LOGS_DIR>/<trip_id>.jsonl :

  STAGE        {"from": "CLUSTERING", "to": "ORDERING", "sizes": [5, 5, 5]}
               one per stage transition, extra keys depend on the stage
  PERFORMANCE  {"component": "ItineraryGenerator.generate", "duration_ms": 812.4}
               written last, only when generation succeeds

The generator closes the trip's handle when the run ends, whether or not
it succeeded.  read() loads a finished trip back for inspection.
"""

from __future__ import annotations

import json
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, Optional

from itinerary_engine import config

STAGE_EVENT = "STAGE"
PERFORMANCE_EVENT = "PERFORMANCE"


class StructuredLogger:
    """Append-only JSONL event log keyed by trip id; safe across threads."""

    def __init__(self, logs_dir: Path | str | None = None) -> None:
        self._logs_dir = Path(logs_dir) if logs_dir else Path(config.LOGS_DIR)
        self._lock = threading.Lock()
        self._handles: dict[str, IO[str]] = {}

    def log(self, trip_id: str, event_type: str, payload: dict) -> None:
        record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "trip_id": trip_id,
            "event_type": event_type,
            "payload": payload,
        }
        line = json.dumps(record, default=str, ensure_ascii=False) + "\n"

        with self._lock:
            fh = self._handles.get(trip_id) or self._open(trip_id)
            fh.write(line)
            fh.flush()

    def close(self, trip_id: str | None = None) -> None:
        """Close the handle for *trip_id*, or every open handle."""
        with self._lock:
            ids = [trip_id] if trip_id else list(self._handles)
            for tid in ids:
                fh = self._handles.pop(tid, None)
                if fh:
                    fh.close()

    def open_trips(self) -> list[str]:
        with self._lock:
            return list(self._handles)

    def path_for(self, trip_id: str) -> Path:
        return self._logs_dir / f"{trip_id}.jsonl"

    def read(self, trip_id: str, event_type: Optional[str] = None) -> list[dict]:
        """Records written for *trip_id*, optionally only one event type."""
        path = self.path_for(trip_id)
        if not path.exists():
            return []
        records = [
            json.loads(line)
            for line in path.read_text(encoding="utf-8").splitlines()
            if line.strip()
        ]
        if event_type is not None:
            records = [r for r in records if r["event_type"] == event_type]
        return records

    def _open(self, trip_id: str) -> IO[str]:
        os.makedirs(self._logs_dir, exist_ok=True)
        fh = open(self.path_for(trip_id), "a", encoding="utf-8")  # noqa: SIM115
        self._handles[trip_id] = fh
        return fh
