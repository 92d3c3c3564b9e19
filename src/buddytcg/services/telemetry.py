from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping


@dataclass
class TelemetryService:
    """Append-only JSONL sink for tournament records."""

    path: Path
    run_id: str | None = None

    def log(self, event_type: str, payload: Mapping[str, object]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        rec: dict[str, object] = {
            "ts": datetime.now(tz=timezone.utc).isoformat(),
            "type": event_type,
            "payload": dict(payload),
        }
        if self.run_id is not None:
            rec["run_id"] = self.run_id
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(rec, ensure_ascii=False) + "\n")

    def read_all(self) -> list[dict[str, object]]:
        if not self.path.exists():
            return []
        with self.path.open(encoding="utf-8") as f:
            return [json.loads(line) for line in f if line.strip()]
