"""Append-only JSONL run log for content sync runs.

Each line is one ``ProvenanceEvent``. Events written through the same
``ProvenanceLogger`` share a ``run_id`` so several runs can be appended to one
file and still be told apart.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List

from pydantic import BaseModel, Field

STAGES: tuple[str, ...] = (
    "bootstrap",
    "purge",
    "course",
    "chapter",
    "lesson",
    "navigation",
    "complete",
    "halted",
)


class ProvenanceEvent(BaseModel):
    """One step of a sync run as written to the run log."""

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    run_id: str | None = None
    stage: str = Field(..., description="Sync stage, e.g. 'purge', 'lesson' or 'navigation'.")
    message: str
    agent: str = Field(default="system")
    payload: Dict[str, Any] = Field(default_factory=dict)


class ProvenanceLogger:
    """Appends events for one run to ``output_path``."""

    def __init__(self, output_path: Path, *, run_id: str | None = None):
        self.output_path = output_path
        self.run_id = run_id or uuid.uuid4().hex[:12]
        self.output_path.parent.mkdir(parents=True, exist_ok=True)

    def log(self, event: ProvenanceEvent | Dict[str, Any]) -> ProvenanceEvent:
        """Stamp ``event`` with this run's id and append it."""
        if not isinstance(event, ProvenanceEvent):
            event = ProvenanceEvent(**event)
        if event.run_id is None:
            event = event.model_copy(update={"run_id": self.run_id})
        with self.output_path.open("a", encoding="utf-8") as handle:
            handle.write(event.model_dump_json() + "\n")
        return event

    def record(self, stage: str, message: str, *, agent: str = "system", **payload: Any) -> ProvenanceEvent:
        return self.log(ProvenanceEvent(stage=stage, message=message, agent=agent, payload=payload))

    def extend(self, events: Iterable[ProvenanceEvent | Dict[str, Any]]) -> None:
        for event in events:
            self.log(event)

    def read(self, *, stage: str | None = None, current_run: bool = False) -> List[ProvenanceEvent]:
        """Events in the log, optionally narrowed to one stage or to this run."""
        if not self.output_path.exists():
            return []
        events: List[ProvenanceEvent] = []
        with self.output_path.open("r", encoding="utf-8") as handle:
            for line in handle:
                if not line.strip():
                    continue
                event = ProvenanceEvent.model_validate_json(line)
                if stage is not None and event.stage != stage:
                    continue
                if current_run and event.run_id != self.run_id:
                    continue
                events.append(event)
        return events


__all__ = ["ProvenanceEvent", "ProvenanceLogger", "STAGES"]
