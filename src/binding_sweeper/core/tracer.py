"""
Sweep Trace Logger.

Records the step-by-step execution of a driver run:

1. Phases (the run, and one nested phase per item).
2. Binding rewrites (identifier or mode changed).
3. Inspections (a binding left alone, e.g. a destructuring pattern).
4. Conditions (an item abandoned on an unsupported construct).

The output is a list of plain dictionaries suitable for JSON serialization.
A logger is owned by one driver run; there is no process-wide instance.
"""

import time
import uuid
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class TraceEventType(str, Enum):
  PHASE_START = "phase_start"
  PHASE_END = "phase_end"
  BINDING_REWRITE = "binding_rewrite"
  INSPECTION = "inspection"
  CONDITION = "condition"
  ITEM_SKIPPED = "item_skipped"


@dataclass
class TraceEvent:
  id: str
  type: TraceEventType
  timestamp: float
  description: str
  parent_id: Optional[str] = None
  metadata: Dict[str, Any] = field(default_factory=dict)


class TraceLogger:
  """
  Records sweep events for later inspection.
  """

  def __init__(self) -> None:
    self._events: List[TraceEvent] = []
    self._active_phases: List[str] = []  # Stack of phase IDs

  def __len__(self) -> int:
    return len(self._events)

  def start_phase(self, name: str, description: str = "") -> str:
    """Starts a nested phase (e.g. 'Item foo'). Returns the phase ID."""
    phase_id = str(uuid.uuid4())
    parent = self._active_phases[-1] if self._active_phases else None

    self._events.append(
      TraceEvent(
        id=phase_id,
        type=TraceEventType.PHASE_START,
        timestamp=time.time(),
        description=name,
        parent_id=parent,
        metadata={"detail": description},
      )
    )
    self._active_phases.append(phase_id)
    return phase_id

  def end_phase(self) -> None:
    """Ends the current active phase."""
    if not self._active_phases:
      return

    phase_id = self._active_phases.pop()
    self._events.append(
      TraceEvent(
        id=str(uuid.uuid4()),
        type=TraceEventType.PHASE_END,
        timestamp=time.time(),
        description="End Phase",
        parent_id=phase_id,
      )
    )

  def log_rewrite(self, node_id: int, field_name: str, before: Any, after: Any) -> None:
    """Logs a binding field written through the bridge."""
    self._log_simple(
      TraceEventType.BINDING_REWRITE,
      f"Rewrote {field_name} of #{node_id}",
      {"node_id": node_id, "field": field_name, "before": _plain(before), "after": _plain(after)},
    )

  def log_inspection(self, node_str: str, outcome: str, detail: str = "") -> None:
    """Logs a decision point where no change occurred."""
    self._log_simple(TraceEventType.INSPECTION, f"Inspecting '{node_str}'", {"outcome": outcome, "detail": detail})

  def log_condition(self, item: str, node_id: int, kind: str) -> None:
    self._log_simple(
      TraceEventType.CONDITION,
      f"Abandoned '{item}' on {kind}",
      {"item": item, "node_id": node_id, "kind": kind},
    )

  def log_skip(self, item: str, reason: str) -> None:
    self._log_simple(TraceEventType.ITEM_SKIPPED, f"Skipped '{item}'", {"reason": reason})

  def events_of(self, evt_type: TraceEventType) -> List[Dict[str, Any]]:
    return [e for e in self.export() if e["type"] == evt_type]

  def _log_simple(self, evt_type: TraceEventType, desc: str, meta: Dict[str, Any]) -> None:
    parent = self._active_phases[-1] if self._active_phases else None
    self._events.append(
      TraceEvent(
        id=str(uuid.uuid4()), type=evt_type, timestamp=time.time(), description=desc, parent_id=parent, metadata=meta
      )
    )

  def export(self) -> List[Dict[str, Any]]:
    """Returns list of dicts for JSON serialization."""
    return [asdict(e) for e in self._events]


def _plain(value: Any) -> Any:
  if isinstance(value, Enum):
    return value.value
  return value
