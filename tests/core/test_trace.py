"""
Tests for the sweep trace logger.
"""

import json

from binding_sweeper.core.tracer import TraceEventType, TraceLogger
from binding_sweeper.enums import BindingMode


def test_phases_nest():
  tracer = TraceLogger()
  outer = tracer.start_phase("Sweep", "unit #1")
  inner = tracer.start_phase("Item f")
  tracer.log_skip("g", "bodiless")
  tracer.end_phase()
  tracer.end_phase()

  events = tracer.export()
  assert [e["type"] for e in events] == [
    TraceEventType.PHASE_START,
    TraceEventType.PHASE_START,
    TraceEventType.ITEM_SKIPPED,
    TraceEventType.PHASE_END,
    TraceEventType.PHASE_END,
  ]
  assert events[1]["parent_id"] == outer
  assert events[2]["parent_id"] == inner
  assert events[0]["metadata"] == {"detail": "unit #1"}


def test_end_phase_without_start_is_ignored():
  tracer = TraceLogger()
  tracer.end_phase()
  assert len(tracer) == 0


def test_rewrite_values_are_plain():
  tracer = TraceLogger()
  tracer.log_rewrite(4, "binding", BindingMode.VALUE_IMMUTABLE, BindingMode.VALUE_MUTABLE)

  (event,) = tracer.events_of(TraceEventType.BINDING_REWRITE)
  assert event["metadata"] == {
    "node_id": 4,
    "field": "binding",
    "before": "ByValueImmutable",
    "after": "ByValueMutable",
  }
  assert event["parent_id"] is None


def test_export_is_json_serialisable():
  tracer = TraceLogger()
  tracer.start_phase("Item f")
  tracer.log_condition("f", 9, "Expr::While")
  tracer.log_inspection("arg #2", "skipped", "unsupported pattern shape Pat::Tuple")
  tracer.end_phase()

  dumped = json.loads(json.dumps(tracer.export()))
  assert [e["type"] for e in dumped] == ["phase_start", "condition", "inspection", "phase_end"]
