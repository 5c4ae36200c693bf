"""
Tests for the Scripting Bridge.

Verifies:
1. Item enumeration order (including nested items).
2. Read-only node views resolving child identities.
3. Handle writes landing in the arena and in the active change set.
4. The field allow-list.
"""

import pytest

from binding_sweeper.core.arena import IdentPat
from binding_sweeper.core.bridge import ChangeSet, NodeView, ScriptingBridge
from binding_sweeper.core.errors import ArenaIdentityNotFound, BridgeAccessError
from binding_sweeper.core.tracer import TraceEventType, TraceLogger
from binding_sweeper.enums import BindingMode, FnKind


@pytest.fixture
def unit(b):
  inner = b.fn("inner", body=[])
  outer = b.fn(
    "outer",
    args=[b.arg("a"), b.arg(b.other_pat("Tuple", [b.ident("p"), b.ident("q")]))],
    body=[b.local("x", b.lit(1)), b.item_stmt(inner), b.local("y")],
  )
  ext = b.foreign_fn("puts", [b.arg("s")])
  return b.unit([outer, ext])


def test_visit_fn_like_declaration_order(arena, unit):
  bridge = ScriptingBridge(arena)
  names = []
  bridge.visit_fn_like(unit, lambda item: names.append(item.ident))
  assert names == ["outer", "inner", "puts"]


def test_item_handle_reads(arena, unit):
  bridge = ScriptingBridge(arena)
  outer, inner, ext = [bridge.item(i) for i in bridge.fn_like_ids(unit)]

  assert outer.kind == FnKind.NORMAL
  assert not outer.is_bodiless
  assert len(outer.args) == 2
  assert [h.binding_handle().ident for h in outer.locals()] == ["x", "y"]
  assert outer.block.kind == "Block"

  assert ext.is_bodiless
  assert ext.block is None
  assert ext.locals() == []
  assert inner.args == []


def test_binding_handle_only_for_identifier_patterns(arena, unit):
  bridge = ScriptingBridge(arena)
  outer = bridge.item(bridge.fn_like_ids(unit)[0])
  simple, tuple_arg = outer.args

  assert simple.binding_handle().ident == "a"
  assert tuple_arg.binding_handle() is None
  assert tuple_arg.pat.display_kind == "Pat::Tuple"
  assert [p.ident for p in tuple_arg.pat.subpats] == ["p", "q"]


def test_node_view_is_read_only(arena, b):
  path = b.path("x")
  view = ScriptingBridge(arena).node(path)

  assert view.segments == ["x"]
  with pytest.raises(BridgeAccessError):
    view.segments = ["y"]

  # Lists are copies
  view.segments.append("z")
  assert view.segments == ["x"]


def test_node_view_unknown_field(arena, b):
  view = ScriptingBridge(arena).node(b.lit(1))
  with pytest.raises(AttributeError):
    _ = view.lhs


def test_node_view_missing_identity(arena):
  with pytest.raises(ArenaIdentityNotFound):
    ScriptingBridge(arena).node(404)


def test_writes_are_applied_and_recorded(arena, b):
  pat = b.ident("count")
  tracer = TraceLogger()
  changes = ChangeSet("manual")
  bridge = ScriptingBridge(arena, change_set=changes, tracer=tracer)
  fn = bridge.item(b.fn("f", args=[b.arg(pat)], body=[]))

  handle = fn.args[0].binding_handle()
  handle.ident = "_count"
  handle.binding = "ByValueMutable"

  node = arena.get_as(pat, IdentPat)
  assert node.ident == "_count"
  assert node.binding == BindingMode.VALUE_MUTABLE

  recorded = [(c.node_id, c.field_name, c.before, c.after, c.pass_name) for c in changes]
  assert recorded == [
    (pat, "ident", "count", "_count", "manual"),
    (pat, "binding", "ByValueImmutable", "ByValueMutable", "manual"),
  ]
  assert len(tracer.events_of(TraceEventType.BINDING_REWRITE)) == 2


def test_no_op_writes_are_dropped(arena, b):
  changes = ChangeSet()
  bridge = ScriptingBridge(arena, change_set=changes)
  fn = bridge.item(b.fn("f", args=[b.arg("x")], body=[]))

  fn.args[0].binding_handle().binding = BindingMode.VALUE_IMMUTABLE
  assert len(changes) == 0


def test_invalid_handle_values(arena, b):
  bridge = ScriptingBridge(arena)
  handle = bridge.item(b.fn("f", args=[b.arg("x")], body=[])).args[0].binding_handle()

  with pytest.raises(BridgeAccessError):
    handle.ident = ""
  with pytest.raises(BridgeAccessError):
    handle.binding = "Borrowed"


def test_pat_can_be_repointed_to_existing_pattern(arena, b):
  changes = ChangeSet()
  bridge = ScriptingBridge(arena, change_set=changes)
  local_id = b.local("x")
  replacement = b.ident("y")
  fn = bridge.item(b.fn("f", body=[local_id]))

  local = fn.locals()[0]
  local.pat = replacement
  assert local.binding_handle().ident == "y"

  with pytest.raises(BridgeAccessError):
    local.pat = b.lit(1)


def test_allow_list_blocks_structural_writes(arena, b):
  bridge = ScriptingBridge(arena)
  lhs = b.path("x")
  assign = b.assign(lhs, b.lit(1))

  with pytest.raises(BridgeAccessError):
    bridge.write(assign, "rhs", lhs)
  with pytest.raises(BridgeAccessError):
    bridge.write(lhs, "segments", ["y"])


def test_staging_swaps_change_set(arena, b):
  outer = ChangeSet()
  bridge = ScriptingBridge(arena, change_set=outer)
  handle = bridge.item(b.fn("f", args=[b.arg("x")], body=[])).args[0].binding_handle()

  with bridge.staging("p1") as staged:
    handle.ident = "_x"

  assert [c.pass_name for c in staged] == ["p1"]
  assert len(outer) == 0
  assert bridge.change_set is outer


def test_bridge_exposes_no_allocation(arena):
  bridge = ScriptingBridge(arena)
  assert not hasattr(bridge, "allocate")


def test_fresh_tracer_records_rewrites(arena, b):
  tracer = TraceLogger()
  assert len(tracer) == 0
  bridge = ScriptingBridge(arena, tracer=tracer)
  handle = bridge.item(b.fn("f", args=[b.arg("x")], body=[])).args[0].binding_handle()

  handle.ident = "_x"

  events = tracer.events_of(TraceEventType.BINDING_REWRITE)
  assert len(events) == 1


def test_uninitialised_node_view_raises_attribute_error(arena):
  bare = NodeView.__new__(NodeView)

  with pytest.raises(AttributeError):
    _ = bare.segments
  with pytest.raises(AttributeError):
    _ = bare._bridge
