"""
Tests for the Node Arena.

Verifies:
1. Identity stamping (unique, monotonic, never reused).
2. Lookup failures raise ArenaIdentityNotFound.
3. set_field restrictions (unknown fields, ``id``, dangling child ids).
4. Child ordering and pre-order descendants.
"""

import pytest

from binding_sweeper.core.arena import (
  NO_ID,
  Assign,
  FnLike,
  IdentPat,
  Lit,
  NodeArena,
  Opaque,
  Path,
  field_specs,
)
from binding_sweeper.core.errors import ArenaIdentityNotFound, BindingSweeperError
from binding_sweeper.enums import BindingMode, FnKind, NodeFamily


def test_allocate_stamps_fresh_identities(arena):
  first = arena.allocate(Lit, value=1)
  second = arena.allocate(Lit, value=2)

  assert first != second
  assert second > first
  assert arena.get(first).id == first
  assert len(arena) == 2
  assert list(arena.ids()) == [first, second]


def test_allocate_rejects_explicit_identity(arena):
  with pytest.raises(TypeError):
    arena.allocate(Lit, value=1, id=99)


def test_unallocated_node_has_no_identity():
  assert Lit(value=3).id == NO_ID


def test_identities_are_not_shared_between_arenas():
  a, b = NodeArena(), NodeArena()
  node = a.allocate(Lit, value=0)
  b.allocate(Lit, value=0)

  assert node in a
  assert 12345 not in a
  with pytest.raises(ArenaIdentityNotFound):
    a.get(12345)


def test_missing_identity_is_lookup_error(arena):
  with pytest.raises(LookupError) as exc:
    arena.get(7)
  assert isinstance(exc.value, BindingSweeperError)
  assert exc.value.node_id == 7


def test_get_as_checks_kind(arena):
  lit = arena.allocate(Lit, value=1)
  assert arena.get_as(lit, Lit).value == 1
  with pytest.raises(TypeError, match="Expr::Lit"):
    arena.get_as(lit, Path)


def test_set_field_is_visible_immediately(arena):
  pat = arena.allocate(IdentPat, ident="x")
  node = arena.get(pat)

  arena.set_field(pat, "binding", BindingMode.VALUE_MUTABLE)

  assert node.binding == BindingMode.VALUE_MUTABLE
  assert arena.get(pat) is node


def test_set_field_rejects_unknown_and_identity_fields(arena):
  pat = arena.allocate(IdentPat, ident="x")

  with pytest.raises(AttributeError):
    arena.set_field(pat, "nope", 1)
  with pytest.raises(AttributeError):
    arena.set_field(pat, "id", 42)
  with pytest.raises(AttributeError):
    arena.set_field(pat, "kind", "Path")


def test_set_field_validates_child_identities(arena):
  lhs = arena.allocate(Path, segments=["x"])
  assign = arena.allocate(Assign, lhs=lhs, rhs=None)

  with pytest.raises(ArenaIdentityNotFound):
    arena.set_field(assign, "rhs", 999)

  rhs = arena.allocate(Lit, value=1)
  arena.set_field(assign, "rhs", rhs)
  assert arena.children_of(assign) == [lhs, rhs]


def test_children_follow_field_then_list_order(b, arena):
  arg_a = b.arg("a")
  arg_b = b.arg("b")
  fn = b.fn("f", args=[arg_a, arg_b], body=[])
  block = arena.get_as(fn, FnLike).block

  assert arena.children_of(fn) == [arg_a, arg_b, block]


def test_descendants_are_preorder(b, arena):
  x = b.path("x")
  one = b.lit(1)
  add = b.binary("+", x, one)
  stmt = b.semi(add)

  assert list(arena.descendants(stmt)) == [stmt, add, x, one]


def test_display_kinds(b, arena):
  assert arena.get(b.path("x")).display_kind == "Expr::Path"
  assert arena.get(b.ident("x")).display_kind == "Pat::Ident"
  assert arena.get(b.other_pat("Tuple")).display_kind == "Pat::Tuple"
  assert arena.get(b.opaque("While")).display_kind == "Expr::While"
  assert arena.get(b.opaque("Macro", family=NodeFamily.STMT)).display_kind == "Stmt::Macro"


def test_bodiless_detection(b, arena):
  assert arena.get_as(b.fn("proto"), FnLike).is_bodiless
  assert arena.get_as(b.foreign_fn("ext"), FnLike).is_bodiless
  assert not arena.get_as(b.fn("f", body=[]), FnLike).is_bodiless

  fn = arena.get_as(b.fn("g", body=[], kind=FnKind.METHOD), FnLike)
  assert fn.fn_kind == FnKind.METHOD
  assert not fn.is_bodiless


def test_field_specs_exclude_identity():
  assert "id" not in field_specs(Opaque)
  assert list(field_specs(Assign)) == ["lhs", "rhs"]
