"""
Tree Builder.

Thin convenience layer over ``NodeArena.allocate`` used by the document loader
and by tests. Each method allocates one node and returns its identity.

Example:

.. code-block:: python

    b = TreeBuilder(NodeArena())
    fn = b.fn("bump", args=[b.arg("x")], body=[b.semi(b.assign_op("+", b.path("x"), b.lit(1)))])
    unit = b.unit([fn])
"""

from typing import Any, List, Optional, Sequence, Union

from binding_sweeper.core.arena import (
  Arg,
  Array,
  Assign,
  AssignOp,
  Binary,
  Block,
  Box,
  ExprStmt,
  FnLike,
  IdentPat,
  ItemStmt,
  Lit,
  Local,
  NodeArena,
  NodeId,
  Opaque,
  OtherPat,
  Path,
  TranslationUnit,
)
from binding_sweeper.enums import BindingMode, FnKind, NodeFamily


class TreeBuilder:
  """
  Allocates nodes into an arena with short, positional helpers.
  """

  def __init__(self, arena: NodeArena):
    self.arena = arena

  # --- Patterns ---

  def ident(self, name: str, binding: Union[BindingMode, str] = BindingMode.VALUE_IMMUTABLE) -> NodeId:
    return self.arena.allocate(IdentPat, ident=name, binding=BindingMode(binding))

  def other_pat(self, shape: str = "Tuple", subpats: Sequence[NodeId] = ()) -> NodeId:
    return self.arena.allocate(OtherPat, shape=shape, subpats=list(subpats))

  # --- Expressions ---

  def path(self, *segments: str) -> NodeId:
    return self.arena.allocate(Path, segments=list(segments))

  def lit(self, value: Any) -> NodeId:
    return self.arena.allocate(Lit, value=value)

  def box(self, inner: NodeId) -> NodeId:
    return self.arena.allocate(Box, boxed=inner)

  def array(self, values: Sequence[NodeId]) -> NodeId:
    return self.arena.allocate(Array, values=list(values))

  def binary(self, op: str, lhs: NodeId, rhs: NodeId) -> NodeId:
    return self.arena.allocate(Binary, op=op, lhs=lhs, rhs=rhs)

  def assign(self, lhs: NodeId, rhs: NodeId) -> NodeId:
    return self.arena.allocate(Assign, lhs=lhs, rhs=rhs)

  def assign_op(self, op: str, lhs: NodeId, rhs: NodeId) -> NodeId:
    return self.arena.allocate(AssignOp, op=op, lhs=lhs, rhs=rhs)

  def opaque(self, tag: str, children: Sequence[NodeId] = (), family: NodeFamily = NodeFamily.EXPR) -> NodeId:
    """A construct outside the supported grammar (``While``, ``Call``...)."""
    return self.arena.allocate(Opaque, in_family=family, tag=tag, children=list(children))

  # --- Statements ---

  def local(
    self,
    pat: Union[str, NodeId],
    init: Optional[NodeId] = None,
    binding: Union[BindingMode, str] = BindingMode.VALUE_IMMUTABLE,
  ) -> NodeId:
    """``let pat = init;``. A string ``pat`` is shorthand for an identifier pattern."""
    if isinstance(pat, str):
      pat = self.ident(pat, binding)
    return self.arena.allocate(Local, pat=pat, init=init)

  def semi(self, expr: NodeId) -> NodeId:
    return self.arena.allocate(ExprStmt, expr=expr, semi=True)

  def expr_stmt(self, expr: NodeId) -> NodeId:
    return self.arena.allocate(ExprStmt, expr=expr, semi=False)

  def item_stmt(self, item: Optional[NodeId] = None) -> NodeId:
    return self.arena.allocate(ItemStmt, item=item)

  def block(self, stmts: Sequence[NodeId]) -> NodeId:
    return self.arena.allocate(Block, stmts=list(stmts))

  # --- Items ---

  def arg(
    self,
    pat: Union[str, NodeId],
    binding: Union[BindingMode, str] = BindingMode.VALUE_IMMUTABLE,
    ty: Optional[str] = None,
  ) -> NodeId:
    if isinstance(pat, str):
      pat = self.ident(pat, binding)
    return self.arena.allocate(Arg, pat=pat, ty=ty)

  def fn(
    self,
    name: str,
    args: Sequence[NodeId] = (),
    body: Optional[Sequence[NodeId]] = None,
    kind: Union[FnKind, str] = FnKind.NORMAL,
  ) -> NodeId:
    """
    A function-like item. ``body=None`` produces a bodiless declaration.
    """
    block = self.block(body) if body is not None else None
    return self.arena.allocate(FnLike, ident=name, fn_kind=FnKind(kind), args=list(args), block=block)

  def foreign_fn(self, name: str, args: Sequence[NodeId] = ()) -> NodeId:
    return self.fn(name, args=args, body=None, kind=FnKind.FOREIGN)

  def unit(self, items: List[NodeId]) -> NodeId:
    return self.arena.allocate(TranslationUnit, items=list(items))
