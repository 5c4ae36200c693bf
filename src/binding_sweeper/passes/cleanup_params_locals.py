"""
Pass: Clean Up Parameters and Locals.

Translated code declares every parameter and local the same way, regardless
of how it is used. This pass decides per binding:

1.  Never read -> immutable, renamed with the unused marker (``count`` ->
    ``_count``) unless it already carries it.
2.  Assigned (``x = ...``, ``x += ...``) -> ``mut``.
3.  Otherwise -> immutable.

Decisions are purely syntactic; no type information is consulted. Only simple
identifier patterns are tracked, destructuring patterns are left as they are.
By-reference bindings keep their mode.

The whole body is walked before anything is rewritten, so an unsupported
construct leaves the item exactly as it was.
"""

import logging
from typing import List, Optional, Tuple

from binding_sweeper.analysis.symbol_table import SymbolTable, VariableRecord
from binding_sweeper.core.arena import Assign, AssignOp, IdentPat, Local, Path
from binding_sweeper.core.bridge import BindingHandle, ItemHandle, NodeView
from binding_sweeper.core.registry import PassContext, register_pass
from binding_sweeper.core.traversal import Visitor
from binding_sweeper.enums import BindingMode

logger = logging.getLogger(__name__)

PASS_NAME = "cleanup_params_locals"


class UsageVisitor(Visitor):
  """
  Collects read/write usage of bindings into a ``SymbolTable``.
  """

  def __init__(self, table: SymbolTable, ctx: Optional[PassContext] = None):
    self.table = table
    self.ctx = ctx

  def visit_stmt(self, stmt: NodeView) -> None:
    if not stmt.is_a(Local):
      return

    pat = stmt.pat
    if pat is None or not pat.is_a(IdentPat):
      self._skip(stmt, pat)
      return

    # declare() shadows earlier same-named records before adding this one
    self.table.declare(pat.id, is_local=True, ident=pat.ident)

  def visit_expr(self, expr: NodeView) -> None:
    if expr.is_a(Path):
      name = _single_segment(expr)
      if name is not None:
        for record in self.table.find_by_identifier(name):
          self.table.mark_used(record.id)

    elif expr.is_a(Assign, AssignOp):
      # The lhs path is visited afterwards as well, so the target also counts as used
      lhs = expr.lhs
      if lhs is not None and lhs.is_a(Path):
        name = _single_segment(lhs)
        if name is not None:
          for record in self.table.find_by_identifier(name):
            self.table.mark_mutated(record.id)

  def _skip(self, stmt: NodeView, pat: Optional[NodeView]) -> None:
    shape = pat.display_kind if pat is not None else "none"
    if self.ctx:
      self.ctx.inspect(f"local #{stmt.id}", "skipped", f"unsupported pattern shape {shape}")


def _single_segment(path: NodeView) -> Optional[str]:
  segments = path.segments
  if len(segments) == 1:
    return segments[0]
  return None


def declare_params(item: ItemHandle, table: SymbolTable, ctx: Optional[PassContext] = None) -> List[BindingHandle]:
  """
  Declares a record for every simple-identifier parameter.

  Returns:
      Handles of the declared parameters, in signature order.
  """
  handles = []
  for arg in item.args:
    handle = arg.binding_handle()
    if handle is None:
      if ctx:
        shape = arg.pat.display_kind if arg.pat is not None else "none"
        ctx.inspect(f"{item.ident} arg #{arg.id}", "skipped", f"unsupported pattern shape {shape}")
      continue
    table.declare(handle.id, is_local=False, ident=handle.ident)
    handles.append(handle)
  return handles


def apply_record(handle: BindingHandle, record: VariableRecord, marker: str) -> None:
  """
  Writes the inferred decision for one binding back through the bridge.
  """
  by_value = handle.binding.is_by_value

  if not record.used:
    if by_value:
      handle.binding = BindingMode.VALUE_IMMUTABLE
    if not handle.ident.startswith(marker):
      handle.ident = marker + handle.ident
  elif by_value:
    handle.binding = record.binding


def analyze(item: ItemHandle, ctx: Optional[PassContext] = None) -> Tuple[SymbolTable, List[BindingHandle]]:
  """
  Builds the symbol table of an item without rewriting anything.

  Returns:
      The populated table and the bindings to rewrite, parameters first,
      then top-level locals, in declaration order.

  Raises:
      UnsupportedNodeKind: If the body contains a construct outside the grammar.
  """
  table = SymbolTable()
  targets = declare_params(item, table, ctx)

  UsageVisitor(table, ctx).run(item.block)

  for local in item.locals():
    handle = local.binding_handle()
    if handle is not None and handle.id in table:
      targets.append(handle)
  return table, targets


@register_pass(PASS_NAME)
def cleanup_params_locals(item: ItemHandle, ctx: PassContext) -> None:
  """
  Infers binding modes and marks unused bindings of one function-like item.
  """
  if item.is_bodiless:
    return

  logger.debug("FnLike name: %s", item.ident)
  table, targets = analyze(item, ctx)

  for handle in targets:
    apply_record(handle, table.get(handle.id), ctx.unused_marker)
