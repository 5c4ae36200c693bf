"""
Traversal Dispatcher.

``Visitor`` walks the restricted grammar the binding passes understand. For
every node it first calls a kind-specific hook (``visit_block``,
``visit_stmt`` or ``visit_expr``), then recurses into the children listed in
``GRAMMAR`` for that kind, depth-first and left to right.

The grammar is closed. A node whose class is not a key of ``GRAMMAR``
(``Opaque`` constructs, or a pattern/item node in statement position) raises
``UnsupportedNodeKind``; the walk never skips what it does not understand.

Recursion rules:

- ``Block``: every statement in order.
- ``Local``: the initializer, if any. ``Item``: nothing.
  ``ExprStmt``: its expression.
- ``Box``: the boxed expression. ``Array``: every element in order.
- ``Binary`` / ``Assign`` / ``AssignOp``: lhs then rhs.
- ``Path`` / ``Lit``: leaves.
"""

import logging
from typing import Dict, Optional, Tuple, Type

from binding_sweeper.core.arena import (
  Array,
  Assign,
  AssignOp,
  Binary,
  Block,
  Box,
  ExprStmt,
  ItemStmt,
  Lit,
  Local,
  Node,
  Path,
)
from binding_sweeper.core.bridge import NodeView
from binding_sweeper.core.errors import UnsupportedNodeKind

logger = logging.getLogger(__name__)

VISIT_BLOCK = "visit_block"
VISIT_STMT = "visit_stmt"
VISIT_EXPR = "visit_expr"

# Node class -> (hook name, child fields walked in order)
GRAMMAR: Dict[Type[Node], Tuple[str, Tuple[str, ...]]] = {
  Block: (VISIT_BLOCK, ("stmts",)),
  Local: (VISIT_STMT, ("init",)),
  ItemStmt: (VISIT_STMT, ()),
  ExprStmt: (VISIT_STMT, ("expr",)),
  Box: (VISIT_EXPR, ("boxed",)),
  Array: (VISIT_EXPR, ("values",)),
  Binary: (VISIT_EXPR, ("lhs", "rhs")),
  Assign: (VISIT_EXPR, ("lhs", "rhs")),
  AssignOp: (VISIT_EXPR, ("lhs", "rhs")),
  Path: (VISIT_EXPR, ()),
  Lit: (VISIT_EXPR, ()),
}


class Visitor:
  """
  Base class for passes that walk a function body.

  Subclasses override the hooks they need; the defaults do nothing.
  Hooks only collect metadata; structure is handled by ``run``.
  """

  def run(self, node: Optional[NodeView]) -> None:
    """
    Visits ``node`` and everything below it.

    Args:
        node: Root of the walk. ``None`` (an absent optional child) is a no-op.

    Raises:
        UnsupportedNodeKind: On the first node outside the grammar.
    """
    if node is None:
      return

    rule = GRAMMAR.get(node.node_type)
    if rule is None:
      raise UnsupportedNodeKind(node.id, node.display_kind)

    hook_name, child_fields = rule
    logger.debug("Visiting %s #%d", node.display_kind, node.id)
    getattr(self, hook_name)(node)

    for name in child_fields:
      child = getattr(node, name)
      if isinstance(child, list):
        for element in child:
          self.run(element)
      else:
        self.run(child)

  def visit_block(self, block: NodeView) -> None:
    pass

  def visit_stmt(self, stmt: NodeView) -> None:
    pass

  def visit_expr(self, expr: NodeView) -> None:
    pass
