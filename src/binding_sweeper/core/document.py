"""
Tree Document Format.

Loads and dumps translation units as JSON documents. Nodes are described with
the ``type``/``kind`` vocabulary of the translator's AST dumps:

.. code-block:: json

    {"items": [{"ident": "f", "kind": "Normal",
                "args": [{"pat": {"type": "Pat", "kind": "Ident", "ident": "x"}}],
                "block": {"type": "Block", "stmts": [
                  {"type": "Stmt", "kind": "Semi",
                   "expr": {"type": "Expr", "kind": "Path", "segments": ["x"]}}]}}]}

The top level and items are validated by Pydantic schemas. Body nodes are
validated one at a time as they are converted, so error messages can name
the location (``items[0].block.stmts[2].expr``). Statement and expression
kinds outside the supported grammar load as ``Opaque`` nodes; patterns other
than ``Ident`` load as ``OtherPat``.
"""

import json
from pathlib import Path as FilePath
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

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
  Node,
  NodeArena,
  NodeId,
  Opaque,
  OtherPat,
  Path,
  TranslationUnit,
)
from binding_sweeper.core.builder import TreeBuilder
from binding_sweeper.core.errors import TreeDocumentError
from binding_sweeper.enums import BindingMode, FnKind, NodeFamily


class NodeDoc(BaseModel):
  """
  A single body node. Kind-specific fields are kept as extras.
  """

  model_config = ConfigDict(extra="allow")

  type: str = Field(..., description="Node family: Block, Stmt, Expr or Pat.")
  kind: Optional[str] = Field(None, description="Kind within the family (e.g. 'Local', 'Path').")
  id: Optional[int] = Field(None, description="Identity from a previous dump. Ignored on load.")

  def extra(self, key: str, default: Any = None) -> Any:
    return (self.model_extra or {}).get(key, default)


class ArgDoc(BaseModel):
  pat: Dict[str, Any] = Field(..., description="Parameter pattern node.")
  ty: Optional[str] = Field(None, description="Type annotation, kept verbatim.")
  id: Optional[int] = None


class ItemDoc(BaseModel):
  """
  A function-like item.
  """

  ident: str = Field(..., description="Item name.")
  kind: FnKind = Field(FnKind.NORMAL, description="Normal, Method or Foreign.")
  args: List[ArgDoc] = Field(default_factory=list)
  block: Optional[Dict[str, Any]] = Field(None, description="Body block. Absent for declarations.")
  id: Optional[int] = None


class UnitDoc(BaseModel):
  """
  Top-level document: one translation unit.
  """

  items: List[ItemDoc] = Field(default_factory=list)
  id: Optional[int] = None


class _Loader:
  def __init__(self, arena: NodeArena, source: Optional[str] = None):
    self.b = TreeBuilder(arena)
    self.source = source

  def fail(self, where: str, message: str) -> TreeDocumentError:
    return TreeDocumentError(f"{where}: {message}", self.source)

  def node(self, data: Any, where: str, family: NodeFamily) -> NodeDoc:
    if not isinstance(data, dict):
      raise self.fail(where, f"expected a {family.value} node object, got {type(data).__name__}")
    try:
      doc = NodeDoc.model_validate(data)
    except ValidationError as e:
      raise self.fail(where, str(e)) from None
    if doc.type != family.value:
      raise self.fail(where, f"expected type '{family.value}', got '{doc.type}'")
    return doc

  def seq(self, value: Any, where: str) -> List[Any]:
    if value is None:
      return []
    if not isinstance(value, list):
      raise self.fail(where, "expected a list")
    return value

  def unit(self, doc: UnitDoc) -> NodeId:
    items = [self.item(item, f"items[{i}]") for i, item in enumerate(doc.items)]
    return self.b.unit(items)

  def item(self, doc: ItemDoc, where: str) -> NodeId:
    args = []
    for i, arg in enumerate(doc.args):
      pat = self.pat(arg.pat, f"{where}.args[{i}].pat")
      args.append(self.b.arg(pat, ty=arg.ty))

    block = None
    if doc.block is not None and doc.kind != FnKind.FOREIGN:
      block = self.block(doc.block, f"{where}.block")
    return self.b.arena.allocate(FnLike, ident=doc.ident, fn_kind=doc.kind, args=args, block=block)

  def block(self, data: Any, where: str) -> NodeId:
    doc = self.node(data, where, NodeFamily.BLOCK)
    raw = self.seq(doc.extra("stmts"), f"{where}.stmts")
    return self.b.block([self.stmt(s, f"{where}.stmts[{i}]") for i, s in enumerate(raw)])

  def stmt(self, data: Any, where: str) -> NodeId:
    doc = self.node(data, where, NodeFamily.STMT)
    kind = doc.kind

    if kind == "Local":
      pat = doc.extra("pat")
      if pat is None:
        raise self.fail(where, "Local without a pattern")
      init = doc.extra("init")
      return self.b.local(
        self.pat(pat, f"{where}.pat"),
        self.expr(init, f"{where}.init") if init is not None else None,
      )

    if kind == "Item":
      raw = doc.extra("item")
      if raw is None:
        return self.b.item_stmt(None)
      try:
        item_doc = ItemDoc.model_validate(raw)
      except ValidationError as e:
        raise self.fail(f"{where}.item", str(e)) from None
      return self.b.item_stmt(self.item(item_doc, f"{where}.item"))

    if kind in ("Semi", "Expr"):
      expr = self.expr(doc.extra("expr"), f"{where}.expr")
      return self.b.semi(expr) if kind == "Semi" else self.b.expr_stmt(expr)

    return self.opaque(doc, where, NodeFamily.STMT)

  def expr(self, data: Any, where: str) -> NodeId:
    doc = self.node(data, where, NodeFamily.EXPR)
    kind = doc.kind

    if kind == "Box":
      return self.b.box(self.expr(doc.extra("boxed"), f"{where}.boxed"))
    if kind == "Array":
      raw = self.seq(doc.extra("values"), f"{where}.values")
      return self.b.array([self.expr(v, f"{where}.values[{i}]") for i, v in enumerate(raw)])
    if kind in ("Binary", "Assign", "AssignOp"):
      lhs = self.expr(doc.extra("lhs"), f"{where}.lhs")
      rhs = self.expr(doc.extra("rhs"), f"{where}.rhs")
      if kind == "Binary":
        return self.b.binary(doc.extra("op", "+"), lhs, rhs)
      if kind == "AssignOp":
        return self.b.assign_op(doc.extra("op", "+"), lhs, rhs)
      return self.b.assign(lhs, rhs)
    if kind == "Path":
      segments = doc.extra("segments")
      if isinstance(segments, str):
        segments = segments.split("::")
      if not segments or not all(isinstance(s, str) for s in segments):
        raise self.fail(where, "Path needs a non-empty list of string segments")
      return self.b.path(*segments)
    if kind == "Lit":
      return self.b.lit(doc.extra("value"))

    return self.opaque(doc, where, NodeFamily.EXPR)

  def pat(self, data: Any, where: str) -> NodeId:
    doc = self.node(data, where, NodeFamily.PAT)
    if doc.kind == "Ident":
      ident = doc.extra("ident")
      if not isinstance(ident, str) or not ident:
        raise self.fail(where, "Ident pattern needs a non-empty 'ident'")
      try:
        binding = BindingMode(doc.extra("binding", BindingMode.VALUE_IMMUTABLE.value))
      except ValueError as e:
        raise self.fail(where, str(e)) from None
      return self.b.ident(ident, binding)

    raw = self.seq(doc.extra("subpats"), f"{where}.subpats")
    subpats = [self.pat(p, f"{where}.subpats[{i}]") for i, p in enumerate(raw)]
    return self.b.other_pat(doc.kind or "Wild", subpats)

  def opaque(self, doc: NodeDoc, where: str, family: NodeFamily) -> NodeId:
    """Children of an opaque node are kept when they are given as typed nodes."""
    children = []
    for i, child in enumerate(self.seq(doc.extra("children"), f"{where}.children")):
      child_where = f"{where}.children[{i}]"
      child_type = child.get("type") if isinstance(child, dict) else None
      if child_type == NodeFamily.BLOCK.value:
        children.append(self.block(child, child_where))
      elif child_type == NodeFamily.STMT.value:
        children.append(self.stmt(child, child_where))
      elif child_type == NodeFamily.PAT.value:
        children.append(self.pat(child, child_where))
      else:
        children.append(self.expr(child, child_where))
    return self.b.opaque(doc.kind or "Unknown", children, family)


def load_unit(arena: NodeArena, data: Union[Dict[str, Any], str], source: Optional[str] = None) -> NodeId:
  """
  Allocates a translation unit described by a document into ``arena``.

  Args:
      arena: Target arena.
      data: Parsed document, or its JSON text.
      source: Name used in error messages (usually the file path).

  Returns:
      Identity of the new ``TranslationUnit``.

  Raises:
      TreeDocumentError: If the document is malformed.
  """
  if isinstance(data, str):
    try:
      data = json.loads(data)
    except json.JSONDecodeError as e:
      raise TreeDocumentError(f"invalid JSON: {e}", source) from None

  if not isinstance(data, dict):
    raise TreeDocumentError("document root must be an object", source)

  try:
    doc = UnitDoc.model_validate(data)
  except ValidationError as e:
    raise TreeDocumentError(str(e), source) from None

  return _Loader(arena, source).unit(doc)


def load_file(arena: NodeArena, path: FilePath) -> NodeId:
  """Reads a document from disk. See ``load_unit``."""
  try:
    text = FilePath(path).read_text(encoding="utf-8")
  except OSError as e:
    raise TreeDocumentError(str(e), str(path)) from None
  return load_unit(arena, text, source=str(path))


# --- Dumping ---


def _node(node: Node, kind: Optional[str], **fields_: Any) -> Dict[str, Any]:
  out: Dict[str, Any] = {"type": node.family.value}
  if kind is not None:
    out["kind"] = kind
  out["id"] = node.id
  out.update(fields_)
  return out


def dump_node(arena: NodeArena, node_id: Optional[NodeId]) -> Optional[Dict[str, Any]]:
  """
  Serialises the subtree rooted at ``node_id``.

  Args:
      arena: Arena owning the subtree.
      node_id: Root identity. None dumps as None.

  Returns:
      A JSON-compatible dict in the load format, with node ids.
  """
  if node_id is None:
    return None

  node = arena.get(node_id)
  def sub(child: Optional[NodeId]) -> Optional[Dict[str, Any]]:
    return dump_node(arena, child)

  def many(children: List[NodeId]) -> List[Any]:
    return [dump_node(arena, c) for c in children]

  if isinstance(node, TranslationUnit):
    return {"id": node.id, "items": many(node.items)}
  if isinstance(node, FnLike):
    return {
      "id": node.id,
      "ident": node.ident,
      "kind": node.fn_kind.value,
      "args": many(node.args),
      "block": sub(node.block),
    }
  if isinstance(node, Arg):
    out = {"id": node.id, "pat": sub(node.pat)}
    if node.ty is not None:
      out["ty"] = node.ty
    return out
  if isinstance(node, Block):
    return _node(node, None, stmts=many(node.stmts))
  if isinstance(node, Local):
    return _node(node, "Local", pat=sub(node.pat), init=sub(node.init))
  if isinstance(node, ItemStmt):
    return _node(node, "Item", item=sub(node.item))
  if isinstance(node, ExprStmt):
    return _node(node, "Semi" if node.semi else "Expr", expr=sub(node.expr))
  if isinstance(node, Box):
    return _node(node, "Box", boxed=sub(node.boxed))
  if isinstance(node, Array):
    return _node(node, "Array", values=many(node.values))
  if isinstance(node, Binary):
    return _node(node, "Binary", op=node.op, lhs=sub(node.lhs), rhs=sub(node.rhs))
  if isinstance(node, AssignOp):
    return _node(node, "AssignOp", op=node.op, lhs=sub(node.lhs), rhs=sub(node.rhs))
  if isinstance(node, Assign):
    return _node(node, "Assign", lhs=sub(node.lhs), rhs=sub(node.rhs))
  if isinstance(node, Path):
    return _node(node, "Path", segments=list(node.segments))
  if isinstance(node, Lit):
    return _node(node, "Lit", value=node.value)
  if isinstance(node, IdentPat):
    return _node(node, "Ident", ident=node.ident, binding=node.binding.value)
  if isinstance(node, OtherPat):
    return _node(node, node.shape, subpats=many(node.subpats))
  if isinstance(node, Opaque):
    return {"type": node.in_family.value, "kind": node.tag, "id": node.id, "children": many(node.children)}

  raise TypeError(f"Cannot serialise {node.display_kind}")


def dump_unit(arena: NodeArena, unit_id: NodeId) -> Dict[str, Any]:
  """Serialises a translation unit. The result loads back with ``load_unit``."""
  return dump_node(arena, unit_id)
