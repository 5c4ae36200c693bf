"""
Node Arena.

This module defines the closed set of syntax-tree node kinds and the
``NodeArena`` that owns them. Nodes never hold references to each other;
every cross reference is an integer identity handed out by the arena.

Identities are stamped at allocation, are unique for the lifetime of the arena
and are never reused, even when a node is detached from the tree by a later
field write. A node's kind is a class-level constant; only its dataclass fields
can be mutated, through ``NodeArena.set_field``.

Child fields carry ``metadata={"child": ONE}`` (a single optional identity) or
``metadata={"child": MANY}`` (an ordered list of identities). ``children_of``
relies on this marker and on dataclass field order.
"""

from dataclasses import dataclass, field, fields
from typing import Any, ClassVar, Dict, Iterator, List, Optional, Type, TypeVar

from binding_sweeper.core.errors import ArenaIdentityNotFound
from binding_sweeper.enums import BindingMode, FnKind, NodeFamily

NodeId = int

NO_ID: NodeId = -1
ONE = "one"
MANY = "many"

N = TypeVar("N", bound="Node")


def _child(default: Any = None) -> Any:
  return field(default=default, metadata={"child": ONE})


def _children() -> Any:
  return field(default_factory=list, metadata={"child": MANY})


@dataclass
class Node:
  """
  Base class of every syntax-tree node.
  """

  family: ClassVar[NodeFamily]
  kind: ClassVar[str]

  id: NodeId = field(default=NO_ID, kw_only=True, compare=False)
  """Arena identity. ``NO_ID`` until the node is allocated."""

  @property
  def display_kind(self) -> str:
    """Family-qualified kind tag, e.g. ``Expr::Path``."""
    return f"{self.family.value}::{self.kind}"


# --- Block ---


@dataclass
class Block(Node):
  family: ClassVar[NodeFamily] = NodeFamily.BLOCK
  kind: ClassVar[str] = "Block"

  stmts: List[NodeId] = _children()


# --- Statements ---


@dataclass
class Local(Node):
  """``let <pat> = <init>;``"""

  family: ClassVar[NodeFamily] = NodeFamily.STMT
  kind: ClassVar[str] = "Local"

  pat: Optional[NodeId] = _child()
  init: Optional[NodeId] = _child()


@dataclass
class ItemStmt(Node):
  """A nested item declaration. Its contents are not part of the enclosing body."""

  family: ClassVar[NodeFamily] = NodeFamily.STMT
  kind: ClassVar[str] = "Item"

  item: Optional[NodeId] = _child()


@dataclass
class ExprStmt(Node):
  """An expression in statement position, with (``semi``) or without a trailing ``;``."""

  family: ClassVar[NodeFamily] = NodeFamily.STMT
  kind: ClassVar[str] = "ExprStmt"

  expr: Optional[NodeId] = _child()
  semi: bool = True


# --- Expressions ---


@dataclass
class Box(Node):
  family: ClassVar[NodeFamily] = NodeFamily.EXPR
  kind: ClassVar[str] = "Box"

  boxed: Optional[NodeId] = _child()


@dataclass
class Array(Node):
  family: ClassVar[NodeFamily] = NodeFamily.EXPR
  kind: ClassVar[str] = "Array"

  values: List[NodeId] = _children()


@dataclass
class Binary(Node):
  family: ClassVar[NodeFamily] = NodeFamily.EXPR
  kind: ClassVar[str] = "Binary"

  op: str = "+"
  lhs: Optional[NodeId] = _child()
  rhs: Optional[NodeId] = _child()


@dataclass
class Assign(Node):
  family: ClassVar[NodeFamily] = NodeFamily.EXPR
  kind: ClassVar[str] = "Assign"

  lhs: Optional[NodeId] = _child()
  rhs: Optional[NodeId] = _child()


@dataclass
class AssignOp(Node):
  family: ClassVar[NodeFamily] = NodeFamily.EXPR
  kind: ClassVar[str] = "AssignOp"

  op: str = "+"
  lhs: Optional[NodeId] = _child()
  rhs: Optional[NodeId] = _child()


@dataclass
class Path(Node):
  family: ClassVar[NodeFamily] = NodeFamily.EXPR
  kind: ClassVar[str] = "Path"

  segments: List[str] = field(default_factory=list)

  @property
  def single_segment(self) -> Optional[str]:
    """The identifier if this is a one-segment path, else None."""
    if len(self.segments) == 1:
      return self.segments[0]
    return None


@dataclass
class Lit(Node):
  family: ClassVar[NodeFamily] = NodeFamily.EXPR
  kind: ClassVar[str] = "Lit"

  value: Any = None


# --- Patterns ---


@dataclass
class IdentPat(Node):
  """A simple binding: ``[ref] [mut] ident``."""

  family: ClassVar[NodeFamily] = NodeFamily.PAT
  kind: ClassVar[str] = "Ident"

  ident: str = ""
  binding: BindingMode = BindingMode.VALUE_IMMUTABLE


@dataclass
class OtherPat(Node):
  """Any non-identifier pattern (tuple, struct, wildcard...). ``shape`` keeps the source tag."""

  family: ClassVar[NodeFamily] = NodeFamily.PAT
  kind: ClassVar[str] = "Other"

  shape: str = "Wild"
  subpats: List[NodeId] = _children()

  @property
  def display_kind(self) -> str:
    return f"{self.family.value}::{self.shape}"


# --- Items ---


@dataclass
class Arg(Node):
  family: ClassVar[NodeFamily] = NodeFamily.ITEM
  kind: ClassVar[str] = "Arg"

  pat: Optional[NodeId] = _child()
  ty: Optional[str] = None


@dataclass
class FnLike(Node):
  """A named callable: free function, method or foreign declaration."""

  family: ClassVar[NodeFamily] = NodeFamily.ITEM
  kind: ClassVar[str] = "FnLike"

  ident: str = ""
  fn_kind: FnKind = FnKind.NORMAL
  args: List[NodeId] = _children()
  block: Optional[NodeId] = _child()

  @property
  def is_bodiless(self) -> bool:
    """Foreign declarations and prototypes without a block."""
    return self.fn_kind == FnKind.FOREIGN or self.block is None


@dataclass
class TranslationUnit(Node):
  family: ClassVar[NodeFamily] = NodeFamily.ITEM
  kind: ClassVar[str] = "TranslationUnit"

  items: List[NodeId] = _children()


# --- Outside the supported grammar ---


@dataclass
class Opaque(Node):
  """
  A construct of the wider language (loop, call, match...) kept in the tree
  so it can be reported, never traversed.
  """

  family: ClassVar[NodeFamily] = NodeFamily.EXPR
  kind: ClassVar[str] = "Opaque"

  in_family: NodeFamily = NodeFamily.EXPR
  tag: str = "Unknown"
  children: List[NodeId] = _children()

  @property
  def display_kind(self) -> str:
    return f"{self.in_family.value}::{self.tag}"


class NodeArena:
  """
  Exclusive owner of all nodes of a session.

  Lookup is a dict access; there is no free operation.
  """

  def __init__(self) -> None:
    self._nodes: Dict[NodeId, Node] = {}
    self._next_id: NodeId = 1

  def __len__(self) -> int:
    return len(self._nodes)

  def __contains__(self, node_id: object) -> bool:
    return node_id in self._nodes

  def ids(self) -> Iterator[NodeId]:
    """Yields every identity in allocation order."""
    return iter(self._nodes)

  def allocate(self, kind: Type[N], **fields_: Any) -> NodeId:
    """
    Creates a node of ``kind`` and stamps a fresh identity on it.

    Args:
        kind: Concrete node class (e.g. ``Path``).
        **fields_: Field values for the node.

    Returns:
        The new node's identity.
    """
    if "id" in fields_:
      raise TypeError("Node identities are assigned by the arena")
    node = kind(**fields_)
    node.id = self._next_id
    self._next_id += 1
    self._nodes[node.id] = node
    return node.id

  def get(self, node_id: NodeId) -> Node:
    """
    Resolves an identity.

    Raises:
        ArenaIdentityNotFound: If the identity was never allocated here.
    """
    try:
      return self._nodes[node_id]
    except (KeyError, TypeError):
      raise ArenaIdentityNotFound(node_id) from None

  def get_as(self, node_id: NodeId, kind: Type[N]) -> N:
    """Resolves an identity and checks its kind."""
    node = self.get(node_id)
    if not isinstance(node, kind):
      raise TypeError(f"Node #{node_id} is {node.display_kind}, expected {kind.__name__}")
    return node

  def set_field(self, node_id: NodeId, name: str, value: Any) -> None:
    """
    Overwrites one field of a node in place.

    Args:
        node_id: Target node.
        name: Dataclass field name. ``id`` is not writable.
        value: New value. Child fields take identities that must exist.
    """
    node = self.get(node_id)
    spec = field_specs(type(node)).get(name)
    if spec is None or name == "id":
      raise AttributeError(f"{node.display_kind} has no writable field '{name}'")

    child = spec.metadata.get("child")
    if child == ONE and value is not None:
      self.get(value)
    elif child == MANY:
      value = list(value)
      for item in value:
        self.get(item)

    setattr(node, name, value)

  def children_of(self, node_id: NodeId) -> List[NodeId]:
    """
    Ordered identities of the direct children of a node.

    Order follows field declaration order, then list order.
    """
    node = self.get(node_id)
    result: List[NodeId] = []
    for spec in field_specs(type(node)).values():
      child = spec.metadata.get("child")
      value = getattr(node, spec.name)
      if child == ONE and value is not None:
        result.append(value)
      elif child == MANY:
        result.extend(value)
    return result

  def descendants(self, node_id: NodeId) -> Iterator[NodeId]:
    """Pre-order walk starting at (and including) ``node_id``."""
    stack = [node_id]
    while stack:
      current = stack.pop()
      yield current
      stack.extend(reversed(self.children_of(current)))


_FIELD_CACHE: Dict[type, Dict[str, Any]] = {}


def field_specs(cls: type) -> Dict[str, Any]:
  specs = _FIELD_CACHE.get(cls)
  if specs is None:
    specs = {f.name: f for f in fields(cls) if f.name != "id"}
    _FIELD_CACHE[cls] = specs
  return specs
