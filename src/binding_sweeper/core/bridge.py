"""
Scripting Bridge.

The only surface passes see. It exposes two capability groups:

1.  **Item enumeration**: ``visit_fn_like`` hands a pass an ``ItemHandle`` for
    every function-like item of a translation unit, in declaration order.
2.  **Field access keyed by identity**: ``NodeView`` gives read-only access to
    any node; ``BindingHandle``, ``ArgHandle`` and ``LocalHandle`` allow writes
    to the binding-related fields only (identifier text, binding mode, the
    ``pat`` field of arguments and locals).

Nothing is copied: reads go to the arena and writes are applied to it before
the call returns. Every write is also recorded as a ``FieldChange`` in the
active ``ChangeSet`` so the driver can commit or discard it per pass.
Allocation is deliberately absent, so a pass cannot add nodes to the tree.
"""

import contextlib
from typing import Any, Callable, Dict, FrozenSet, Iterator, List, Optional, Type, Union

from pydantic import BaseModel, Field

from binding_sweeper.core.arena import (
  MANY,
  ONE,
  Arg,
  FnLike,
  IdentPat,
  Local,
  Node,
  NodeArena,
  NodeId,
  OtherPat,
  field_specs,
)
from binding_sweeper.core.errors import BridgeAccessError
from binding_sweeper.core.tracer import TraceLogger
from binding_sweeper.enums import BindingMode, FnKind

# Fields a pass may write, per node kind.
_WRITABLE: Dict[type, FrozenSet[str]] = {
  IdentPat: frozenset({"ident", "binding"}),
  Arg: frozenset({"pat"}),
  Local: frozenset({"pat"}),
}

_PATTERN_KINDS = (IdentPat, OtherPat)


class FieldChange(BaseModel):
  """
  One field write performed through the bridge.
  """

  node_id: int = Field(..., description="Identity of the written node.")
  field_name: str = Field(..., description="Name of the written field.")
  before: Any = Field(None, description="Value before the write.")
  after: Any = Field(None, description="Value after the write.")
  pass_name: Optional[str] = Field(None, description="Pass that performed the write.")


class ChangeSet:
  """
  Ordered collection of ``FieldChange`` records.
  """

  def __init__(self, pass_name: Optional[str] = None) -> None:
    self.pass_name = pass_name
    self._changes: List[FieldChange] = []

  def __len__(self) -> int:
    return len(self._changes)

  def __iter__(self) -> Iterator[FieldChange]:
    return iter(self._changes)

  def record(self, node_id: NodeId, field_name: str, before: Any, after: Any) -> FieldChange:
    change = FieldChange(
      node_id=node_id,
      field_name=field_name,
      before=_plain(before),
      after=_plain(after),
      pass_name=self.pass_name,
    )
    self._changes.append(change)
    return change

  def extend(self, other: "ChangeSet") -> None:
    self._changes.extend(other)


class NodeView:
  """
  Read-only view of one arena node.

  Child fields resolve to views (or lists of views); other fields return their
  value. Assigning any attribute raises ``BridgeAccessError``.
  """

  __slots__ = ("_bridge", "_id")

  def __init__(self, bridge: "ScriptingBridge", node_id: NodeId):
    object.__setattr__(self, "_bridge", bridge)
    object.__setattr__(self, "_id", node_id)
    bridge.arena.get(node_id)

  @property
  def id(self) -> NodeId:
    return self._id

  @property
  def node_type(self) -> Type[Node]:
    """The concrete node class, for kind dispatch."""
    return type(self._bridge.arena.get(self._id))

  @property
  def kind(self) -> str:
    return self._bridge.arena.get(self._id).kind

  @property
  def display_kind(self) -> str:
    return self._bridge.arena.get(self._id).display_kind

  def is_a(self, *kinds: Type[Node]) -> bool:
    return issubclass(self.node_type, kinds)

  def child_views(self) -> List["NodeView"]:
    return [NodeView(self._bridge, c) for c in self._bridge.arena.children_of(self._id)]

  def __getattr__(self, name: str) -> Any:
    if name.startswith("_"):
      raise AttributeError(name)
    node = self._bridge.arena.get(self._id)
    spec = field_specs(type(node)).get(name)
    if spec is None:
      raise AttributeError(f"{node.display_kind} has no field '{name}'")

    value = getattr(node, name)
    child = spec.metadata.get("child")
    if child == ONE:
      return None if value is None else NodeView(self._bridge, value)
    if child == MANY:
      return [NodeView(self._bridge, v) for v in value]
    if isinstance(value, list):
      return list(value)
    return value

  def __setattr__(self, name: str, value: Any) -> None:
    raise BridgeAccessError(f"Node views are read-only (tried to set '{name}' on #{self._id})")

  def __eq__(self, other: object) -> bool:
    return isinstance(other, NodeView) and other._id == self._id

  def __hash__(self) -> int:
    return hash(self._id)

  def __repr__(self) -> str:
    return f"NodeView(#{self._id} {self.display_kind})"


class BindingHandle:
  """
  Mutable handle on an identifier pattern.
  """

  def __init__(self, bridge: "ScriptingBridge", pat_id: NodeId):
    self._bridge = bridge
    self.id = pat_id
    bridge.arena.get_as(pat_id, IdentPat)

  @property
  def ident(self) -> str:
    return self._bridge.arena.get_as(self.id, IdentPat).ident

  @ident.setter
  def ident(self, value: str) -> None:
    if not isinstance(value, str) or not value:
      raise BridgeAccessError(f"Identifier must be a non-empty string, got {value!r}")
    self._bridge.write(self.id, "ident", value)

  @property
  def binding(self) -> BindingMode:
    return self._bridge.arena.get_as(self.id, IdentPat).binding

  @binding.setter
  def binding(self, value: Union[BindingMode, str]) -> None:
    try:
      mode = BindingMode(value)
    except ValueError:
      raise BridgeAccessError(f"Unknown binding mode {value!r}") from None
    self._bridge.write(self.id, "binding", mode)

  def __repr__(self) -> str:
    return f"BindingHandle(#{self.id} {self.binding.value} {self.ident})"


class _PatOwnerHandle:
  """Shared behaviour of argument and local handles: a writable ``pat`` field."""

  _kind: Type[Node] = Node

  def __init__(self, bridge: "ScriptingBridge", node_id: NodeId):
    self._bridge = bridge
    self.id = node_id
    bridge.arena.get_as(node_id, self._kind)

  @property
  def pat(self) -> Optional[NodeView]:
    pat_id = getattr(self._bridge.arena.get(self.id), "pat")
    return None if pat_id is None else NodeView(self._bridge, pat_id)

  @pat.setter
  def pat(self, value: Union[NodeId, NodeView]) -> None:
    pat_id = value.id if isinstance(value, NodeView) else value
    if not isinstance(self._bridge.arena.get(pat_id), _PATTERN_KINDS):
      raise BridgeAccessError(f"Node #{pat_id} is not a pattern")
    self._bridge.write(self.id, "pat", pat_id)

  def binding_handle(self) -> Optional[BindingHandle]:
    """Handle on the pattern if it is a simple identifier, else None."""
    pat = self.pat
    if pat is None or not pat.is_a(IdentPat):
      return None
    return BindingHandle(self._bridge, pat.id)


class ArgHandle(_PatOwnerHandle):
  _kind = Arg

  def __repr__(self) -> str:
    return f"ArgHandle(#{self.id})"


class LocalHandle(_PatOwnerHandle):
  _kind = Local

  @property
  def init(self) -> Optional[NodeView]:
    init_id = self._bridge.arena.get_as(self.id, Local).init
    return None if init_id is None else NodeView(self._bridge, init_id)

  def __repr__(self) -> str:
    return f"LocalHandle(#{self.id})"


class ItemHandle:
  """
  Mutable handle on a function-like item, passed to every pass invocation.
  """

  def __init__(self, bridge: "ScriptingBridge", fn_id: NodeId):
    self._bridge = bridge
    self.id = fn_id
    bridge.arena.get_as(fn_id, FnLike)

  @property
  def _fn(self) -> FnLike:
    return self._bridge.arena.get_as(self.id, FnLike)

  @property
  def ident(self) -> str:
    return self._fn.ident

  @property
  def kind(self) -> FnKind:
    return self._fn.fn_kind

  @property
  def is_bodiless(self) -> bool:
    return self._fn.is_bodiless

  @property
  def args(self) -> List[ArgHandle]:
    return [ArgHandle(self._bridge, a) for a in self._fn.args]

  @property
  def block(self) -> Optional[NodeView]:
    block_id = self._fn.block
    return None if block_id is None else NodeView(self._bridge, block_id)

  def locals(self) -> List[LocalHandle]:
    """``let`` statements of the body's top-level statement list, in order."""
    block = self.block
    if block is None:
      return []
    return [LocalHandle(self._bridge, s.id) for s in block.stmts if s.is_a(Local)]

  def __repr__(self) -> str:
    return f"ItemHandle(#{self.id} {self.kind.value} {self.ident})"


class ScriptingBridge:
  """
  Narrow, identity-keyed interface between the arena and passes.
  """

  def __init__(
    self,
    arena: NodeArena,
    change_set: Optional[ChangeSet] = None,
    tracer: Optional[TraceLogger] = None,
  ):
    """
    Args:
        arena: The arena holding the tree.
        change_set: Sink for field writes. A throwaway one is used if None.
        tracer: Optional trace logger receiving a rewrite event per write.
    """
    self.arena = arena
    self.change_set = change_set if change_set is not None else ChangeSet()
    self.tracer = tracer

  def node(self, node_id: NodeId) -> NodeView:
    return NodeView(self, node_id)

  def item(self, fn_id: NodeId) -> ItemHandle:
    return ItemHandle(self, fn_id)

  def fn_like_ids(self, unit_id: NodeId) -> List[NodeId]:
    """
    Function-like items under ``unit_id`` in declaration order.

    Nested items (``Stmt::Item``) follow the item that contains them.
    """
    return [nid for nid in self.arena.descendants(unit_id) if isinstance(self.arena.get(nid), FnLike)]

  def visit_fn_like(self, unit_id: NodeId, callback: Callable[[ItemHandle], Any]) -> None:
    """
    Invokes ``callback`` with a mutable handle for every function-like item.

    Args:
        unit_id: Root node (usually a ``TranslationUnit``).
        callback: Receives one ``ItemHandle`` per item.
    """
    for fn_id in self.fn_like_ids(unit_id):
      callback(ItemHandle(self, fn_id))

  @contextlib.contextmanager
  def staging(self, pass_name: Optional[str] = None) -> Iterator[ChangeSet]:
    """
    Routes writes into a fresh change set for the duration of the block.
    """
    previous = self.change_set
    staged = ChangeSet(pass_name)
    self.change_set = staged
    try:
      yield staged
    finally:
      self.change_set = previous

  def write(self, node_id: NodeId, field_name: str, value: Any) -> None:
    """
    Applies an allow-listed field write and records it.

    Writes that do not change the value are dropped.
    """
    node = self.arena.get(node_id)
    allowed = _WRITABLE.get(type(node), frozenset())
    if field_name not in allowed:
      raise BridgeAccessError(f"Field '{field_name}' of {node.display_kind} is not writable from a pass")

    before = getattr(node, field_name)
    if before == value:
      return

    self.arena.set_field(node_id, field_name, value)
    self.change_set.record(node_id, field_name, before, value)
    if self.tracer is not None:
      self.tracer.log_rewrite(node_id, field_name, before, value)


def _plain(value: Any) -> Any:
  if isinstance(value, BindingMode):
    return value.value
  return value


__all__ = [
  "ArgHandle",
  "BindingHandle",
  "ChangeSet",
  "FieldChange",
  "ItemHandle",
  "LocalHandle",
  "NodeView",
  "ScriptingBridge",
]
