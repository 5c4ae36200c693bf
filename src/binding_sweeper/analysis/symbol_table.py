"""
Scoped Symbol Table with Shadow Tracking.

The table maps the identity of a binding pattern to a ``VariableRecord``
describing how that binding is used inside one function-like item. It is
created fresh per item and discarded afterwards.

Resolution is by identifier text over the whole table, not by lexical depth:

1.  ``declare`` marks every live record with the same identifier as shadowed,
    then adds the new record. Nothing is ever removed.
2.  ``find_by_identifier`` returns *all* records with that identifier, shadowed
    ones included. A later read of ``v`` therefore counts as a use of every
    ``v`` declared so far. This is conservative: it never under-reports usage,
    at the cost of keeping a dead shadowed local from being renamed.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List

from binding_sweeper.core.arena import NodeId
from binding_sweeper.enums import BindingMode


@dataclass
class VariableRecord:
  """
  Usage metadata for one binding.
  """

  id: NodeId
  """Identity of the ``IdentPat`` this record describes."""

  is_local: bool
  """False for parameters, True for ``let`` bindings."""

  ident: str
  """Identifier text at declaration time."""

  binding: BindingMode = BindingMode.VALUE_IMMUTABLE
  """Inferred binding mode."""

  used: bool = False
  shadowed: bool = False


class SymbolTable:
  """
  Flat, insertion-ordered record store for one item's analysis.
  """

  def __init__(self) -> None:
    self._records: Dict[NodeId, VariableRecord] = {}

  def __len__(self) -> int:
    return len(self._records)

  def __contains__(self, node_id: object) -> bool:
    return node_id in self._records

  def __iter__(self) -> Iterator[VariableRecord]:
    """Records in declaration order."""
    return iter(self._records.values())

  def declare(self, node_id: NodeId, is_local: bool, ident: str) -> VariableRecord:
    """
    Registers a binding.

    Any existing record named ``ident`` becomes shadowed. Redeclaring the same
    identity replaces its record (a pass re-running on the same item).

    Args:
        node_id: Identity of the binding pattern.
        is_local: Whether the binding comes from a ``let`` statement.
        ident: The identifier text.

    Returns:
        The new record.
    """
    for record in self.find_by_identifier(ident):
      record.shadowed = True

    record = VariableRecord(id=node_id, is_local=is_local, ident=ident)
    self._records[node_id] = record
    return record

  def find_by_identifier(self, ident: str) -> List[VariableRecord]:
    """Every record declared with ``ident``, in declaration order."""
    return [r for r in self._records.values() if r.ident == ident]

  def get(self, node_id: NodeId) -> VariableRecord:
    """
    Looks up a record by binding identity.

    Raises:
        KeyError: If nothing was declared for this identity.
    """
    try:
      return self._records[node_id]
    except KeyError:
      raise KeyError(f"No variable declared for binding #{node_id}") from None

  def mark_used(self, node_id: NodeId) -> None:
    self.get(node_id).used = True

  def mark_mutated(self, node_id: NodeId) -> None:
    self.get(node_id).binding = BindingMode.VALUE_MUTABLE
