"""
Enumerations for binding-sweeper.

This module defines the enumerations shared by the arena, the bridge and the
passes: binding modes and the node families of the syntax tree.
"""

from enum import Enum


class BindingMode(str, Enum):
  """
  Mutability / reference qualifier attached to an identifier pattern.

  Values match the strings used in tree documents.
  """

  VALUE_IMMUTABLE = "ByValueImmutable"  # x
  VALUE_MUTABLE = "ByValueMutable"  # mut x
  REF_IMMUTABLE = "ByRefImmutable"  # ref x
  REF_MUTABLE = "ByRefMutable"  # ref mut x

  @property
  def is_by_value(self) -> bool:
    """True for the two modes this engine is allowed to infer."""
    return self in (BindingMode.VALUE_IMMUTABLE, BindingMode.VALUE_MUTABLE)


class NodeFamily(str, Enum):
  """
  Top-level tag of a node. Mirrors the ``type`` key of tree documents.
  """

  BLOCK = "Block"
  STMT = "Stmt"
  EXPR = "Expr"
  PAT = "Pat"
  ITEM = "Item"


class FnKind(str, Enum):
  """
  Flavour of a function-like item.
  """

  NORMAL = "Normal"
  METHOD = "Method"
  FOREIGN = "Foreign"  # extern declarations, never have a body
