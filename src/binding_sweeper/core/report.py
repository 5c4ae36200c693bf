"""
Data structures representing the output of a sweep run.

This module defines the ``SweepReport`` Pydantic model, which encapsulates
which items were processed or skipped, the conditions raised on unsupported
constructs, the committed field changes, and the execution trace.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from binding_sweeper.core.bridge import FieldChange


class Condition(BaseModel):
  """
  An item abandoned because traversal reached an unsupported construct.
  """

  item: str = Field(..., description="Identifier of the abandoned item.")
  item_id: int = Field(..., description="Node identity of the abandoned item.")
  node_id: int = Field(..., description="Identity of the offending node.")
  kind: str = Field(..., description="Kind tag of the offending node (e.g. 'Expr::While').")
  pass_name: Optional[str] = Field(None, description="Pass that was running.")

  def __str__(self) -> str:
    return f"{self.item}: unsupported {self.kind} (node #{self.node_id})"


class SweepReport(BaseModel):
  """
  Container for the results of one driver run over a translation unit.
  """

  unit_id: int = Field(..., description="Identity of the swept translation unit.")
  passes: List[str] = Field(default_factory=list, description="Pass sequence that was run.")
  processed: List[str] = Field(default_factory=list, description="Items every pass completed on.")
  skipped: List[str] = Field(default_factory=list, description="Bodiless items left untouched.")
  conditions: List[Condition] = Field(default_factory=list, description="Items abandoned on unsupported constructs.")
  changes: List[FieldChange] = Field(default_factory=list, description="Committed field writes, in order.")
  trace_events: List[Dict[str, Any]] = Field(default_factory=list, description="Execution trace log data.")

  @property
  def has_conditions(self) -> bool:
    """
    Check if any item was abandoned.

    Returns:
        True if one or more conditions were recorded.
    """
    return len(self.conditions) > 0

  @property
  def success(self) -> bool:
    """True when every item with a body was processed."""
    return not self.has_conditions
