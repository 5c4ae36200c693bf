"""
Error Taxonomy.

Exceptions raised across the engine. Only ``UnsupportedNodeKind`` is expected
in normal operation; the driver recovers from it at the item boundary.
``ArenaIdentityNotFound`` signals a bug in the host and is never caught.
"""

from typing import Optional


class BindingSweeperError(Exception):
  """Base class for all engine errors."""


class UnsupportedNodeKind(BindingSweeperError):
  """
  Raised when traversal reaches a node outside the supported grammar.

  Attributes:
      node_id: Identity of the offending node.
      kind: Human readable kind tag (e.g. ``Expr::While``).
  """

  def __init__(self, node_id: int, kind: str):
    self.node_id = node_id
    self.kind = kind
    super().__init__(f"Unsupported node kind '{kind}' (node #{node_id})")


class ArenaIdentityNotFound(BindingSweeperError, LookupError):
  """Raised when a node identity is not present in the arena."""

  def __init__(self, node_id: int):
    self.node_id = node_id
    super().__init__(f"Node #{node_id} does not exist in the arena")


class BridgeAccessError(BindingSweeperError):
  """Raised when a pass writes a field the bridge does not expose."""


class TreeDocumentError(BindingSweeperError):
  """Raised when a JSON tree document cannot be loaded."""

  def __init__(self, message: str, path: Optional[str] = None):
    self.path = path
    if path:
      message = f"{path}: {message}"
    super().__init__(message)


class PassNotFoundError(BindingSweeperError, KeyError):
  """Raised when a requested pass has not been registered."""

  def __init__(self, name: str):
    self.name = name
    super().__init__(name)

  def __str__(self) -> str:
    return f"No pass registered under '{self.name}'"


class ScriptRejectedError(BindingSweeperError):
  """Raised when an external pass script fails the static guard."""

  def __init__(self, script: str, violations: list):
    self.script = script
    self.violations = list(violations)
    super().__init__(f"Pass script '{script}' rejected: {'; '.join(self.violations)}")
