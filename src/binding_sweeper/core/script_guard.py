"""
Static Guard for External Pass Scripts.

Pass scripts loaded from ``plugin_paths`` are plain Python modules. Before one
is executed, its source is parsed with LibCST and scanned by ``ScriptGuard``
to make sure it only talks to the tree through the scripting bridge:

1.  No import of the host-only modules (``builder``, ``document``, ``driver``)
    and no import of the arena owner (``NodeArena``) or the ``TreeBuilder``.
2.  No attribute access that reaches past a handle into host state
    (``.arena``, ``._bridge``, ``.allocate``, ``.set_field``, ``._nodes``).
3.  No dynamic import machinery (``importlib``, ``__import__``, ``exec``,
    ``eval``) that would defeat the two checks above.

This is a static check on source text. It keeps well-meaning scripts from
corrupting tree structure; it is not a sandbox.
"""

from typing import List, Union

import libcst as cst
from libcst.metadata import MetadataWrapper, PositionProvider

from binding_sweeper.core.errors import ScriptRejectedError

FORBIDDEN_MODULES = frozenset(
  {
    "binding_sweeper.core.builder",
    "binding_sweeper.core.document",
    "binding_sweeper.core.driver",
    "importlib",
  }
)
FORBIDDEN_NAMES = frozenset({"NodeArena", "TreeBuilder"})
FORBIDDEN_ATTRIBUTES = frozenset({"arena", "_bridge", "allocate", "set_field", "_nodes"})
FORBIDDEN_CALLS = frozenset({"__import__", "exec", "eval", "compile"})


def get_full_name(node: Union[cst.Name, cst.Attribute, cst.BaseExpression]) -> str:
  """
  Resolves a CST Name or Attribute chain to a dot-separated string.

  Returns an empty string for any other expression.
  """
  if isinstance(node, cst.Name):
    return node.value
  elif isinstance(node, cst.Attribute):
    return f"{get_full_name(node.value)}.{node.attr.value}"
  return ""


class ScriptGuard(cst.CSTVisitor):
  """
  Collects guard violations of one pass script.

  Attributes:
      violations (List[str]): ``line N: reason`` messages, in source order.
  """

  METADATA_DEPENDENCIES = (PositionProvider,)

  def __init__(self) -> None:
    self.violations: List[str] = []
    self._in_import = False

  def _flag(self, node: cst.CSTNode, reason: str) -> None:
    line = self.get_metadata(PositionProvider, node).start.line
    self.violations.append(f"line {line}: {reason}")

  def visit_Import(self, node: cst.Import) -> None:
    self._in_import = True
    for alias in node.names:
      self._check_module(node, get_full_name(alias.name))

  def leave_Import(self, original_node: cst.Import) -> None:
    self._in_import = False

  def leave_ImportFrom(self, original_node: cst.ImportFrom) -> None:
    self._in_import = False

  def visit_ImportFrom(self, node: cst.ImportFrom) -> None:
    # Module paths like `binding_sweeper.core.arena` are not attribute accesses
    self._in_import = True
    if node.relative:
      self._flag(node, "relative imports are not allowed in pass scripts")
      return
    if node.module is None:
      return

    module = get_full_name(node.module)
    self._check_module(node, module)

    if isinstance(node.names, cst.ImportStar):
      if module.startswith("binding_sweeper"):
        self._flag(node, f"star import from '{module}'")
      return

    for alias in node.names:
      name = get_full_name(alias.name)
      if name in FORBIDDEN_NAMES:
        self._flag(node, f"import of host-only name '{name}'")
      elif f"{module}.{name}" in FORBIDDEN_MODULES:
        self._flag(node, f"import of host-only module '{module}.{name}'")

  def visit_Attribute(self, node: cst.Attribute) -> None:
    if self._in_import:
      return
    if node.attr.value in FORBIDDEN_ATTRIBUTES:
      self._flag(node, f"access to host attribute '.{node.attr.value}'")

  def visit_Name(self, node: cst.Name) -> None:
    if self._in_import:
      return
    if node.value in FORBIDDEN_NAMES:
      self._flag(node, f"use of host-only name '{node.value}'")

  def visit_Call(self, node: cst.Call) -> None:
    callee = get_full_name(node.func)
    if callee in FORBIDDEN_CALLS:
      self._flag(node, f"call to '{callee}'")

  def _check_module(self, node: cst.CSTNode, module: str) -> None:
    for forbidden in FORBIDDEN_MODULES:
      if module == forbidden or module.startswith(forbidden + "."):
        self._flag(node, f"import of host-only module '{module}'")
        return


def scan_source(source: str) -> List[str]:
  """
  Runs the guard over script source and returns the violations found.

  Raises:
      libcst.ParserSyntaxError: If the script is not valid Python.
  """
  wrapper = MetadataWrapper(cst.parse_module(source))
  guard = ScriptGuard()
  wrapper.visit(guard)
  return guard.violations


def check_source(source: str, script_name: str) -> None:
  """
  Raises ``ScriptRejectedError`` if the script fails the guard.
  """
  try:
    violations = scan_source(source)
  except cst.ParserSyntaxError as e:
    raise ScriptRejectedError(script_name, [f"syntax error: {e.message}"]) from e

  if violations:
    raise ScriptRejectedError(script_name, violations)
