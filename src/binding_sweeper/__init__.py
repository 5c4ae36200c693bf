"""
binding-sweeper Package.

Post-translation cleanup for C-to-Rust style code: infers which parameter and
local bindings need ``mut`` and marks never-read bindings with a leading
underscore.

Usage
-----

Document Sweep
^^^^^^^^^^^^^^

.. code-block:: python

    import binding_sweeper as bs
    doc = json.load(open("unit.json"))
    swept = bs.sweep(doc)

Advanced Usage (Arena + Driver)
^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^

.. code-block:: python

    from binding_sweeper import NodeArena, PassDriver, RuntimeConfig, TreeBuilder

    arena = NodeArena()
    b = TreeBuilder(arena)
    fn = b.fn("bump", args=[b.arg("count")], body=[b.local("x", b.lit(0)),
                                                  b.semi(b.assign(b.path("x"), b.lit(1)))])
    report = PassDriver(arena, config=RuntimeConfig()).run(b.unit([fn]))
"""

from typing import Any, Dict, List, Optional

from binding_sweeper.config import RuntimeConfig
from binding_sweeper.core.arena import NodeArena
from binding_sweeper.core.builder import TreeBuilder
from binding_sweeper.core.document import dump_unit, load_unit
from binding_sweeper.core.driver import PassDriver
from binding_sweeper.core.report import SweepReport

__version__ = "0.1.0"


def sweep(
  document: Dict[str, Any],
  passes: Optional[List[str]] = None,
  unused_marker: str = "_",
  pass_settings: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
  """
  Runs the pass sequence over a tree document and returns the rewritten one.

  Items containing unsupported constructs are returned unchanged; use
  ``PassDriver`` directly to inspect the conditions.

  Args:
      document (dict): A translation unit in the JSON tree format.
      passes (list, optional): Pass names to run. Defaults to the built-in cleanup.
      unused_marker (str): Prefix for never-read bindings.
      pass_settings (dict, optional): Settings forwarded to passes.

  Returns:
      dict: The rewritten document, with node ids.

  Raises:
      TreeDocumentError: If the document is malformed.
      PassNotFoundError: If a pass name is not registered.
  """
  kwargs: Dict[str, Any] = {"unused_marker": unused_marker, "pass_settings": pass_settings or {}}
  if passes is not None:
    kwargs["passes"] = passes
  config = RuntimeConfig(**kwargs)

  arena = NodeArena()
  unit_id = load_unit(arena, document)
  PassDriver(arena, config=config).run(unit_id)
  return dump_unit(arena, unit_id)


__all__ = [
  "NodeArena",
  "PassDriver",
  "RuntimeConfig",
  "SweepReport",
  "TreeBuilder",
  "sweep",
  "__version__",
]
