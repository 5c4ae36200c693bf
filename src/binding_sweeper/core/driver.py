"""
Pass Driver.

``PassDriver`` runs the configured pass sequence over every function-like
item of a translation unit:

1.  Items are enumerated in declaration order through the scripting bridge.
2.  Bodiless items (foreign declarations, prototypes) are skipped untouched.
3.  Selected passes run in registration order. Each pass writes into a
    staged change set which is committed to the report before the next
    pass starts.
4.  ``UnsupportedNodeKind`` abandons the rest of that item. The condition is
    logged, added to the report, and the driver continues with the next item.
    Staged writes of the failing pass are dropped from the report; the arena
    is not rolled back.

``ArenaIdentityNotFound`` and any other exception propagate: they indicate a
broken host, not an unsupported input.
"""

import logging
from typing import List, Optional, Tuple

from binding_sweeper.config import RuntimeConfig
from binding_sweeper.core.arena import NodeArena, NodeId
from binding_sweeper.core.bridge import ItemHandle, ScriptingBridge
from binding_sweeper.core.errors import UnsupportedNodeKind
from binding_sweeper.core.registry import PassContext, PassFunction, PassRegistry, default_registry, load_passes
from binding_sweeper.core.report import Condition, SweepReport
from binding_sweeper.core.tracer import TraceLogger
from binding_sweeper.utils.console import log_warning

logger = logging.getLogger(__name__)


class PassDriver:
  """
  Applies registered passes to the items of one arena.
  """

  def __init__(
    self,
    arena: NodeArena,
    config: Optional[RuntimeConfig] = None,
    registry: Optional[PassRegistry] = None,
    tracer: Optional[TraceLogger] = None,
  ):
    """
    Args:
        arena: Arena holding the translation unit.
        config: Runtime configuration. Defaults are used if None.
        registry: Pass registry. The default registry (with built-ins loaded) if None.
        tracer: Trace logger for this run. A fresh one if None.
    """
    self.arena = arena
    self.config = config or RuntimeConfig()
    self.tracer = tracer if tracer is not None else TraceLogger()

    if registry is None:
      registry = default_registry()
      if any(name not in registry for name in self.config.passes):
        load_passes(registry, extra_dirs=self.config.plugin_paths)
    self.registry = registry

  def run(self, unit_id: NodeId) -> SweepReport:
    """
    Sweeps every function-like item under ``unit_id``.

    Args:
        unit_id: Identity of the translation unit (or any subtree root).

    Returns:
        SweepReport: Processed/skipped items, conditions and committed changes.

    Raises:
        PassNotFoundError: If the configuration names an unregistered pass.
    """
    selected = self.registry.select(self.config.passes)
    bridge = ScriptingBridge(self.arena, tracer=self.tracer)
    report = SweepReport(unit_id=unit_id, passes=[name for name, _ in selected])

    self.tracer.start_phase("Sweep", f"unit #{unit_id}: {', '.join(report.passes)}")
    for fn_id in bridge.fn_like_ids(unit_id):
      item = bridge.item(fn_id)
      if item.is_bodiless:
        logger.debug("Skipping bodiless item '%s'", item.ident)
        self.tracer.log_skip(item.ident, "bodiless")
        report.skipped.append(item.ident)
        continue

      self._run_item(bridge, item, selected, report)
    self.tracer.end_phase()

    report.trace_events = self.tracer.export()
    return report

  def _run_item(
    self,
    bridge: ScriptingBridge,
    item: ItemHandle,
    selected: List[Tuple[str, PassFunction]],
    report: SweepReport,
  ) -> None:
    self.tracer.start_phase(f"Item {item.ident}", f"node #{item.id}")
    current = None
    try:
      for name, func in selected:
        current = name
        ctx = PassContext(self.config, self.tracer, name)
        with bridge.staging(name) as staged:
          try:
            func(item, ctx)
          except UnsupportedNodeKind:
            if len(staged):
              log_warning(f"Pass '{name}' left {len(staged)} uncommitted write(s) on '{item.ident}'")
            raise
        report.changes.extend(staged)
      report.processed.append(item.ident)

    except UnsupportedNodeKind as e:
      condition = Condition(item=item.ident, item_id=item.id, node_id=e.node_id, kind=e.kind, pass_name=current)
      log_warning(f"Skipped '{item.ident}': {e}")
      self.tracer.log_condition(item.ident, e.node_id, e.kind)
      report.conditions.append(condition)

    finally:
      self.tracer.end_phase()
