"""
Passes Command Handler.

Lists the passes available to the driver: the built-ins plus any scripts
found in the configured (or given) plugin directories.
"""

from pathlib import Path
from typing import List, Optional

from rich.table import Table

from binding_sweeper.config import RuntimeConfig
from binding_sweeper.core.registry import default_registry, load_passes
from binding_sweeper.utils.console import console, log_warning


def handle_passes(plugin_dirs: Optional[List[Path]] = None) -> int:
  """
  Handles the 'passes' command execution.

  Args:
      plugin_dirs: Extra directories to scan for pass scripts.

  Returns:
      int: Exit code (always 0).
  """
  config = RuntimeConfig.load(plugin_paths=plugin_dirs)
  registry = default_registry()
  load_passes(registry, extra_dirs=config.plugin_paths)

  if not len(registry):
    log_warning("No passes registered.")
    return 0

  table = Table(title="Registered Passes")
  table.add_column("Name", style="cyan")
  table.add_column("Module", style="dim")
  table.add_column("Description")
  for name in registry.names():
    func = registry.get(name)
    doc = (func.__doc__ or "").strip().splitlines()
    table.add_row(name, getattr(func, "__module__", "?"), doc[0] if doc else "")
  console.print(table)
  return 0
