"""
Sweep Command Handler.

This module implements the ``binding-sweeper sweep`` command:

1. Configuration loading (TOML + CLI overrides).
2. Loading the tree document into a fresh arena.
3. Running the pass driver.
4. Trace export, summary rendering and output writing.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from rich.markup import escape
from rich.table import Table

from binding_sweeper.config import RuntimeConfig
from binding_sweeper.core.arena import NodeArena
from binding_sweeper.core.document import dump_unit, load_file
from binding_sweeper.core.driver import PassDriver
from binding_sweeper.core.errors import PassNotFoundError, TreeDocumentError
from binding_sweeper.core.report import SweepReport
from binding_sweeper.utils.console import (
  console,
  log_error,
  log_info,
  log_success,
  log_warning,
  set_log_level,
)


def handle_sweep(
  input_path: Path,
  output_path: Optional[Path] = None,
  passes: Optional[List[str]] = None,
  marker: Optional[str] = None,
  pass_settings: Optional[Dict[str, Any]] = None,
  json_trace_path: Optional[Path] = None,
  dry_run: bool = False,
  verbose: bool = False,
) -> int:
  """
  Handles the 'sweep' command execution.

  Args:
      input_path: JSON tree document to process.
      output_path: Where to write the rewritten document. Stdout if None.
      passes: Override for the pass sequence.
      marker: Override for the unused marker character.
      pass_settings: Extra pass settings from ``--config key=value``.
      json_trace_path: Optional path to dump the execution trace JSON.
      dry_run: If True, report changes without writing the document.
      verbose: If True, log at DEBUG level.

  Returns:
      int: 0 on success, 1 on errors or when any item was abandoned.
  """
  if not input_path.is_file():
    log_error(f"Input not found: {input_path}")
    return 1

  try:
    config = RuntimeConfig.load(
      passes=passes,
      unused_marker=marker,
      pass_settings=pass_settings,
      log_level="DEBUG" if verbose else None,
      search_path=input_path.parent,
    )
  except ValidationError as e:
    log_error(f"Invalid configuration: {escape(str(e))}")
    return 1
  set_log_level(config.log_level)

  arena = NodeArena()
  try:
    unit_id = load_file(arena, input_path)
  except TreeDocumentError as e:
    log_error(escape(str(e)))
    return 1

  try:
    report = PassDriver(arena, config=config).run(unit_id)
  except PassNotFoundError as e:
    log_error(escape(str(e)))
    return 1

  if json_trace_path:
    _write_trace(json_trace_path, report)

  _print_summary(report)

  document = json.dumps(dump_unit(arena, unit_id), indent=2)
  if dry_run:
    log_info(f"Dry run: {len(report.changes)} change(s) not written.")
  elif output_path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "wt", encoding="utf-8") as f:
      f.write(document)
      f.write("\n")
    log_success(f"Swept: [path]{input_path}[/path] -> [path]{output_path}[/path]")
  else:
    print(document)

  return 1 if report.has_conditions else 0


def _write_trace(path: Path, report: SweepReport) -> None:
  try:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wt", encoding="utf-8") as f:
      json.dump(report.trace_events, f, indent=2)
    log_info(f"Trace saved to [path]{path}[/path]")
  except OSError as e:
    log_error(f"Failed to write trace: {e}")


def _print_summary(report: SweepReport) -> None:
  """
  Renders committed changes and abandoned items to the console.

  Args:
      report: Result of the driver run.
  """
  if report.changes:
    table = Table(title="Binding Changes")
    table.add_column("Node", justify="right", style="cyan")
    table.add_column("Field")
    table.add_column("Before", style="red")
    table.add_column("After", style="green")
    table.add_column("Pass", style="dim")
    for change in report.changes:
      table.add_row(f"#{change.node_id}", change.field_name, str(change.before), str(change.after), change.pass_name)
    console.print(table)

  for condition in report.conditions:
    log_warning(f"Abandoned [ident]{escape(condition.item)}[/ident]: unsupported [kind]{escape(condition.kind)}[/kind]")

  summary = (
    f"{len(report.processed)} processed, {len(report.skipped)} skipped, "
    f"{len(report.conditions)} abandoned, {len(report.changes)} change(s)"
  )
  if report.has_conditions:
    log_warning(summary)
  else:
    log_success(summary)
