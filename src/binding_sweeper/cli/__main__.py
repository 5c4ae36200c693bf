"""
Main Entry Point for the binding-sweeper CLI.

This module handles argument parsing and dispatches to specific command
handlers defined in ``binding_sweeper.cli.commands``.
"""

import argparse
from pathlib import Path
from typing import List, Optional

from binding_sweeper import __version__
from binding_sweeper.cli import commands
from binding_sweeper.config import parse_cli_key_values


def main(argv: Optional[List[str]] = None) -> int:
  """
  Main CLI entry point.

  Args:
      argv: Optional list of command line arguments (defaults to sys.argv).

  Returns:
      int: Exit code (0 for success, non-zero for failure).
  """
  parser = argparse.ArgumentParser(description="binding-sweeper: binding mutability and unused-binding cleanup")
  parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

  subparsers = parser.add_subparsers(dest="command", required=True)

  # --- Command: SWEEP ---
  cmd_sweep = subparsers.add_parser("sweep", help="Run the configured passes over a tree document")
  cmd_sweep.add_argument("path", type=Path, help="Input JSON tree document")
  cmd_sweep.add_argument("--out", type=Path, help="Output document (default: stdout)")
  cmd_sweep.add_argument("--passes", nargs="+", default=None, help="Pass sequence (default: from toml)")
  cmd_sweep.add_argument("--marker", default=None, help="Unused-binding marker character (default: '_')")
  cmd_sweep.add_argument(
    "--config",
    nargs="*",
    help="Pass settings in key=value format (e.g. threshold=3 strict=True)",
  )
  cmd_sweep.add_argument("--json-trace", type=Path, default=None, help="Dump the execution trace to a JSON file.")
  cmd_sweep.add_argument("--dry-run", action="store_true", help="Report changes without writing the document")
  cmd_sweep.add_argument("--verbose", "-v", action="store_true", help="Log traversal details")

  # --- Command: PASSES ---
  cmd_passes = subparsers.add_parser("passes", help="List registered passes")
  cmd_passes.add_argument(
    "--plugin-dir",
    type=Path,
    action="append",
    default=None,
    help="Additional directory of pass scripts (repeatable)",
  )

  args = parser.parse_args(argv)

  if args.command == "sweep":
    settings = parse_cli_key_values(args.config)
    return commands.handle_sweep(
      args.path,
      args.out,
      args.passes,
      args.marker,
      settings,
      args.json_trace,
      args.dry_run,
      args.verbose,
    )

  elif args.command == "passes":
    return commands.handle_passes(args.plugin_dir)

  return 1


if __name__ == "__main__":
  raise SystemExit(main())
