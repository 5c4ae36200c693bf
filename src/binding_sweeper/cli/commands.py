"""
CLI Command Handlers Facade.

Re-exports handlers from ``binding_sweeper.cli.handlers`` so the dispatcher
and tests have a single module to import (and patch).
"""

from binding_sweeper.cli.handlers.passes import handle_passes
from binding_sweeper.cli.handlers.sweep import handle_sweep

__all__ = [
  "handle_passes",
  "handle_sweep",
]
