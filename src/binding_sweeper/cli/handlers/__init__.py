from .passes import handle_passes
from .sweep import handle_sweep, _print_summary, _write_trace

__all__ = [
  "_print_summary",
  "_write_trace",
  "handle_passes",
  "handle_sweep",
]
