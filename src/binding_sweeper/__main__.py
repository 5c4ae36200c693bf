"""
Entry point for module execution (``python -m binding_sweeper``).

This module delegates execution to the CLI handler in ``binding_sweeper.cli.__main__``.
"""

import sys
from binding_sweeper.cli.__main__ import main

if __name__ == "__main__":
  sys.exit(main())
