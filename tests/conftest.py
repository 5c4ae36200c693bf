"""
Pytest Configuration and Fixtures.

Includes:
- Syspath patching for local imports.
- Pass registry isolation so tests registering throwaway passes do not leak.
- Console reset after tests that redirect logging.
- A ``tree`` fixture bundling an arena with its builder.
"""

import sys
from pathlib import Path

import pytest

# Add src to path so we can import 'binding_sweeper' without installing it
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from binding_sweeper.core.arena import NodeArena  # noqa: E402
from binding_sweeper.core.builder import TreeBuilder  # noqa: E402
from binding_sweeper.core.registry import clear_passes, load_passes  # noqa: E402
from binding_sweeper.utils.console import reset_console  # noqa: E402


@pytest.fixture(autouse=True)
def isolate_registry():
  """Start every test with exactly the built-in passes registered."""
  clear_passes()
  load_passes()
  yield
  clear_passes()
  load_passes()


@pytest.fixture(autouse=True)
def restore_console():
  yield
  reset_console()


@pytest.fixture
def arena() -> NodeArena:
  return NodeArena()


@pytest.fixture
def b(arena) -> TreeBuilder:
  """Tree builder over the test's arena."""
  return TreeBuilder(arena)
