"""
Pass Registry, Pass Context, and Dynamic Loader.

Passes are plain callables ``(ItemHandle, PassContext) -> None`` registered
under a unique name with the ``@register_pass`` decorator. The driver looks
them up by name; the configuration selects which passes run, and they run
in registration order.

Sources of passes:

1.  The built-in ``binding_sweeper.passes`` package.
2.  External script directories (``plugin_paths``). Every ``*.py`` file there
    is checked by the static script guard before it is executed.

The decorator tags the function with ``__pass_name__`` and registers it into
the default registry. ``load_passes`` scans loaded modules for tagged
functions, so a registry that was cleared (or a fresh ``PassRegistry``) can be
repopulated without re-importing modules.
"""

import importlib
import importlib.util
import logging
import pkgutil
import sys
from pathlib import Path
from types import ModuleType
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel

from binding_sweeper.config import RuntimeConfig
from binding_sweeper.core.bridge import ItemHandle
from binding_sweeper.core.errors import PassNotFoundError, ScriptRejectedError
from binding_sweeper.core.script_guard import check_source
from binding_sweeper.core.tracer import TraceLogger

T = TypeVar("T", bound=BaseModel)

logger = logging.getLogger(__name__)

BUILTIN_PACKAGE = "binding_sweeper.passes"


class PassContext:
  """
  Context object passed to every pass invocation.

  Provides read-only access to configuration and a trace logger for recording
  decisions that did not lead to a rewrite.
  """

  def __init__(self, config: RuntimeConfig, tracer: Optional[TraceLogger] = None, pass_name: str = ""):
    """
    Args:
        config: Runtime configuration (marker, pass settings).
        tracer: Trace logger of the current driver run.
        pass_name: Name the running pass was registered under.
    """
    self._runtime_config = config
    self.tracer = tracer if tracer is not None else TraceLogger()
    self.pass_name = pass_name
    self.metadata: Dict[str, Any] = {}

  @property
  def unused_marker(self) -> str:
    return self._runtime_config.unused_marker

  def setting(self, key: str, default: Any = None) -> Any:
    """Retrieve a raw value from the unstructured pass settings dict."""
    return self._runtime_config.pass_settings.get(key, default)

  def validate_settings(self, model: Type[T]) -> T:
    """Validates pass settings against a pass-specific Pydantic schema."""
    return self._runtime_config.parse_pass_settings(model)

  def inspect(self, subject: str, outcome: str, detail: str = "") -> None:
    """Records a no-change decision in the trace."""
    logger.debug("%s: %s (%s)", subject, outcome, detail)
    self.tracer.log_inspection(subject, outcome, detail)


PassFunction = Callable[[ItemHandle, PassContext], Any]


class PassRegistry:
  """
  Name -> pass mapping preserving registration order.
  """

  def __init__(self) -> None:
    self._passes: Dict[str, PassFunction] = {}

  def __contains__(self, name: object) -> bool:
    return name in self._passes

  def __len__(self) -> int:
    return len(self._passes)

  def __iter__(self) -> Iterator[str]:
    return iter(self._passes)

  def register(self, name: str, func: PassFunction) -> PassFunction:
    if name in self._passes and self._passes[name] is not func:
      logger.warning("Pass '%s' re-registered; the newer definition wins.", name)
    self._passes[name] = func
    return func

  def get(self, name: str) -> PassFunction:
    """
    Raises:
        PassNotFoundError: If ``name`` was never registered.
    """
    try:
      return self._passes[name]
    except KeyError:
      raise PassNotFoundError(name) from None

  def select(self, names: List[str]) -> List[Tuple[str, PassFunction]]:
    """
    Resolves the configured pass names.

    Returns:
        The selected passes in registration order, each once.

    Raises:
        PassNotFoundError: On the first unknown name.
    """
    for name in names:
      self.get(name)
    wanted = set(names)
    return [(name, func) for name, func in self._passes.items() if name in wanted]

  def names(self) -> List[str]:
    return list(self._passes)

  def clear(self) -> None:
    self._passes.clear()


_DEFAULT_REGISTRY = PassRegistry()


def default_registry() -> PassRegistry:
  return _DEFAULT_REGISTRY


def register_pass(name: str) -> Callable[[PassFunction], PassFunction]:
  """
  Decorator to register a function as a pass.

  Args:
      name: The unique pass name used in configuration (``passes = [...]``).
  """

  def decorator(func: PassFunction) -> PassFunction:
    func.__pass_name__ = name  # type: ignore[attr-defined]
    _DEFAULT_REGISTRY.register(name, func)
    return func

  return decorator


def get_pass(name: str) -> PassFunction:
  """
  Retrieves a registered pass by name, loading the built-ins on first use.
  """
  if name not in _DEFAULT_REGISTRY:
    load_passes()
  return _DEFAULT_REGISTRY.get(name)


def clear_passes() -> None:
  """Resets the default registry. Primarily for testing."""
  _DEFAULT_REGISTRY.clear()


def load_passes(
  registry: Optional[PassRegistry] = None,
  extra_dirs: Optional[List[Path]] = None,
  include_builtins: bool = True,
) -> int:
  """
  Populates a registry with built-in passes and external pass scripts.

  Args:
      registry: Target registry. Defaults to the module registry.
      extra_dirs: Directories scanned for ``*.py`` pass scripts.
      include_builtins: Whether to load ``binding_sweeper.passes``.

  Returns:
      int: Number of passes registered.
  """
  target = registry if registry is not None else _DEFAULT_REGISTRY
  total = 0

  if include_builtins:
    package = importlib.import_module(BUILTIN_PACKAGE)
    for _, module_name, _ in pkgutil.iter_modules(package.__path__):
      if module_name.startswith("_"):
        continue
      module = importlib.import_module(f"{BUILTIN_PACKAGE}.{module_name}")
      total += _register_module(target, module)

  for directory in extra_dirs or []:
    if directory.exists() and directory.is_dir():
      total += _import_from_dir(target, directory)
    else:
      logger.warning("Pass directory not found: %s", directory)

  return total


def _register_module(registry: PassRegistry, module: ModuleType) -> int:
  count = 0
  for value in vars(module).values():
    name = getattr(value, "__pass_name__", None)
    if name and callable(value):
      registry.register(name, value)
      count += 1
  return count


def _import_from_dir(registry: PassRegistry, directory: Path) -> int:
  """Guards, imports and registers every script in a directory."""
  count = 0
  for item in sorted(directory.glob("*.py")):
    if item.name.startswith("_"):
      continue

    try:
      check_source(item.read_text(encoding="utf-8"), item.name)
    except ScriptRejectedError as e:
      logger.error("%s", e)
      continue

    unique_name = f"binding_sweeper_script_{item.stem}_{item.stat().st_ino}"
    spec = importlib.util.spec_from_file_location(unique_name, item)
    if spec is None or spec.loader is None:
      logger.error("Cannot load pass script %s", item)
      continue

    module = importlib.util.module_from_spec(spec)
    sys.modules[unique_name] = module
    try:
      spec.loader.exec_module(module)
    except Exception as e:
      sys.modules.pop(unique_name, None)
      logger.error("Failed to load pass script %s: %s", item.name, e)
      continue

    count += _register_module(registry, module)
  return count
