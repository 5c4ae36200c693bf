"""
Console and Logging Utilities.

All user-facing output goes through the standard ``logging`` library rendered
by ``rich``. The module exposes:

1.  A ``console`` proxy whose backend can be swapped at runtime with
    ``set_console`` (tests capture output into a recording console this way).
    The root ``RichHandler`` follows the backend.
2.  ``log_info``/``log_success``/``log_warning``/``log_error`` helpers, with a
    custom SUCCESS level between INFO and WARNING.
3.  ``set_log_level`` to apply the configured ``log_level``.
"""

import logging
from typing import Any, Union

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

SUCCESS_LEVEL_NUM = 25
logging.addLevelName(SUCCESS_LEVEL_NUM, "SUCCESS")

_THEME = Theme(
  {
    "logging.level.success": "green",
    "info": "dim cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "green",
    "path": "bold blue",
    "ident": "bold magenta",
    "kind": "cyan",
  }
)


class _ConsoleProxy:
  """
  Stable module-level handle forwarding to the active ``rich`` Console.

  Attributes:
      _backend (Console): The active Rich Console instance.
  """

  def __init__(self) -> None:
    self._backend: Console = Console(theme=_THEME)
    self._level: int = logging.INFO
    self._configure_logging()

  @property
  def backend(self) -> Console:
    return self._backend

  def set_backend(self, new_console: Console) -> None:
    """
    Injects a new Console backend and re-points the logging handler at it.

    Args:
        new_console (Console): The new Rich Console instance to use.
    """
    self._backend = new_console
    self._configure_logging()

  def reset(self) -> None:
    self._backend = Console(theme=_THEME)
    self._level = logging.INFO
    self._configure_logging()

  def set_level(self, level: int) -> None:
    self._level = level
    logging.getLogger().setLevel(level)

  def _configure_logging(self) -> None:
    # Only one RichHandler on the root logger, bound to the current backend
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
      if isinstance(handler, RichHandler):
        root_logger.removeHandler(handler)

    rich_handler = RichHandler(
      console=self._backend,
      show_time=False,
      omit_repeated_times=False,
      show_path=False,
      markup=True,
      rich_tracebacks=True,
    )
    root_logger.setLevel(self._level)
    root_logger.addHandler(rich_handler)

  def print(self, *args: Any, **kwargs: Any) -> None:
    self._backend.print(*args, **kwargs)

  def __getattr__(self, name: str) -> Any:
    return getattr(self._backend, name)


console = _ConsoleProxy()


def set_console(new_console: Console) -> None:
  """
  Redirects console output and logging to ``new_console``.

  Args:
      new_console (Console): The configured Rich console to use globally.
  """
  console.set_backend(new_console)


def reset_console() -> None:
  """Restores a standard output console and the INFO level."""
  console.reset()


def get_console() -> Console:
  return console.backend


def set_log_level(level: Union[int, str]) -> None:
  """
  Sets the root logging level.

  Args:
      level: A level number or name (``"DEBUG"``, ``"SUCCESS"``...).
  """
  if isinstance(level, str):
    level = logging.getLevelName(level.upper())
  console.set_level(level)


def log_info(msg: str) -> None:
  logging.info(f"ℹ️  {msg}", extra={"markup": True})


def log_success(msg: str) -> None:
  logging.log(SUCCESS_LEVEL_NUM, f"✅ {msg}", extra={"markup": True})


def log_warning(msg: str) -> None:
  logging.warning(f"⚠️  {msg}", extra={"markup": True})


def log_error(msg: str) -> None:
  """
  Logs an error message via standard logging.

  Args:
      msg (str): The message content. Can include rich markup.
  """
  logging.error(f"❌ {msg}", extra={"markup": True})
