"""
Runtime Configuration Store.

Settings are read from the ``[tool.binding_sweeper]`` table of the nearest
``pyproject.toml`` and overridden by command-line arguments.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError, field_validator

if sys.version_info >= (3, 11):
  import tomllib
else:
  import tomli as tomllib

T = TypeVar("T", bound=BaseModel)

DEFAULT_PASSES = ["cleanup_params_locals"]
TOOL_SECTION = "binding_sweeper"

logger = logging.getLogger(__name__)


class RuntimeConfig(BaseModel):
  """
  Global configuration container for a sweep run.
  """

  passes: List[str] = Field(
    default_factory=lambda: list(DEFAULT_PASSES),
    description="Registered pass names to run on every item (in registration order).",
  )
  unused_marker: str = Field("_", description="Prefix marking a binding as intentionally unused.")
  plugin_paths: List[Path] = Field(default_factory=list, description="External directories to scan for pass scripts.")
  pass_settings: Dict[str, Any] = Field(default_factory=dict, description="Configuration passed to passes.")
  log_level: str = Field("INFO", description="Root logging level.")

  @field_validator("passes")
  @classmethod
  def validate_passes(cls, v: List[str]) -> List[str]:
    """
    Rejects an empty pass list and strips whitespace from names.

    Raises:
        ValueError: If no pass is selected.
    """
    cleaned = [p.strip() for p in v if p.strip()]
    if not cleaned:
      raise ValueError("At least one pass must be selected.")
    return cleaned

  @field_validator("unused_marker")
  @classmethod
  def validate_marker(cls, v: str) -> str:
    """The marker must be exactly one character."""
    if len(v) != 1:
      raise ValueError(f"unused_marker must be a single character, got {v!r}")
    return v

  @field_validator("log_level")
  @classmethod
  def validate_log_level(cls, v: str) -> str:
    level = v.upper().strip()
    if not isinstance(logging.getLevelName(level), int):
      raise ValueError(f"Unknown log level: '{v}'")
    return level

  def parse_pass_settings(self, schema: Type[T]) -> T:
    """
    Validates the raw pass settings dictionary against a specific Pydantic model.

    Args:
        schema (Type[T]): The Pydantic model class defining expected settings.

    Returns:
        T: An instance of the schema model populated with runtime values.
    """
    relevant_keys = schema.model_fields.keys()
    subset = {k: v for k, v in self.pass_settings.items() if k in relevant_keys}
    try:
      return schema.model_validate(subset)
    except ValidationError as e:
      raise ValueError(f"Pass configuration validation failed: {e}")

  @classmethod
  def load(
    cls,
    passes: Optional[List[str]] = None,
    unused_marker: Optional[str] = None,
    pass_settings: Optional[Dict[str, Any]] = None,
    plugin_paths: Optional[List[Path]] = None,
    log_level: Optional[str] = None,
    search_path: Optional[Path] = None,
  ) -> "RuntimeConfig":
    """
    Loads configuration from pyproject.toml and overrides with CLI arguments.

    Args:
        passes (Optional[List[str]]): Override for the pass sequence.
        unused_marker (Optional[str]): Override for the unused marker character.
        pass_settings (Optional[Dict]): Additional CLI pass settings, merged over TOML ones.
        plugin_paths (Optional[List[Path]]): Extra pass script directories, appended to TOML ones.
        log_level (Optional[str]): Override for the logging level.
        search_path (Optional[Path]): Directory to start searching for TOML config.

    Returns:
        RuntimeConfig: The fully resolved configuration object.
    """
    start_dir = search_path or Path.cwd()
    toml_config, toml_dir = _load_toml_settings(start_dir)

    # 1. Passes
    final_passes = passes or toml_config.get("passes", DEFAULT_PASSES)

    # 2. Marker
    final_marker = unused_marker or toml_config.get("unused_marker", "_")

    # 3. Pass Settings
    toml_settings = toml_config.get("pass_settings", {})
    final_settings = {**toml_settings, **(pass_settings or {})}

    # 4. External Pass Scripts
    raw_paths = toml_config.get("plugin_paths", [])
    if toml_dir:
      final_paths = [(toml_dir / Path(p)).resolve() for p in raw_paths]
    else:
      final_paths = [Path(p).resolve() for p in raw_paths]
    final_paths.extend(Path(p).resolve() for p in plugin_paths or [])

    # 5. Logging
    final_level = log_level or toml_config.get("log_level", "INFO")

    return cls(
      passes=list(final_passes),
      unused_marker=final_marker,
      pass_settings=final_settings,
      plugin_paths=final_paths,
      log_level=final_level,
    )


def _load_toml_settings(start_path: Path) -> Tuple[Dict[str, Any], Optional[Path]]:
  """
  Searches ``start_path`` and its parents for 'pyproject.toml' and extracts config.

  Args:
      start_path (Path): Directory to start search from.

  Returns:
      Tuple[Dict, Optional[Path]]: The config dict and the directory it was found in.
  """
  current = start_path.resolve()

  for parent in [current, *current.parents]:
    toml_path = parent / "pyproject.toml"
    if toml_path.exists() and toml_path.is_file():
      try:
        with open(toml_path, "rb") as f:
          data = tomllib.load(f)
      except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Ignoring unreadable %s: %s", toml_path, e)
        return {}, None

      tool_section = data.get("tool", {})
      return tool_section.get(TOOL_SECTION, {}), parent

  return {}, None


def parse_cli_key_values(items: Optional[List[str]]) -> Dict[str, Any]:
  """
  Parses a list of 'key=value' strings into a dictionary.

  Types are inferred (int, float, bool, or string).

  Args:
      items (Optional[List[str]]): List of raw CLI strings directly from argparse.

  Returns:
      Dict[str, Any]: Parsed dictionary.
  """
  if not items:
    return {}

  config: Dict[str, Any] = {}
  for item in items:
    if "=" not in item:
      logger.warning("Ignoring invalid config format: '%s'. Expected 'key=value'.", item)
      continue

    key, val_str = item.split("=", 1)
    key = key.strip()
    val_str = val_str.strip()

    final_val: Any = val_str

    if val_str.lower() == "true":
      final_val = True
    elif val_str.lower() == "false":
      final_val = False
    else:
      try:
        if "." in val_str or "e" in val_str:
          final_val = float(val_str)
        else:
          final_val = int(val_str)
      except ValueError:
        pass

    config[key] = final_val

  return config
