"""
Tests for Runtime Configuration loading.

Verifies:
1. Defaults and field validation.
2. ``[tool.binding_sweeper]`` discovery in parent directories.
3. CLI overrides taking precedence over TOML.
4. ``key=value`` parsing.
"""

import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from binding_sweeper.config import RuntimeConfig, parse_cli_key_values

TOML = """
[project]
name = "demo"

[tool.binding_sweeper]
passes = ["cleanup_params_locals", "extra"]
unused_marker = "u"
plugin_paths = ["sweeps"]
log_level = "debug"

[tool.binding_sweeper.pass_settings]
threshold = 4
"""


def test_defaults():
  config = RuntimeConfig()
  assert config.passes == ["cleanup_params_locals"]
  assert config.unused_marker == "_"
  assert config.plugin_paths == []
  assert config.pass_settings == {}
  assert config.log_level == "INFO"


def test_validation():
  with pytest.raises(ValidationError):
    RuntimeConfig(passes=[])
  with pytest.raises(ValidationError):
    RuntimeConfig(passes=["  "])
  with pytest.raises(ValidationError):
    RuntimeConfig(unused_marker="__")
  with pytest.raises(ValidationError):
    RuntimeConfig(log_level="chatty")

  assert RuntimeConfig(passes=[" a "]).passes == ["a"]
  assert RuntimeConfig(log_level="warning").log_level == "WARNING"


def test_load_reads_tool_section_from_parent(tmp_path):
  (tmp_path / "pyproject.toml").write_text(TOML)
  nested = tmp_path / "src" / "deep"
  nested.mkdir(parents=True)

  config = RuntimeConfig.load(search_path=nested)

  assert config.passes == ["cleanup_params_locals", "extra"]
  assert config.unused_marker == "u"
  assert config.plugin_paths == [(tmp_path / "sweeps").resolve()]
  assert config.pass_settings == {"threshold": 4}
  assert config.log_level == "DEBUG"


def test_cli_overrides_toml(tmp_path):
  (tmp_path / "pyproject.toml").write_text(TOML)

  config = RuntimeConfig.load(
    passes=["only"],
    unused_marker="_",
    pass_settings={"threshold": 9, "strict": True},
    plugin_paths=[Path("more")],
    log_level="ERROR",
    search_path=tmp_path,
  )

  assert config.passes == ["only"]
  assert config.unused_marker == "_"
  assert config.pass_settings == {"threshold": 9, "strict": True}
  assert config.plugin_paths == [(tmp_path / "sweeps").resolve(), Path("more").resolve()]
  assert config.log_level == "ERROR"


def test_unreadable_toml_is_ignored(tmp_path, caplog):
  (tmp_path / "pyproject.toml").write_text("[tool.binding_sweeper\nbroken")

  with caplog.at_level(logging.WARNING):
    config = RuntimeConfig.load(search_path=tmp_path)

  assert config.passes == ["cleanup_params_locals"]
  assert "Ignoring unreadable" in caplog.text


def test_parse_cli_key_values(caplog):
  with caplog.at_level(logging.WARNING):
    parsed = parse_cli_key_values(["n=3", "ratio=0.5", "flag=true", "off=False", "name=abc", "junk"])

  assert parsed == {"n": 3, "ratio": 0.5, "flag": True, "off": False, "name": "abc"}
  assert "junk" in caplog.text
  assert parse_cli_key_values(None) == {}
