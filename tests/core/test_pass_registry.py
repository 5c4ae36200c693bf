"""
Tests for the Pass Registry, Pass Context and the dynamic loader.
"""

import logging
import textwrap

import pytest
from pydantic import BaseModel

from binding_sweeper.config import RuntimeConfig
from binding_sweeper.core.errors import PassNotFoundError
from binding_sweeper.core.registry import (
  PassContext,
  PassRegistry,
  clear_passes,
  default_registry,
  get_pass,
  load_passes,
  register_pass,
)
from binding_sweeper.core.tracer import TraceEventType, TraceLogger

GOOD_SCRIPT = textwrap.dedent(
  """
  from binding_sweeper.core.registry import register_pass

  @register_pass("shout")
  def shout(item, ctx):
      \"\"\"Upper-cases every simple parameter.\"\"\"
      for arg in item.args:
          handle = arg.binding_handle()
          if handle is not None:
              handle.ident = handle.ident.upper()
  """
)

SNEAKY_SCRIPT = textwrap.dedent(
  """
  from binding_sweeper.core.arena import NodeArena
  from binding_sweeper.core.registry import register_pass

  @register_pass("sneaky")
  def sneaky(item, ctx):
      item._bridge.arena.allocate(NodeArena)
  """
)


def test_register_pass_tags_and_registers():
  @register_pass("custom_pass")
  def custom(item, ctx):
    pass

  assert custom.__pass_name__ == "custom_pass"
  assert default_registry().get("custom_pass") is custom


def test_get_pass_loads_builtins_lazily():
  clear_passes()
  assert "cleanup_params_locals" not in default_registry()

  func = get_pass("cleanup_params_locals")

  assert func.__pass_name__ == "cleanup_params_locals"


def test_get_missing_pass():
  with pytest.raises(PassNotFoundError) as exc:
    get_pass("nope")
  assert isinstance(exc.value, KeyError)
  assert str(exc.value) == "No pass registered under 'nope'"


def test_reregistration_warns(caplog):
  registry = PassRegistry()
  registry.register("p", lambda item, ctx: None)
  with caplog.at_level(logging.WARNING):
    registry.register("p", lambda item, ctx: None)
  assert "re-registered" in caplog.text
  assert len(registry) == 1


def test_select_validates_and_keeps_registration_order():
  registry = PassRegistry()
  for name in ["a", "b", "c"]:
    registry.register(name, lambda item, ctx: None)

  assert [n for n, _ in registry.select(["c", "a", "a"])] == ["a", "c"]
  with pytest.raises(PassNotFoundError):
    registry.select(["a", "zzz"])


def test_fresh_registry_can_load_builtins():
  registry = PassRegistry()
  count = load_passes(registry)
  assert count >= 1
  assert "cleanup_params_locals" in registry.names()


def test_external_script_is_loaded(tmp_path):
  (tmp_path / "shout.py").write_text(GOOD_SCRIPT)
  (tmp_path / "_private.py").write_text("raise RuntimeError('never imported')")

  registry = PassRegistry()
  count = load_passes(registry, extra_dirs=[tmp_path], include_builtins=False)

  assert count == 1
  assert list(registry) == ["shout"]


def test_guard_rejects_script(tmp_path, caplog):
  (tmp_path / "sneaky.py").write_text(SNEAKY_SCRIPT)

  registry = PassRegistry()
  with caplog.at_level(logging.ERROR):
    count = load_passes(registry, extra_dirs=[tmp_path], include_builtins=False)

  assert count == 0
  assert "sneaky" not in registry
  assert "sneaky" not in default_registry()
  assert "rejected" in caplog.text


def test_failing_script_is_skipped(tmp_path, caplog):
  (tmp_path / "boom.py").write_text("raise RuntimeError('boom')\n")
  (tmp_path / "shout.py").write_text(GOOD_SCRIPT)

  registry = PassRegistry()
  with caplog.at_level(logging.ERROR):
    count = load_passes(registry, extra_dirs=[tmp_path], include_builtins=False)

  assert count == 1
  assert "boom" in caplog.text


def test_missing_directory_warns(tmp_path, caplog):
  with caplog.at_level(logging.WARNING):
    count = load_passes(PassRegistry(), extra_dirs=[tmp_path / "absent"], include_builtins=False)
  assert count == 0
  assert "not found" in caplog.text


class ThresholdSettings(BaseModel):
  threshold: int = 3
  strict: bool = False


def test_context_settings():
  config = RuntimeConfig(pass_settings={"threshold": 7, "unrelated": "x"})
  ctx = PassContext(config, pass_name="p")

  assert ctx.setting("threshold") == 7
  assert ctx.setting("absent", "fallback") == "fallback"
  parsed = ctx.validate_settings(ThresholdSettings)
  assert parsed.threshold == 7
  assert parsed.strict is False
  assert ctx.unused_marker == "_"


def test_context_settings_validation_error():
  ctx = PassContext(RuntimeConfig(pass_settings={"threshold": "many"}))
  with pytest.raises(ValueError, match="validation failed"):
    ctx.validate_settings(ThresholdSettings)


def test_context_metadata_isolation():
  config = RuntimeConfig()
  ctx1, ctx2 = PassContext(config), PassContext(config)
  ctx1.metadata["seen"] = 1
  assert "seen" not in ctx2.metadata


def test_context_inspect_goes_to_tracer():
  tracer = TraceLogger()
  ctx = PassContext(RuntimeConfig(), tracer=tracer)

  ctx.inspect("arg #3", "skipped", "unsupported pattern shape Pat::Tuple")

  events = tracer.events_of(TraceEventType.INSPECTION)
  assert len(events) == 1
  assert events[0]["metadata"] == {"outcome": "skipped", "detail": "unsupported pattern shape Pat::Tuple"}
