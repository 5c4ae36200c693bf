"""
Tests for CLI argument handling and dispatch.

Verifies that ``main`` parses each sub-command and forwards the parsed values
to the matching handler in ``binding_sweeper.cli.commands``.
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from binding_sweeper.cli.__main__ import main


@patch("binding_sweeper.cli.commands.handle_sweep", return_value=0)
def test_sweep_defaults(mock_handle):
  assert main(["sweep", "unit.json"]) == 0

  mock_handle.assert_called_once_with(Path("unit.json"), None, None, None, {}, None, False, False)


@patch("binding_sweeper.cli.commands.handle_sweep", return_value=1)
def test_sweep_all_flags(mock_handle):
  code = main(
    [
      "sweep",
      "unit.json",
      "--out",
      "out.json",
      "--passes",
      "cleanup_params_locals",
      "extra",
      "--marker",
      "u",
      "--config",
      "threshold=3",
      "strict=True",
      "--json-trace",
      "trace.json",
      "--dry-run",
      "-v",
    ]
  )

  assert code == 1
  args = mock_handle.call_args[0]
  assert args[0] == Path("unit.json")
  assert args[1] == Path("out.json")
  assert args[2] == ["cleanup_params_locals", "extra"]
  assert args[3] == "u"
  assert args[4] == {"threshold": 3, "strict": True}
  assert args[5] == Path("trace.json")
  assert args[6] is True
  assert args[7] is True


@patch("binding_sweeper.cli.commands.handle_passes", return_value=0)
def test_passes_plugin_dirs(mock_handle):
  main(["passes", "--plugin-dir", "a", "--plugin-dir", "b"])
  mock_handle.assert_called_once_with([Path("a"), Path("b")])


@patch("binding_sweeper.cli.commands.handle_passes", return_value=0)
def test_passes_without_dirs(mock_handle):
  main(["passes"])
  mock_handle.assert_called_once_with(None)


def test_command_is_required():
  with pytest.raises(SystemExit):
    main([])
