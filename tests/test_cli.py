"""Tests for CLI commands via Typer test runner."""

from __future__ import annotations

import json
from pathlib import Path

import yaml
from typer.testing import CliRunner

from nirikdl.cli import app

runner = CliRunner()


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["ok"] is True
    assert "version" in data["result"]


def test_render(settings_file: Path, niri_kdl: str):
    result = runner.invoke(app, ["render", "--settings", str(settings_file)])
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["ok"] is True
    assert data["command"] == "render"
    assert data["result"]["text"] == niri_kdl
    assert data["result"]["fingerprint"].startswith("sha256:")
    assert data["target"]["settings"] == str(settings_file)


def test_render_raw(settings_file: Path, niri_kdl: str):
    result = runner.invoke(app, ["render", "-i", str(settings_file), "--raw"])
    assert result.exit_code == 0
    assert result.stdout == niri_kdl


def test_render_raw_with_extra_config(settings_file: Path, tmp_path: Path, niri_kdl: str):
    extra = tmp_path / "extra.kdl"
    extra.write_text("spawn-at-startup \"waybar\"\n")
    result = runner.invoke(app, ["render", "-i", str(settings_file), "-x", str(extra), "--raw"])
    assert result.exit_code == 0
    assert result.stdout == niri_kdl + "\nspawn-at-startup \"waybar\"\n"


def test_render_missing_settings(tmp_path: Path):
    result = runner.invoke(app, ["render", "-i", str(tmp_path / "nope.yaml")])
    assert result.exit_code == 50
    data = json.loads(result.stdout)
    assert data["ok"] is False
    assert data["errors"][0]["code"] == "ERR_SETTINGS_NOT_FOUND"


def test_render_missing_extra_config(settings_file: Path, tmp_path: Path):
    result = runner.invoke(app, ["render", "-i", str(settings_file), "-x", str(tmp_path / "nope.kdl")])
    assert result.exit_code == 50
    assert json.loads(result.stdout)["errors"][0]["code"] == "ERR_EXTRA_CONFIG_NOT_FOUND"


def test_render_invalid_reserved_key(bad_settings_file: Path):
    result = runner.invoke(app, ["render", "-i", str(bad_settings_file)])
    assert result.exit_code == 10
    data = json.loads(result.stdout)
    assert data["errors"][0]["code"] == "ERR_INVALID_RESERVED_KEY"
    assert data["errors"][0]["details"]["path"] == "output"


def test_render_raw_error_is_still_json(bad_settings_file: Path):
    result = runner.invoke(app, ["render", "-i", str(bad_settings_file), "--raw"])
    assert result.exit_code == 10
    assert json.loads(result.stdout)["ok"] is False


def test_render_settings_not_mapping(tmp_path: Path):
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n")
    result = runner.invoke(app, ["render", "-i", str(path)])
    assert result.exit_code == 10
    assert json.loads(result.stdout)["errors"][0]["code"] == "ERR_SETTINGS_INVALID"


def test_validate_ok(settings_file: Path):
    result = runner.invoke(app, ["validate", "-i", str(settings_file)])
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["result"]["valid"] is True
    assert data["warnings"] == []


def test_validate_failure(bad_settings_file: Path):
    result = runner.invoke(app, ["validate", "-i", str(bad_settings_file)])
    assert result.exit_code == 10
    data = json.loads(result.stdout)
    assert data["ok"] is False
    assert data["result"]["valid"] is False
    assert data["errors"][0]["code"] == "ERR_INVALID_RESERVED_KEY"


def test_validate_root_reserved_warning(tmp_path: Path):
    path = tmp_path / "s.yaml"
    path.write_text("_props: {a: 1}\n")
    result = runner.invoke(app, ["validate", "-i", str(path)])
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["warnings"][0]["code"] == "WARN_ROOT_RESERVED_KEY"


def test_write(settings_file: Path, tmp_path: Path, niri_kdl: str):
    out = tmp_path / "niri" / "config.kdl"
    result = runner.invoke(app, ["write", "-i", str(settings_file), "-o", str(out)])
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["result"]["written"] is True
    assert data["changes"][0]["type"] == "config.create"
    assert out.read_text() == niri_kdl

    again = json.loads(runner.invoke(app, ["write", "-i", str(settings_file), "-o", str(out)]).stdout)
    assert again["result"]["unchanged"] is True
    assert again["changes"] == []


def test_write_dry_run(settings_file: Path, tmp_path: Path):
    out = tmp_path / "config.kdl"
    result = runner.invoke(app, ["write", "-i", str(settings_file), "-o", str(out), "--dry-run"])
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["result"]["dry_run"] is True
    assert len(data["changes"]) == 1
    assert not out.exists()


def test_write_lock_held(settings_file: Path, tmp_path: Path):
    from nirikdl.io.fileops import config_lock

    out = tmp_path / "config.kdl"
    out.write_text("old 1\n")
    with config_lock(out):
        result = runner.invoke(app, ["write", "-i", str(settings_file), "-o", str(out)])
    assert result.exit_code == 40
    assert json.loads(result.stdout)["errors"][0]["code"] == "ERR_LOCK_HELD"
    assert out.read_text() == "old 1\n"


def test_write_default_location(settings_file: Path, tmp_path: Path, monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    result = runner.invoke(app, ["write", "-i", str(settings_file)])
    assert result.exit_code == 0
    assert (tmp_path / "xdg" / "niri" / "config.kdl").exists()


def test_build(module_file: Path, tmp_path: Path):
    result = runner.invoke(app, ["build", "-m", str(module_file)])
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["result"]["enabled"] is True
    assert data["target"]["output"] == str(tmp_path / "niri" / "config.kdl")
    assert (tmp_path / "niri" / "config.kdl").read_text().endswith("// hand-written\n")


def test_build_disabled(tmp_path: Path):
    path = tmp_path / "module.yaml"
    path.write_text(yaml.safe_dump({"enable": False, "output": str(tmp_path / "c.kdl")}))
    result = runner.invoke(app, ["build", "-m", str(path)])
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["warnings"][0]["code"] == "WARN_MODULE_DISABLED"
    assert not (tmp_path / "c.kdl").exists()


def test_build_invalid_module(tmp_path: Path):
    path = tmp_path / "module.yaml"
    path.write_text("bogus: 1\n")
    result = runner.invoke(app, ["build", "-m", str(path)])
    assert result.exit_code == 10
    assert json.loads(result.stdout)["errors"][0]["code"] == "ERR_MODULE_INVALID"


def test_build_conversion_error(tmp_path: Path):
    path = tmp_path / "module.yaml"
    path.write_text(yaml.safe_dump({"settings": {"n": {"_args": "x"}}, "output": str(tmp_path / "c.kdl")}))
    result = runner.invoke(app, ["build", "-m", str(path)])
    assert result.exit_code == 10
    assert json.loads(result.stdout)["errors"][0]["code"] == "ERR_INVALID_RESERVED_KEY"
    assert not (tmp_path / "c.kdl").exists()


def test_build_missing_module(tmp_path: Path):
    result = runner.invoke(app, ["build", "-m", str(tmp_path / "nope.yaml")])
    assert result.exit_code == 50
    assert json.loads(result.stdout)["errors"][0]["code"] == "ERR_MODULE_NOT_FOUND"


def test_render_flag_keys_stay_node_names(tmp_path: Path):
    path = tmp_path / "settings.yaml"
    path.write_text("layout:\n  focus-ring:\n    off: []\n  border:\n    on: []\n")
    result = runner.invoke(app, ["render", "-i", str(path), "--raw"])
    assert result.exit_code == 0
    assert result.stdout == "layout {\n\tfocus-ring {\n\t\toff\n\t}\n\tborder {\n\t\ton\n\t}\n}\n"


def test_usage_error_is_json_envelope():
    result = runner.invoke(app, ["render"])
    assert result.exit_code == 10
    data = json.loads(result.stdout)
    assert data["ok"] is False
    assert data["command"] == "render"
    assert data["errors"][0]["code"] == "ERR_USAGE"


def test_unknown_command_is_usage_error():
    result = runner.invoke(app, ["frobnicate"])
    assert result.exit_code == 10
    data = json.loads(result.stdout)
    assert data["command"] == "nirikdl"
    assert data["errors"][0]["code"] == "ERR_USAGE"
