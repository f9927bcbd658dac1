"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml


# Example from the niri settings docs: nested blocks, props, flat and empty lists.
NIRI_SETTINGS = {
    "input": {
        "keyboard": {
            "xkb": {"layout": "us"},
        },
    },
    "binds": {
        "Mod+TouchpadScrollDown": {
            "_props": {"cooldown-ms": 500},
            "focus-workspace-down": [],
        },
        "Mod+T": {"spawn": "alacritty"},
        "XF86AudioRaiseVolume": {
            "spawn-sh": ["wpctl", "set-volume", "@DEFAULT_AUDIO_SINK@", "0.1+"],
        },
    },
}

NIRI_KDL = """\
input {
\tkeyboard {
\t\txkb {
\t\t\tlayout "us"
\t\t}
\t}
}
binds {
\tMod+TouchpadScrollDown cooldown-ms=500 {
\t\tfocus-workspace-down
\t}
\tMod+T {
\t\tspawn "alacritty"
\t}
\tXF86AudioRaiseVolume {
\t\tspawn-sh "wpctl" "set-volume" "@DEFAULT_AUDIO_SINK@" "0.1+"
\t}
}
"""


@pytest.fixture()
def niri_settings() -> dict:
    return NIRI_SETTINGS


@pytest.fixture()
def settings_file(tmp_path: Path) -> Path:
    """Write the example settings to a YAML file."""
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.safe_dump(NIRI_SETTINGS, sort_keys=False))
    return path


@pytest.fixture()
def bad_settings_file(tmp_path: Path) -> Path:
    """Settings whose `_args` holds a mapping instead of literals."""
    path = tmp_path / "bad.yaml"
    path.write_text(yaml.safe_dump({"output": {"_args": [{"name": "eDP-1"}]}}))
    return path


@pytest.fixture()
def module_file(tmp_path: Path) -> Path:
    """Module spec writing into tmp_path/niri/config.kdl."""
    path = tmp_path / "module.yaml"
    spec = {
        "schema_version": "1.0",
        "enable": True,
        "settings": {"prefer-no-csd": [], "layout": {"gaps": 16}},
        "extra_config": "// hand-written\n",
        "output": str(tmp_path / "niri" / "config.kdl"),
    }
    path.write_text(yaml.safe_dump(spec, sort_keys=False))
    return path


@pytest.fixture()
def niri_kdl() -> str:
    return NIRI_KDL
