# Copyright 2025 sysmocom - s.f.m.c. GmbH <info@sysmocom.de>
# SPDX-License-Identifier: AGPL-3.0-or-later
import importlib

import pytest


def test_load_config_from_env(tmp_path, monkeypatch):
    configFile = tmp_path / "config.yaml"
    configFile.write_text("server:\n  OriginHost: hss.example\n")
    monkeypatch.setenv("ULRSIM_CONFIG", str(configFile))

    import ulrsim_config
    importlib.reload(ulrsim_config)
    assert ulrsim_config.config == {"server": {"OriginHost": "hss.example"}}


def test_empty_config_file(tmp_path, monkeypatch):
    configFile = tmp_path / "config.yaml"
    configFile.write_text("")
    monkeypatch.setenv("ULRSIM_CONFIG", str(configFile))

    import ulrsim_config
    importlib.reload(ulrsim_config)
    assert ulrsim_config.config == {}


def test_missing_config_file_exits(tmp_path, monkeypatch):
    configFile = tmp_path / "config.yaml"
    monkeypatch.setenv("ULRSIM_CONFIG", str(configFile))
    configFile.write_text("{}")

    import ulrsim_config
    importlib.reload(ulrsim_config)
    configFile.unlink()
    with pytest.raises(SystemExit):
        ulrsim_config.load_config()


@pytest.mark.parametrize("content", [
    "- client\n- server\n",
    "client: [1, 2]\n",
    "client: {OriginHost: [\n",
])
def test_malformed_config_exits(tmp_path, content):
    configFile = tmp_path / "config.yaml"
    configFile.write_text(content)

    import ulrsim_config
    with pytest.raises(SystemExit):
        ulrsim_config.read_config(configFile)


def test_unknown_section_is_kept(tmp_path, capsys):
    configFile = tmp_path / "config.yaml"
    configFile.write_text("hss:\n  enabled: true\nstack:\n")

    import ulrsim_config
    assert ulrsim_config.read_config(configFile) == {"hss": {"enabled": True}, "stack": {}}
    assert "unknown config section 'hss'" in capsys.readouterr().out
