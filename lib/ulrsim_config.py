# ulrsim YAML config loader
# Copyright 2025 sysmocom - s.f.m.c. GmbH <info@sysmocom.de>
# SPDX-License-Identifier: AGPL-3.0-or-later
import os
import sys
import yaml
from pathlib import Path

config = None

SECTIONS = ("client", "server", "stack", "dictionary", "api", "logging", "redis")


def read_config(path) -> dict:
    """
    Parses one config file. An empty file gives an empty config, anything but a mapping
    of section names is fatal. Unknown sections are reported and kept, empty ones become {}.
    """
    try:
        with open(path, "r") as stream:
            loaded = yaml.safe_load(stream)
    except yaml.YAMLError as e:
        print(f"ERROR: {path} is not valid YAML: {e}")
        sys.exit(1)

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        print(f"ERROR: {path} must hold a mapping of sections, got {type(loaded).__name__}")
        sys.exit(1)

    for section, value in loaded.items():
        if section not in SECTIONS:
            print(f"WARNING: unknown config section '{section}' in {path}")
        elif value is None:
            loaded[section] = {}
        elif not isinstance(value, dict):
            print(f"ERROR: config section '{section}' in {path} must be a mapping")
            sys.exit(1)
    return loaded


def load_config():
    global config

    if "ULRSIM_CONFIG" in os.environ:
        paths = [os.environ["ULRSIM_CONFIG"]]
        if not os.path.exists(paths[0]):
            print(f"ERROR: ULRSIM_CONFIG is set, but file does not exist: {paths[0]}")
            sys.exit(1)
    else:
        paths = [
            "/etc/ulrsim/config.yaml",
            "/usr/share/ulrsim/config.yaml",
            Path(__file__).resolve().parent.parent / "config.yaml",
        ]

    for path in paths:
        if os.path.exists(path):
            config = read_config(path)
            return

    print("ERROR: failed to find ulrsim config, tried these paths:")
    for path in paths:
        print(f" * {path}")
    sys.exit(1)


load_config()
