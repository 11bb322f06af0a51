#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import os
import yaml
from pathlib import Path
from copy import deepcopy

# GLOBALS
_config = None

DEFAULT_CONFIG_PATH = "etc/config.yaml"
LOCAL_OVERLAY_PATH = "etc/config.local.yaml"
CONFIG_ENV_VAR = "AUTHN_CONFIG"

# 1024-bit safe prime (N = 2q+1), generated with "openssl dhparam -2 -text 1024"
DEFAULTS = {
    "crypto": {
        "N": (
            "00a8e482713948ef5e9b05cf1042903b23ef828252450c1e3c84a2f16416f39b"
            "49810de4a41b2159f2c2efbff73210ff58f6f5087fd60f924eefb7482147bf4d"
            "137bb3890c9d5272f4f2f9582530389a02b1d0785d435f029a54e8364c5b174f"
            "4fc96ce7518d53e4c4070e82e7ac600bbcba4ad3cbf7913a11c3eee4b4ad8415"
            "93"
        ),
        "g": "2",
    },
    "srp6a": {
        "session_ttl": 600,
        "session_backend": "database",
        "reaper_interval": 300,
    },
    "simple_auth": {
        "bcrypt_rounds": 12,
    },
    "database": {
        "url": "sqlite://",
        "echo": False,
    },
    "Logging": {
        "logging_levels": "Success, Information, Warning, Error",
        "logging_file_levels": "Warning, Error",
        "log_file": "authn.log",
        "log_dir": "logs",
        "date_format": "[%Y-%m-%d %H:%M:%S]",
    },
}


def _merge_dicts(base: dict, override: dict) -> dict:
    """
    Shallow+nested merge: values in override win; dict values are merged recursively.
    """
    result = deepcopy(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _merge_dicts(result[k], v)
        else:
            result[k] = deepcopy(v)
    return result


def _read_yaml(path: Path) -> dict:
    try:
        with open(path, "r", encoding="utf-8") as file:
            data = yaml.safe_load(file) or {}
    except yaml.YAMLError as e:
        raise RuntimeError(f"Error parsing YAML file {path}: {e}")
    if not isinstance(data, dict):
        raise RuntimeError(f"Configuration file {path} must contain a mapping.")
    return data


class ConfigLoader:
    @staticmethod
    def get_config() -> dict:
        """
        Returns the cached configuration, loading it on first use.
        """
        global _config
        if _config is None:
            _config = ConfigLoader.load_config()
        return _config

    @staticmethod
    def load_config(filepath: str | None = None) -> dict:
        """
        Loads the configuration if not already cached.

        Built-in defaults are overlaid with the YAML file (explicit path,
        then $AUTHN_CONFIG, then etc/config.yaml) and finally with the
        optional etc/config.local.yaml. An explicitly requested file that
        does not exist is an error; the default location is optional.
        """
        global _config

        if _config is None:
            explicit = filepath or os.environ.get(CONFIG_ENV_VAR)
            path = Path(explicit or DEFAULT_CONFIG_PATH)

            cfg = deepcopy(DEFAULTS)
            if path.is_file():
                cfg = _merge_dicts(cfg, _read_yaml(path))
            elif explicit:
                raise RuntimeError(f"Configuration file not found at {path}.")

            overlay = Path(LOCAL_OVERLAY_PATH)
            if overlay.is_file():
                cfg = _merge_dicts(cfg, _read_yaml(overlay))

            _config = cfg

        return _config

    @staticmethod
    def reload_config(filepath: str | None = None) -> dict:
        """
        Reload the configuration from disk.

        Returns:
            dict: The reloaded configuration dictionary.
        """

        global _config
        _config = None

        return ConfigLoader.load_config(filepath)
