#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import os
import tempfile
import unittest
from unittest.mock import patch

import utils.ConfigLoader as config_module
from utils.ConfigLoader import ConfigLoader, DEFAULTS, _merge_dicts
from utils.Logger import DebugLevel, Logger


class TestConfigLoader(unittest.TestCase):

    def setUp(self) -> None:
        self.saved = config_module._config
        self.tmpdir = tempfile.TemporaryDirectory()

    def tearDown(self) -> None:
        config_module._config = self.saved
        self.tmpdir.cleanup()

    def write(self, name: str, text: str) -> str:
        path = os.path.join(self.tmpdir.name, name)
        with open(path, "w", encoding="utf-8") as file:
            file.write(text)
        return path

    def test_merge_dicts(self) -> None:
        base = {"a": {"b": 1, "c": 2}, "d": 3}
        merged = _merge_dicts(base, {"a": {"c": 20}, "e": 5})
        self.assertEqual(merged, {"a": {"b": 1, "c": 20}, "d": 3, "e": 5})
        self.assertEqual(base["a"]["c"], 2)

    def test_default_file_has_every_section(self) -> None:
        cfg = ConfigLoader.get_config()
        for section in ("crypto", "srp6a", "simple_auth", "database", "Logging"):
            with self.subTest(section=section):
                self.assertIn(section, cfg)

    def test_overlay_keeps_defaults(self) -> None:
        path = self.write("config.yaml", "srp6a:\n  session_ttl: 5\n")
        cfg = ConfigLoader.reload_config(path)

        self.assertEqual(cfg["srp6a"]["session_ttl"], 5)
        self.assertEqual(cfg["srp6a"]["session_backend"], DEFAULTS["srp6a"]["session_backend"])
        self.assertEqual(cfg["crypto"]["g"], "2")
        self.assertIs(ConfigLoader.get_config(), cfg)

    def test_environment_variable(self) -> None:
        path = self.write("env.yaml", "database:\n  url: \"sqlite:///env.db\"\n")
        with patch.dict(os.environ, {"AUTHN_CONFIG": path}):
            cfg = ConfigLoader.reload_config()
        self.assertEqual(cfg["database"]["url"], "sqlite:///env.db")

    def test_missing_explicit_file(self) -> None:
        with self.assertRaises(RuntimeError):
            ConfigLoader.reload_config(os.path.join(self.tmpdir.name, "missing.yaml"))

    def test_malformed_yaml(self) -> None:
        path = self.write("bad.yaml", "srp6a: [unclosed\n")
        with self.assertRaises(RuntimeError):
            ConfigLoader.reload_config(path)

    def test_non_mapping_yaml(self) -> None:
        path = self.write("list.yaml", "- a\n- b\n")
        with self.assertRaises(RuntimeError):
            ConfigLoader.reload_config(path)


class TestLogger(unittest.TestCase):

    def setUp(self) -> None:
        self.saved = config_module._config
        self.tmpdir = tempfile.TemporaryDirectory()
        config_module._config = _merge_dicts(DEFAULTS, {
            "Logging": {
                "logging_levels": "None",
                "logging_file_levels": "Warning, Error",
                "log_dir": self.tmpdir.name,
                "log_file": "test.log",
            }
        })

    def tearDown(self) -> None:
        config_module._config = self.saved
        self.tmpdir.cleanup()

    def read_log(self) -> str:
        with open(os.path.join(self.tmpdir.name, "test.log"), encoding="utf-8") as log:
            return log.read()

    def test_logging_mask(self) -> None:
        mask = Logger._get_logging_mask(["Success", " Error", "Bogus"])
        self.assertEqual(mask, DebugLevel.SUCCESS | DebugLevel.ERROR)
        self.assertEqual(Logger._get_logging_mask(["All"]), DebugLevel.ALL)

    def test_file_levels(self) -> None:
        Logger.reset_log()
        Logger.info("[SRP6a] not in the file")
        Logger.warning("[SRP6a] in the file")
        Logger.error("[DB] also in the file")

        contents = self.read_log()
        self.assertNotIn("not in the file", contents)
        self.assertIn("[WARNING]", contents)
        self.assertIn("[SRP6a] in the file", contents)
        self.assertIn("[DB] also in the file", contents)


if __name__ == "__main__":
    unittest.main()
