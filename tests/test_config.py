from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from dips import config


class ConfigBehaviorTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.root = Path(self._tmp.name)
        self.config_path = self.root / "config.json"
        patcher = mock.patch.dict(
            "dips.config.os.environ",
            {"DIPS_CONFIG": str(self.config_path), "DIPS_HOME": str(self.root / "home")},
            clear=True,
        )
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_defaults_without_config_file(self) -> None:
        settings = config.Settings.load()

        self.assertEqual(settings.database_path, self.root / "home" / "dips.db")
        self.assertEqual(settings.log_path, self.root / "home" / "dips.log")
        self.assertEqual(settings.style, "monokai")
        self.assertFalse(settings.no_color)
        self.assertEqual(settings.log_level, "WARNING")
        self.assertEqual(settings.tick_ms, 200)
        self.assertFalse(settings.database_exists())

    def _write_config(self, data: dict[str, object]) -> None:
        self.config_path.write_text(json.dumps(data), encoding="utf-8")

    def test_config_file_values_are_loaded(self) -> None:
        self._write_config({"style": "native", "no_color": True, "tick_ms": 50})

        settings = config.Settings.load()
        self.assertEqual(settings.style, "native")
        self.assertTrue(settings.no_color)
        self.assertEqual(settings.tick_ms, 50)

    def test_malformed_values_fall_back_to_defaults(self) -> None:
        self.config_path.write_text(
            json.dumps({"style": "  ", "no_color": "yes", "tick_ms": True, "log_level": 3}),
            encoding="utf-8",
        )

        settings = config.Settings.load()

        self.assertEqual(settings.style, "monokai")
        self.assertFalse(settings.no_color)
        self.assertEqual(settings.tick_ms, 200)
        self.assertEqual(settings.log_level, "WARNING")

    def test_unreadable_or_non_object_config_is_ignored(self) -> None:
        self.config_path.write_text("{not json", encoding="utf-8")
        self.assertEqual(config.load_config(), {})

        self.config_path.write_text("[1, 2]", encoding="utf-8")
        self.assertEqual(config.load_config(), {})

    def test_database_path_and_log_level_overrides(self) -> None:
        custom_db = self.root / "elsewhere" / "notes.db"
        self._write_config({"database_path": str(custom_db), "log_level": "info"})

        with mock.patch.dict("dips.config.os.environ", {"DIPS_LOG_LEVEL": "debug"}):
            settings = config.Settings.load()

        self.assertEqual(settings.database_path, custom_db)
        self.assertEqual(settings.log_level, "DEBUG")

    def test_database_exists_tracks_file(self) -> None:
        settings = config.Settings.load()
        settings.database_path.parent.mkdir(parents=True)
        settings.database_path.write_bytes(b"")

        self.assertTrue(settings.database_exists())


if __name__ == "__main__":
    unittest.main()
