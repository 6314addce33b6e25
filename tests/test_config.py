import os
import unittest

from pydantic import ValidationError

from croprisk.config import Settings


class TestConfig(unittest.TestCase):
    def _with_env(self, name, value):
        previous = os.environ.get(name)
        os.environ[name] = value
        self.addCleanup(
            lambda: os.environ.pop(name, None) if previous is None else os.environ.__setitem__(name, previous)
        )

    def test_settings_defaults(self):
        names = ("CROPRISK_HISTORY_DAYS", "CROPRISK_FORECAST_DAYS", "CROPRISK_OPEN_METEO_URL", "CROPRISK_CORS_ORIGINS")
        for name in names:
            previous = os.environ.pop(name, None)
            if previous is not None:
                self.addCleanup(os.environ.__setitem__, name, previous)
        s = Settings()
        self.assertEqual(s.history_days, 7)
        self.assertEqual(s.forecast_days, 5)
        self.assertEqual(s.open_meteo_url, "https://api.open-meteo.com/v1/forecast")
        self.assertEqual(s.cors_origin_list, ["*"])

    def test_env_override(self):
        self._with_env("CROPRISK_FORECAST_DAYS", "3")
        self._with_env("CROPRISK_OPEN_METEO_URL", "http://localhost:8080/v1/forecast/")
        s = Settings()
        self.assertEqual(s.forecast_days, 3)
        self.assertEqual(s.open_meteo_url, "http://localhost:8080/v1/forecast")

    def test_log_level_is_normalized(self):
        self.assertEqual(Settings(log_level="debug").log_level, "DEBUG")
        with self.assertRaises(ValidationError):
            Settings(log_level="chatty")

    def test_cors_origins_split_from_env(self):
        self._with_env("CROPRISK_CORS_ORIGINS", "https://farm.example, http://localhost:5173,")
        s = Settings()
        self.assertEqual(s.cors_origin_list, ["https://farm.example", "http://localhost:5173"])
        self.assertEqual(Settings(cors_origins="").cors_origin_list, [])

    def test_negative_window_rejected(self):
        with self.assertRaises(ValidationError):
            Settings(history_days=-1)


if __name__ == "__main__":
    unittest.main()
