import datetime as dt
import unittest

from croprisk.config import Settings
from croprisk.data_sources import CallableWeatherPayloadSource
from croprisk.errors import EmptyForecastError
from croprisk.forecast_service import get_risk_report, resolve_date_window


def _payload_for(start: dt.date, end: dt.date):
    dates = []
    d = start
    while d <= end:
        dates.append(d.isoformat())
        d += dt.timedelta(days=1)
    return {
        "daily": {
            "time": dates,
            "temperature_2m_max": [25.0] * len(dates),
            "precipitation_sum": [60.0 if i == len(dates) - 1 else 0.0 for i in range(len(dates))],
        },
        "hourly": {"time": []},
    }


class TestForecastService(unittest.TestCase):
    def test_resolve_date_window(self):
        start, end = resolve_date_window(dt.date(2025, 6, 17), history_days=7, forecast_days=5)
        self.assertEqual(start, dt.date(2025, 6, 10))
        self.assertEqual(end, dt.date(2025, 6, 22))

    def test_fetches_configured_window_and_assembles(self):
        calls = {}

        def fake_fetch(latitude, longitude, *, start_date, end_date, timezone):
            calls.update(lat=latitude, lon=longitude, start=start_date, end=end_date, tz=timezone)
            return _payload_for(start_date, end_date)

        settings = Settings(history_days=3, forecast_days=2, timezone="Europe/Madrid")
        report = get_risk_report(
            40.4,
            -3.7,
            today=dt.date(2025, 6, 17),
            data_source=CallableWeatherPayloadSource(fake_fetch),
            settings=settings,
        )

        self.assertEqual(calls["start"], dt.date(2025, 6, 14))
        self.assertEqual(calls["end"], dt.date(2025, 6, 19))
        self.assertEqual(calls["tz"], "Europe/Madrid")
        flood = report.findings[2]
        self.assertEqual(flood.level.value, "High")
        self.assertIn("2025-06-19", flood.details)

    def test_without_today_uses_location_date_from_payload(self):
        import croprisk.forecast_service as service_mod
        import croprisk.report as report_mod

        def frozen():
            return dt.datetime(2025, 6, 16, 20, 0, tzinfo=dt.timezone.utc)

        for mod in (service_mod, report_mod):
            self.addCleanup(setattr, mod, "utc_now", mod.utc_now)
            mod.utc_now = frozen

        calls = {}

        def fake_fetch(latitude, longitude, *, start_date, end_date, timezone):
            calls.update(start=start_date, end=end_date)
            payload = _payload_for(start_date, end_date)
            payload["utc_offset_seconds"] = 8 * 3600
            return payload

        report = get_risk_report(
            0,
            0,
            data_source=CallableWeatherPayloadSource(fake_fetch),
            settings=Settings(history_days=3, forecast_days=2),
        )

        # one extra day each side of the UTC date, 2025-06-16
        self.assertEqual(calls["start"], dt.date(2025, 6, 12))
        self.assertEqual(calls["end"], dt.date(2025, 6, 19))
        # the location is already on 2025-06-17, so 06-12..06-16 is history
        self.assertIn("current dry streak: 5 day(s)", report.findings[1].details)

    def test_provider_returning_only_history_is_fatal(self):
        source = CallableWeatherPayloadSource(
            lambda *a, start_date, end_date, **k: _payload_for(start_date, start_date)
        )
        with self.assertRaises(EmptyForecastError):
            get_risk_report(0, 0, today=dt.date(2025, 6, 17), data_source=source, settings=Settings())


if __name__ == "__main__":
    unittest.main()
