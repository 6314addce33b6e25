import logging
import unittest

from utils import logging_utils
from utils.logging_utils import (
    ContextFormatter,
    MaxLevelFilter,
    RecordContextFilter,
    build_logging_config,
    get_tagged_logger,
)


class _ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        self.records.append(record)


def _record(name="croprisk.rules", level=logging.INFO):
    return logging.LogRecord(name, level, __file__, 1, "msg", None, None)


class TestLoggingUtils(unittest.TestCase):
    def _capture(self, adapter):
        handler = _ListHandler()
        base_logger = adapter.logger
        base_logger.setLevel(logging.DEBUG)
        base_logger.addHandler(handler)
        base_logger.propagate = False

        def restore():
            base_logger.removeHandler(handler)
            base_logger.propagate = True

        self.addCleanup(restore)
        return handler

    def test_build_logging_config_routes_levels(self):
        cfg = build_logging_config(job_name="croprisk")
        self.assertEqual(cfg["filters"]["context"]["job_name"], "croprisk")
        self.assertIn("info_and_below", cfg["handlers"]["stdout"]["filters"])
        self.assertNotIn("info_and_below", cfg["handlers"]["stderr"]["filters"])
        self.assertEqual(cfg["handlers"]["stderr"]["level"], "WARNING")

    def test_tagged_logger_defaults_tag_to_last_segment(self):
        adapter = get_tagged_logger("croprisk.partition")
        self.assertEqual(adapter.extra["tag"], "partition")

    def test_tagged_logger_injects_explicit_tag(self):
        logger = get_tagged_logger("croprisk.test_tagged", tag="custom_tag")
        handler = self._capture(logger)
        logger.info("hello")
        self.assertEqual(handler.records[-1].tag, "custom_tag")

    def test_per_call_extra_survives_alongside_tag(self):
        logger = get_tagged_logger("croprisk.test_extra", tag="rules")
        handler = self._capture(logger)
        logger.info("Evaluated rule", extra={"rule": "drought_stress", "history_days": 7})
        record = handler.records[-1]
        self.assertEqual(record.tag, "rules")
        self.assertEqual(record.rule, "drought_stress")
        self.assertEqual(record.history_days, 7)

    def test_formatter_appends_structured_fields(self):
        logger = get_tagged_logger("croprisk.test_format", tag="report")
        handler = self._capture(logger)
        logger.info("Assembled report", extra={"today": "2025-06-17", "forecast_days": 5})
        record = handler.records[-1]
        RecordContextFilter(job_name="croprisk").filter(record)

        line = ContextFormatter("%(job_name)s | %(tag)s | %(message)s").format(record)
        self.assertEqual(line, "croprisk | report | Assembled report | today=2025-06-17 forecast_days=5")

    def test_formatter_leaves_plain_records_alone(self):
        record = _record()
        RecordContextFilter().filter(record)
        self.assertEqual(ContextFormatter("%(message)s").format(record), "msg")

    def test_context_filter_derives_tag_from_logger_name(self):
        record = _record(name="urllib3.connectionpool")
        RecordContextFilter(job_name="croprisk").filter(record)
        self.assertEqual(record.tag, "connectionpool")
        self.assertEqual(record.job_name, "croprisk")

    def test_max_level_filter(self):
        f = MaxLevelFilter(logging.INFO)
        self.assertTrue(f.filter(_record(level=logging.INFO)))
        self.assertFalse(f.filter(_record(level=logging.WARNING)))

    def test_setup_logging_override_applies_filters(self):
        root = logging.getLogger()
        orig_handlers = root.handlers[:]
        orig_level = root.level
        try:
            logging_utils.setup_logging(level="DEBUG", job_name="croprisk", override_existing=True)
            self.assertEqual(root.level, logging.DEBUG)
            self.assertTrue(
                any(isinstance(f, RecordContextFilter) for h in root.handlers for f in h.filters)
            )
            self.assertTrue(any(isinstance(h.formatter, ContextFormatter) for h in root.handlers))
        finally:
            root.handlers = orig_handlers
            root.setLevel(orig_level)


if __name__ == "__main__":
    unittest.main()
