"""Tests for the shared helpers: errors, logging and utils."""

import json
import math
from datetime import datetime, timedelta, timezone

from scripts.lib.errors import (
    ConfigError,
    DataError,
    HubError,
    PipelineError,
    PipelineStepError,
)
from scripts.lib.logger import get_logger, setup_logger
from scripts.lib.utils import (
    atomic_write_json,
    month_key,
    parse_iso_date,
    round_half_up,
    safe_div,
    safe_float,
    to_naive,
)


class TestErrors:
    def test_message_carries_code(self):
        err = ConfigError("bad range", option="--range")

        assert str(err) == "[CONFIG_ERROR] bad range"
        assert err.details == {"config_path": None, "option": "--range"}
        assert isinstance(err, DataError)
        assert isinstance(err, HubError)

    def test_pipeline_step_error(self):
        err = PipelineStepError("save_dashboard", cause=OSError("disk full"))

        assert isinstance(err, PipelineError)
        assert err.details == {"step": "save_dashboard"}
        assert "disk full" in str(err)


class TestSetupLogger:
    def test_writes_daily_file(self, tmp_path):
        logger = setup_logger("tests.file_logger", level="DEBUG", log_to_file=True, log_dir=tmp_path)
        logger.info("hello")
        for handler in logger.handlers:
            handler.flush()

        files = list(tmp_path.glob("*_salesops_hub.log"))
        assert len(files) == 1
        assert "hello" in files[0].read_text(encoding="utf-8")

    def test_handlers_added_once(self):
        first = setup_logger("tests.once", log_to_file=False)
        second = setup_logger("tests.once", log_to_file=False)

        assert first is second
        assert len(second.handlers) == 1

    def test_get_logger_reuses_configured_logger(self):
        configured = setup_logger("tests.reuse", log_to_file=False)
        assert get_logger("tests.reuse") is configured
        assert len(configured.handlers) == 1


class TestSafeNumbers:
    def test_safe_div(self):
        assert safe_div(1, 4) == 0.25
        assert safe_div(5, 0) == 0.0
        assert safe_div(5, 0, default=-1) == -1

    def test_safe_float(self):
        assert safe_float("$2,500.00") == 2500.0
        assert safe_float(" 12 ") == 12.0
        assert safe_float(7) == 7.0
        assert safe_float("") == 0.0
        assert safe_float(None) == 0.0
        assert safe_float(True) == 0.0
        assert safe_float("n/a", default=-1) == -1

    def test_safe_float_rejects_non_finite(self):
        assert safe_float(float("nan")) == 0.0
        assert safe_float("inf") == 0.0
        assert not math.isnan(safe_float("nan"))

    def test_round_half_up(self):
        assert round_half_up(12.25) == 12.3
        assert round_half_up(2.5, 0) == 3.0
        assert round_half_up(-12.25) == -12.2
        assert round_half_up(-33.333) == -33.3


class TestDates:
    def test_parse_iso_date(self):
        assert parse_iso_date("2024-03-15") == datetime(2024, 3, 15)
        assert parse_iso_date("2024-03-15T10:30:00Z") == datetime(2024, 3, 15, 10, 30)
        assert parse_iso_date("") is None
        assert parse_iso_date(None) is None
        assert parse_iso_date("15/03/2024") is None

    def test_month_key(self):
        assert month_key(datetime(2024, 3, 15)) == "2024-03"
        assert month_key(None) is None

    def test_to_naive(self):
        aware = datetime(2024, 3, 15, 9, tzinfo=timezone(timedelta(hours=-5)))
        assert to_naive(aware) == datetime(2024, 3, 15, 9)
        assert to_naive(datetime(2024, 3, 15)).tzinfo is None


class TestAtomicWriteJson:
    def test_writes_and_creates_parents(self, tmp_path):
        target = tmp_path / "nested" / "out.json"

        assert atomic_write_json({"a": 1}, target) is True
        assert json.loads(target.read_text(encoding="utf-8")) == {"a": 1}
        assert not target.with_suffix(".json.tmp").exists()

    def test_unwritable_target(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")

        assert atomic_write_json({"a": 1}, blocker / "out.json") is False
