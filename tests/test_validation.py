"""
tests/test_validation.py
─────────────────────────
Tests for raw payload validation.
"""
import math

import pytest

from src.analytics.validation import parse_telemetry, validate_payload

NOW = 1_717_243_200_000


def _temp(value, ok=True):
    return validate_payload({"temperature": value, "temp_sensor_ok": ok}, NOW)


def _ph(value, ok=True):
    return validate_payload({"ph": value, "ph_sensor_ok": ok}, NOW)


class TestPhysicalBounds:
    @pytest.mark.parametrize(
        "value, accepted",
        [(-10, False), (-9.99, True), (0, True), (49.99, True), (50, False), (75, False)],
    )
    def test_temperature_exclusive_bounds(self, value, accepted):
        r = _temp(value)
        assert (r.temperature is not None) == accepted
        assert r.temperature_ok == accepted

    @pytest.mark.parametrize(
        "value, accepted",
        [(-0.01, False), (0, True), (7.0, True), (14, True), (14.01, False)],
    )
    def test_ph_inclusive_bounds(self, value, accepted):
        r = _ph(value)
        assert (r.ph is not None) == accepted
        assert r.ph_ok == accepted


class TestFlags:
    def test_flag_false_rejects_good_value(self):
        r = _temp(22.0, ok=False)
        assert r.temperature is None
        assert r.temperature_ok is False

    def test_missing_flag_rejects(self):
        r = validate_payload({"temperature": 22.0}, NOW)
        assert r.temperature is None

    @pytest.mark.parametrize("flag", [True, "true", "TRUE", 1, "1"])
    def test_truthy_flags(self, flag):
        assert _temp(22.0, ok=flag).temperature == 22.0

    @pytest.mark.parametrize("flag", [False, "false", 0, "no", None, "yes please"])
    def test_falsy_flags(self, flag):
        assert _temp(22.0, ok=flag).temperature is None

    def test_channels_independent(self):
        r = validate_payload(
            {"temperature": 22.0, "ph": 20.0, "temp_sensor_ok": True, "ph_sensor_ok": True}, NOW
        )
        assert r.temperature == 22.0 and r.temperature_ok
        assert r.ph is None and not r.ph_ok
        assert r.valid


class TestMalformedValues:
    @pytest.mark.parametrize("value", [None, "abc", "", float("nan"), float("inf"), True, [22], {"v": 22}])
    def test_unparseable_temperature(self, value):
        r = _temp(value)
        assert r.temperature is None
        assert r.temperature_ok is False

    def test_numeric_string_parses(self):
        assert _temp(" 22.5 ").temperature == 22.5

    def test_integer_becomes_float(self):
        r = _ph(7)
        assert isinstance(r.ph, float)

    def test_rejections_reported(self):
        payload = parse_telemetry({"temperature": "abc", "temp_sensor_ok": True, "ph": 15, "ph_sensor_ok": True}, NOW)
        assert set(payload.rejected) == {"temperature", "ph"}
        assert "unparseable" in payload.rejected["temperature"]
        assert "physical range" in payload.rejected["ph"]


class TestPayloadMetadata:
    def test_empty_payload(self):
        payload = parse_telemetry({}, NOW)
        r = payload.reading
        assert r.temperature is None and r.ph is None
        assert not r.valid
        assert r.timestamp == NOW
        assert payload.status == "unknown"
        assert payload.error_count == 0

    def test_none_payload(self):
        assert parse_telemetry(None, NOW).reading.timestamp == NOW

    def test_non_mapping_payload(self):
        assert not parse_telemetry(["not", "a", "dict"], NOW).reading.valid  # type: ignore[arg-type]

    def test_timestamp_passthrough(self):
        assert validate_payload({"timestamp": 123456}, NOW).timestamp == 123456

    @pytest.mark.parametrize("raw", [None, "soon", -5, 0, math.nan])
    def test_bad_timestamp_uses_receipt_time(self, raw):
        assert validate_payload({"timestamp": raw}, NOW).timestamp == NOW

    @pytest.mark.parametrize("raw, expected", [("3", 3), (4.7, 4), ("x", 0), (None, 0), (-2, 0)])
    def test_error_counter(self, raw, expected):
        assert parse_telemetry({"errors": raw}, NOW).error_count == expected

    def test_status_passthrough(self):
        assert parse_telemetry({"status": "ok"}, NOW).status == "ok"
