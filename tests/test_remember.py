"""
Tests for the remember-me duration policy.
"""

import pytest
from datetime import timedelta

from gatehouse.core.exceptions import InvalidRememberDuration
from gatehouse.core.remember import (
    DEFAULT_REMEMBER_DURATION,
    RememberPolicy,
    compute_duration,
    parse_duration,
)


class TestComputeDuration:
    """Test request shapes accepted by the policy."""

    @pytest.mark.parametrize("request_value", [True, 1, 1.0])
    def test_default_duration(self, request_value):
        assert compute_duration(request_value) == DEFAULT_REMEMBER_DURATION

    def test_default_is_five_years(self):
        assert DEFAULT_REMEMBER_DURATION == timedelta(days=1826.25)

    @pytest.mark.parametrize("request_value", [0, 0.0, False, None])
    def test_no_duration(self, request_value):
        assert compute_duration(request_value) is None

    def test_number_is_milliseconds(self):
        assert compute_duration(60000) == timedelta(minutes=1)

    def test_string(self):
        assert compute_duration("2 days") == timedelta(days=2)

    def test_timedelta(self):
        assert compute_duration(timedelta(hours=3)) == timedelta(hours=3)

    def test_negative_values_disable(self):
        assert compute_duration(-5000) is None
        assert compute_duration(timedelta(seconds=-1)) is None


class TestParseDuration:
    """Test duration strings."""

    @pytest.mark.parametrize("text,expected", [
        ("2 days", timedelta(days=2)),
        ("2d", timedelta(days=2)),
        ("1 day", timedelta(days=1)),
        ("90 minutes", timedelta(minutes=90)),
        ("10m", timedelta(minutes=10)),
        ("1.5h", timedelta(hours=1.5)),
        ("2 hrs", timedelta(hours=2)),
        ("30s", timedelta(seconds=30)),
        ("500ms", timedelta(milliseconds=500)),
        ("2 weeks", timedelta(weeks=2)),
        ("5y", timedelta(days=5 * 365.25)),
        ("1 year", timedelta(days=365.25)),
        ("1500", timedelta(milliseconds=1500)),
        ("  3 Days ", timedelta(days=3)),
    ])
    def test_units(self, text, expected):
        assert parse_duration(text) == expected

    @pytest.mark.parametrize("text", ["", "soon", "2 fortnights", "days 2"])
    def test_invalid(self, text):
        with pytest.raises(InvalidRememberDuration):
            parse_duration(text)

    def test_invalid_is_value_error(self):
        with pytest.raises(ValueError):
            parse_duration("forever")


class TestRememberPolicy:
    """Test the read-once holder."""

    def test_take_and_reset(self):
        policy = RememberPolicy()
        policy.remember(True)

        assert policy.take_and_reset() == DEFAULT_REMEMBER_DURATION
        assert policy.pending is None
        assert policy.take_and_reset() is None

    def test_take_when_nothing_pending(self):
        policy = RememberPolicy()

        assert policy.take_and_reset() is None
        assert policy.pending is None

    def test_new_value_overwrites_pending(self):
        policy = RememberPolicy()
        policy.remember(True)
        policy.remember("1 hour")

        assert policy.take_and_reset() == timedelta(hours=1)

    def test_disabled_request_keeps_pending(self):
        policy = RememberPolicy()
        policy.remember("1 hour")
        policy.remember(False)

        assert policy.pending == timedelta(hours=1)

    @pytest.mark.parametrize("request_value", [0, -5, -0.5])
    def test_non_positive_number_keeps_pending(self, request_value):
        policy = RememberPolicy()
        policy.remember(True)
        policy.remember(request_value)

        assert policy.pending == DEFAULT_REMEMBER_DURATION

    def test_clear(self):
        policy = RememberPolicy()
        policy.remember(True)
        policy.clear()

        assert policy.take_and_reset() is None

    def test_invalid_string_leaves_pending(self):
        policy = RememberPolicy()
        policy.remember("1 hour")

        with pytest.raises(InvalidRememberDuration):
            policy.remember("someday")

        assert policy.pending == timedelta(hours=1)
