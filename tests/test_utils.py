"""
Tests for shared helpers.

TestTimes     - ISO-8601 and epoch conversions, expiry defaults
TestVersions  - dotted version comparison
TestUrls      - query string updates and same-origin checks
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from nameid.utils import (
    from_iso8601,
    is_later_version,
    is_same_origin_absolute_url,
    make_uuid4,
    next_hour,
    next_month,
    next_year,
    to_epoch_seconds,
    to_iso8601,
    update_query_string_parameter,
    utcnow,
)


class TestTimes:

    def test_iso_millis_and_z(self):
        moment = datetime(2024, 2, 29, 12, 30, 15, 123456, tzinfo=timezone.utc)
        assert to_iso8601(moment) == "2024-02-29T12:30:15.123Z"
        assert from_iso8601("2024-02-29T12:30:15.123Z") == moment.replace(microsecond=123000)

    def test_iso_converts_to_utc(self):
        moment = datetime(2024, 1, 1, 2, 0, tzinfo=timezone(timedelta(hours=2)))
        assert to_iso8601(moment) == "2024-01-01T00:00:00.000Z"

    def test_naive_is_utc(self):
        assert to_epoch_seconds(datetime(1970, 1, 1, 0, 1)) == 60

    def test_expiry_defaults_are_ahead(self):
        now = utcnow()
        assert now < next_hour() <= now + timedelta(hours=1, seconds=5)
        assert now + timedelta(days=27) < next_month() < now + timedelta(days=32)
        assert now + timedelta(days=364) < next_year() < now + timedelta(days=367)

    def test_uuid4(self):
        first, second = make_uuid4(), make_uuid4()
        assert first != second
        assert first[14] == "4"


class TestVersions:

    @pytest.mark.parametrize("v1,v2,expected", [
        ("1.1.0", "1.0.9", True),
        ("1.1.0", "1.1.0", True),
        ("1.1", "1.1.0", True),
        ("1.0.9", "1.1.0", False),
        ("1.10.0", "1.9.0", True),
        ("2.0.0-beta", "1.9.9", True),
    ])
    def test_is_later_version(self, v1, v2, expected):
        assert is_later_version(v1, v2) is expected


class TestUrls:

    def test_add_parameter(self):
        assert update_query_string_parameter("https://a.com/cb", "x", "1") == "https://a.com/cb?x=1"

    def test_replace_parameter(self):
        url = update_query_string_parameter("https://a.com/cb?x=0&y=2", "x", "1")
        assert url == "https://a.com/cb?y=2&x=1"

    @pytest.mark.parametrize("url1,url2,expected", [
        ("https://a.com", "https://a.com/manifest.json", True),
        ("https://a.com", "https://a.com:443/", True),
        ("http://a.com", "https://a.com/", False),
        ("https://a.com", "https://b.a.com/", False),
        ("https://a.com:8443", "https://a.com/", False),
        ("https://a.com", "/relative", False),
        ("a.com", "a.com/x", False),
    ])
    def test_same_origin(self, url1, url2, expected):
        assert is_same_origin_absolute_url(url1, url2) is expected
