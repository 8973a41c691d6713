"""Tests for grouping keys and display labels."""
import pytest

from reporting.labels import (
    UNKNOWN,
    audience_name,
    extract_key,
    hour_key,
    trailing_segment,
)
from reporting.rows import MetricRow, ReportKind


class TestTrailingSegment:
    @pytest.mark.parametrize("value, expected", [
        ("customers/1/ageRangeViews/2~503001", "503001"),
        ("503002", "503002"),
        ("a~b~503003", "503003"),
        ("", ""),
        (None, ""),
    ])
    def test_tilde(self, value, expected):
        assert trailing_segment(value, "~") == expected


class TestExtractKey:
    @pytest.mark.parametrize("code, label", [
        ("2", "MOBILE"),
        ("MOBILE", "MOBILE"),
        ("5", "CONNECTED_TV"),
        ("99", UNKNOWN),
        (None, UNKNOWN),
    ])
    def test_device(self, code, label):
        assert extract_key(MetricRow(kind=ReportKind.DEVICE, device=code)) == (label, label)

    @pytest.mark.parametrize("value, label", [
        ("customers/1/ageRangeViews/2~503001", "18-24"),
        ("customers/1/ageRangeViews/2~503006", "65+"),
        ("customers/1/ageRangeViews/2~503999", "Undetermined"),
        ("AGE_RANGE_35_44", "35-44"),
        ("customers/1/ageRangeViews/2~123", UNKNOWN),
    ])
    def test_age(self, value, label):
        assert extract_key(MetricRow(kind=ReportKind.AGE, age_range=value))[1] == label

    @pytest.mark.parametrize("value, label", [
        ("customers/1/genderViews/2~10", "Male"),
        ("customers/1/genderViews/2~11", "Female"),
        ("customers/1/genderViews/2~20", "Undetermined"),
        ("FEMALE", "Female"),
    ])
    def test_gender(self, value, label):
        assert extract_key(MetricRow(kind=ReportKind.GENDER, gender=value))[1] == label

    @pytest.mark.parametrize("code, label", [
        ("8", "Sunday"),
        ("2", "Monday"),
        ("7", "Saturday"),
        ("FRIDAY", "Friday"),
        ("1", UNKNOWN),
    ])
    def test_day_of_week(self, code, label):
        assert extract_key(MetricRow(kind=ReportKind.AD_SCHEDULE, day_of_week=code))[1] == label

    def test_geography_falls_back_to_id(self):
        row = MetricRow(kind=ReportKind.GEOGRAPHY, location_id="2840")
        assert extract_key(row) == ("2840", "2840")

    def test_geography_without_id(self):
        assert extract_key(MetricRow(kind=ReportKind.GEOGRAPHY))[0] == UNKNOWN

    def test_audience_type_labels(self):
        row = MetricRow(kind=ReportKind.AUDIENCE, audience_type="USER_LIST")
        assert extract_key(row) == ("Remarketing Lists", "Remarketing Lists")

    def test_unmapped_audience_type_keeps_code(self):
        row = MetricRow(kind=ReportKind.AUDIENCE, audience_type="LIFE_EVENT")
        assert extract_key(row)[1] == "LIFE_EVENT"


class TestSubKeys:
    def test_hour_key(self):
        assert hour_key(MetricRow(kind=ReportKind.AD_SCHEDULE, hour=7)) == (7, "7:00")

    @pytest.mark.parametrize("hour", [None, 24, -1])
    def test_hour_out_of_range_is_unknown(self, hour):
        assert hour_key(MetricRow(kind=ReportKind.AD_SCHEDULE, hour=hour)) == (UNKNOWN, UNKNOWN)

    @pytest.mark.parametrize("resource, kind, name", [
        ("customers/1/userLists/555", "USER_LIST", "List: 555"),
        ("customers/1/customAudiences/9", "CUSTOM_AUDIENCE", "Custom: 9"),
        ("customers/1/userInterests/80432", "USER_INTEREST", "80432"),
        (None, None, "Unknown Audience"),
    ])
    def test_audience_name(self, resource, kind, name):
        row = MetricRow(kind=ReportKind.AUDIENCE, audience_resource=resource, audience_resource_kind=kind)
        assert audience_name(row) == name
