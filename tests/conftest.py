"""Shared fixtures: raw REST rows, parsed metric rows and a tool caller."""
import pytest

from reporting.rows import MetricRow, ReportKind


class FakeResponse:
    """Just enough of requests.Response for the client and error classifier."""

    def __init__(self, status_code=200, payload=None, reason="", text=""):
        self.status_code = status_code
        self._payload = payload
        self.reason = reason
        self.text = text

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def call_tool():
    """Call an @mcp.tool function directly, whether the decorator wrapped it or not."""
    def _call(tool, *args, **kwargs):
        return getattr(tool, "fn", tool)(*args, **kwargs)
    return _call


def device_row(device, impressions, clicks, cost_micros, conversions=0.0, **extra):
    return MetricRow(
        kind=ReportKind.DEVICE,
        campaign_id=extra.pop("campaign_id", "1"),
        campaign_name=extra.pop("campaign_name", "Brand"),
        ad_group_id=extra.pop("ad_group_id", "11"),
        ad_group_name=extra.pop("ad_group_name", "Core"),
        device=device,
        impressions=impressions,
        clicks=clicks,
        cost_micros=cost_micros,
        conversions=conversions,
        **extra,
    )


@pytest.fixture
def make_device_row():
    return device_row


@pytest.fixture
def mobile_desktop_rows():
    return [
        device_row("MOBILE", 100, 10, 5_000_000, 2.0),
        device_row("DESKTOP", 50, 2, 1_000_000, 0.0),
    ]


@pytest.fixture
def raw_device_rows():
    return [
        {
            "campaign": {"id": "1", "name": "Brand"},
            "adGroup": {"id": "11", "name": "Core"},
            "segments": {"device": "MOBILE"},
            "metrics": {"impressions": "100", "clicks": "10", "costMicros": "5000000", "conversions": 2.0},
        },
        {
            "campaign": {"id": "1", "name": "Brand"},
            "adGroup": {"id": "11", "name": "Core"},
            "segments": {"device": "DESKTOP"},
            "metrics": {"impressions": "50", "clicks": "2", "costMicros": "1000000"},
        },
    ]


@pytest.fixture
def raw_geo_row():
    return {
        "campaign": {"id": "7", "name": "Nationwide"},
        "geographicView": {"countryCriterionId": "2840", "locationType": "LOCATION_OF_PRESENCE"},
        "geoTargetConstant": {
            "name": "United States",
            "canonicalName": "United States",
            "countryCode": "US",
            "targetType": "Country",
        },
        "metrics": {
            "impressions": "1200",
            "clicks": "60",
            "costMicros": "30000000",
            "conversions": 3.0,
            "allConversions": 4.5,
            "viewThroughConversions": 1.0,
        },
    }
