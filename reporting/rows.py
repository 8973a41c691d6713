"""Flat metric rows parsed from Google Ads search results."""
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional


class ReportKind(str, Enum):
    GEOGRAPHY = "geography"
    DEVICE = "device"
    AGE = "age"
    GENDER = "gender"
    AD_SCHEDULE = "ad_schedule"
    AUDIENCE = "audience"


@dataclass(frozen=True)
class MetricRow:
    """One upstream result row, tagged with the report kind that produced it.

    Dimensional fields are populated according to ``kind``; the rest stay None.
    Metric fields are always numbers (missing upstream values parse to 0).
    """

    kind: ReportKind
    campaign_id: str = ""
    campaign_name: str = ""
    ad_group_id: str = ""
    ad_group_name: str = ""

    # geography
    location_id: Optional[str] = None
    location_name: Optional[str] = None
    location_canonical_name: Optional[str] = None
    country_code: Optional[str] = None
    location_type: Optional[str] = None

    # device / demographics / schedule
    device: Optional[str] = None
    age_range: Optional[str] = None
    gender: Optional[str] = None
    hour: Optional[int] = None
    day_of_week: Optional[str] = None

    # audience
    audience_id: Optional[str] = None
    audience_type: Optional[str] = None
    audience_resource: Optional[str] = None
    audience_resource_kind: Optional[str] = None

    impressions: int = 0
    clicks: int = 0
    cost_micros: int = 0
    conversions: float = 0.0
    all_conversions: float = 0.0
    view_through_conversions: float = 0.0
    interactions: int = 0
    video_views: int = 0
    search_impression_share: Optional[float] = None


def to_int(value: Any) -> int:
    """Parse an int64 field (the REST API sends them as strings); junk becomes 0."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number):
        return 0
    return int(number)


def to_float(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _code(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _audience_resource(criterion: Dict[str, Any]):
    if criterion.get("userInterest", {}).get("userInterestCategory"):
        return criterion["userInterest"]["userInterestCategory"], "USER_INTEREST"
    if criterion.get("userList", {}).get("userList"):
        return criterion["userList"]["userList"], "USER_LIST"
    if criterion.get("customAudience", {}).get("customAudience"):
        return criterion["customAudience"]["customAudience"], "CUSTOM_AUDIENCE"
    if criterion.get("combinedAudience", {}).get("combinedAudience"):
        return criterion["combinedAudience"]["combinedAudience"], "COMBINED_AUDIENCE"
    return None, None


def parse_row(kind: ReportKind, raw: Dict[str, Any]) -> MetricRow:
    """Build a MetricRow from one googleAds:search result (camelCase JSON)."""
    m = raw.get("metrics") or {}
    seg = raw.get("segments") or {}
    camp = raw.get("campaign") or {}
    ag = raw.get("adGroup") or {}

    fields: Dict[str, Any] = {
        "kind": kind,
        "campaign_id": str(camp.get("id", "")),
        "campaign_name": camp.get("name", ""),
        "ad_group_id": str(ag.get("id", "")),
        "ad_group_name": ag.get("name", ""),
        "impressions": to_int(m.get("impressions")),
        "clicks": to_int(m.get("clicks")),
        "cost_micros": to_int(m.get("costMicros")),
        "conversions": to_float(m.get("conversions")),
        "all_conversions": to_float(m.get("allConversions")),
        "view_through_conversions": to_float(m.get("viewThroughConversions")),
        "interactions": to_int(m.get("interactions")),
        "video_views": to_int(m.get("videoViews")),
        "search_impression_share": _optional_float(m.get("searchImpressionShare")),
    }

    if kind is ReportKind.GEOGRAPHY:
        gv = raw.get("geographicView") or {}
        geo = raw.get("geoTargetConstant") or {}
        fields.update(
            location_id=_code(gv.get("countryCriterionId")),
            location_name=geo.get("name"),
            location_canonical_name=geo.get("canonicalName"),
            country_code=geo.get("countryCode"),
            location_type=geo.get("targetType") or gv.get("locationType"),
        )
    elif kind is ReportKind.DEVICE:
        fields["device"] = _code(seg.get("device"))
    elif kind is ReportKind.AGE:
        fields["age_range"] = (
            (raw.get("ageRangeView") or {}).get("resourceName")
            or (raw.get("adGroupCriterion") or {}).get("ageRange", {}).get("type")
        )
    elif kind is ReportKind.GENDER:
        fields["gender"] = (
            (raw.get("genderView") or {}).get("resourceName")
            or (raw.get("adGroupCriterion") or {}).get("gender", {}).get("type")
        )
    elif kind is ReportKind.AD_SCHEDULE:
        hour = seg.get("hour")
        fields["hour"] = to_int(hour) if hour is not None else None
        fields["day_of_week"] = _code(seg.get("dayOfWeek"))
    elif kind is ReportKind.AUDIENCE:
        crit = raw.get("adGroupCriterion") or {}
        resource, resource_kind = _audience_resource(crit)
        fields.update(
            audience_id=_code(crit.get("criterionId")),
            audience_type=_code(crit.get("type")),
            audience_resource=resource,
            audience_resource_kind=resource_kind,
        )

    return MetricRow(**fields)


def parse_rows(kind: ReportKind, raw_rows: Iterable[Dict[str, Any]]) -> List[MetricRow]:
    return [parse_row(kind, raw) for raw in raw_rows]
