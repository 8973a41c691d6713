"""Group keys and display labels for each report kind."""
from typing import Dict, Hashable, Optional, Tuple

from reporting.rows import MetricRow, ReportKind

UNKNOWN = "Unknown"

# Numeric codes are the API enum values; REST responses carry the enum names.
DEVICE_LABELS: Dict[str, str] = {
    "2": "MOBILE",
    "3": "DESKTOP",
    "4": "TABLET",
    "5": "CONNECTED_TV",
    "6": "OTHER",
    "MOBILE": "MOBILE",
    "DESKTOP": "DESKTOP",
    "TABLET": "TABLET",
    "CONNECTED_TV": "CONNECTED_TV",
    "OTHER": "OTHER",
}

AGE_RANGE_LABELS: Dict[str, str] = {
    "503001": "18-24",
    "503002": "25-34",
    "503003": "35-44",
    "503004": "45-54",
    "503005": "55-64",
    "503006": "65+",
    "503999": "Undetermined",
    "AGE_RANGE_18_24": "18-24",
    "AGE_RANGE_25_34": "25-34",
    "AGE_RANGE_35_44": "35-44",
    "AGE_RANGE_45_54": "45-54",
    "AGE_RANGE_55_64": "55-64",
    "AGE_RANGE_65_UP": "65+",
    "AGE_RANGE_UNDETERMINED": "Undetermined",
}

GENDER_LABELS: Dict[str, str] = {
    "10": "Male",
    "11": "Female",
    "20": "Undetermined",
    "MALE": "Male",
    "FEMALE": "Female",
    "UNDETERMINED": "Undetermined",
}

DAY_OF_WEEK_LABELS: Dict[str, str] = {
    "2": "Monday",
    "3": "Tuesday",
    "4": "Wednesday",
    "5": "Thursday",
    "6": "Friday",
    "7": "Saturday",
    "8": "Sunday",
    "MONDAY": "Monday",
    "TUESDAY": "Tuesday",
    "WEDNESDAY": "Wednesday",
    "THURSDAY": "Thursday",
    "FRIDAY": "Friday",
    "SATURDAY": "Saturday",
    "SUNDAY": "Sunday",
}

DAY_ORDER = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

AUDIENCE_TYPE_LABELS: Dict[str, str] = {
    "USER_INTEREST": "Interest-based",
    "USER_LIST": "Remarketing Lists",
    "CUSTOM_AUDIENCE": "Custom Audiences",
    "COMBINED_AUDIENCE": "Combined Audiences",
    "CUSTOM_INTENT": "Custom Intent",
    "CUSTOM_AFFINITY": "Custom Affinity",
}

DEVICE_ICONS = {
    "MOBILE": "📱",
    "DESKTOP": "💻",
    "TABLET": "📱",
    "CONNECTED_TV": "📺",
    "OTHER": "📟",
}


def lookup(table: Dict[str, str], code: Optional[str]) -> str:
    """Label for an enumerated code; anything outside the table is Unknown."""
    if code is None:
        return UNKNOWN
    return table.get(str(code).strip(), UNKNOWN)


def trailing_segment(value: Optional[str], separator: str) -> str:
    """Text after the last separator, or the whole string if there is none."""
    if not value:
        return ""
    return value.rsplit(separator, 1)[-1]


def audience_name(row: MetricRow) -> str:
    if not row.audience_resource:
        return "Unknown Audience"
    tail = trailing_segment(row.audience_resource, "/")
    if row.audience_resource_kind == "USER_LIST":
        return f"List: {tail}"
    if row.audience_resource_kind == "CUSTOM_AUDIENCE":
        return f"Custom: {tail}"
    return tail


def extract_key(row: MetricRow) -> Tuple[Hashable, str]:
    """Return (group key, display label) for the row's report kind."""
    kind = row.kind
    if kind is ReportKind.GEOGRAPHY:
        key = row.location_id or UNKNOWN
        return key, row.location_name or key
    if kind is ReportKind.DEVICE:
        label = lookup(DEVICE_LABELS, row.device)
        return label, label
    if kind is ReportKind.AGE:
        label = lookup(AGE_RANGE_LABELS, trailing_segment(row.age_range, "~"))
        return label, label
    if kind is ReportKind.GENDER:
        label = lookup(GENDER_LABELS, trailing_segment(row.gender, "~"))
        return label, label
    if kind is ReportKind.AD_SCHEDULE:
        label = lookup(DAY_OF_WEEK_LABELS, row.day_of_week)
        return label, label
    if kind is ReportKind.AUDIENCE:
        code = row.audience_type or UNKNOWN
        label = AUDIENCE_TYPE_LABELS.get(code, code)
        return label, label
    raise ValueError(f"Unsupported report kind: {kind}")


def hour_key(row: MetricRow) -> Tuple[Hashable, str]:
    hour = row.hour if row.hour is not None and 0 <= row.hour < 24 else None
    if hour is None:
        return UNKNOWN, UNKNOWN
    return hour, f"{hour}:00"


def campaign_key(row: MetricRow) -> Tuple[Hashable, str]:
    return row.campaign_id or row.campaign_name, row.campaign_name


def ad_group_key(row: MetricRow) -> Tuple[Hashable, str]:
    key = row.ad_group_id or row.ad_group_name
    return key, f"{row.ad_group_name} ({row.campaign_name})"


def audience_key(row: MetricRow) -> Tuple[Hashable, str]:
    key = row.audience_id or row.audience_resource or UNKNOWN
    return key, audience_name(row)
