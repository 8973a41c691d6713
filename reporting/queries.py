"""GAQL query builders for the report tools."""
from datetime import datetime
from typing import Optional, Sequence

VALID_DATE_RANGES = {
    "TODAY", "YESTERDAY", "LAST_7_DAYS", "LAST_14_DAYS", "LAST_30_DAYS",
    "LAST_BUSINESS_WEEK", "LAST_WEEK_SUN_SAT", "LAST_WEEK_MON_SUN",
    "THIS_WEEK_SUN_TODAY", "THIS_WEEK_MON_TODAY", "THIS_MONTH", "LAST_MONTH",
}

DEFAULT_DATE_RANGE = "LAST_30_DAYS"


def _parse_date(value: str) -> datetime:
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d")
    except ValueError:
        raise ValueError(f"Invalid date '{value}'. Expected YYYY-MM-DD.") from None


def normalize_date_range(date_range: Optional[str]) -> str:
    """Validate a date-range token: a named range or 'YYYY-MM-DD:YYYY-MM-DD'."""
    token = (date_range or DEFAULT_DATE_RANGE).strip()
    if ":" in token:
        start, _, end = token.partition(":")
        start_date, end_date = _parse_date(start), _parse_date(end)
        if start_date > end_date:
            raise ValueError(f"Invalid date_range '{token}': start date is after end date.")
        return f"{start_date:%Y-%m-%d}:{end_date:%Y-%m-%d}"

    token = token.upper()
    if token not in VALID_DATE_RANGES:
        raise ValueError(
            f"Invalid date_range '{token}'. Must be one of: {', '.join(sorted(VALID_DATE_RANGES))} "
            "or a custom range YYYY-MM-DD:YYYY-MM-DD"
        )
    return token


def date_filter(date_range: Optional[str]) -> str:
    token = normalize_date_range(date_range)
    if ":" in token:
        start, end = token.split(":")
        return f"segments.date BETWEEN '{start}' AND '{end}'"
    return f"segments.date DURING {token}"


def campaign_filter(campaign_id: Optional[str]) -> str:
    """AND-clause restricting to one campaign, or an empty string."""
    if not campaign_id:
        return ""
    campaign_id = str(campaign_id).strip()
    if not campaign_id.isdigit():
        raise ValueError(f"Invalid campaign_id '{campaign_id}'. Must be numeric.")
    return f"AND campaign.id = {campaign_id}"


def geo_query(date_range: str, campaign_id: str = "", min_impressions: int = 0) -> str:
    if min_impressions < 0:
        raise ValueError("min_impressions must not be negative.")
    return f"""
        SELECT
            campaign.id,
            campaign.name,
            geographic_view.country_criterion_id,
            geographic_view.location_type,
            geo_target_constant.name,
            geo_target_constant.canonical_name,
            geo_target_constant.country_code,
            geo_target_constant.target_type,
            metrics.impressions,
            metrics.clicks,
            metrics.cost_micros,
            metrics.conversions,
            metrics.all_conversions,
            metrics.view_through_conversions
        FROM geographic_view
        WHERE {date_filter(date_range)}
            {campaign_filter(campaign_id)}
            AND metrics.impressions > {int(min_impressions)}
        ORDER BY metrics.impressions DESC
        LIMIT 100
    """


def device_query(date_range: str, campaign_id: str = "") -> str:
    return f"""
        SELECT
            campaign.id,
            campaign.name,
            ad_group.id,
            ad_group.name,
            segments.device,
            metrics.impressions,
            metrics.clicks,
            metrics.cost_micros,
            metrics.conversions,
            metrics.interactions,
            metrics.video_views,
            metrics.search_impression_share
        FROM ad_group
        WHERE {date_filter(date_range)}
            {campaign_filter(campaign_id)}
            AND metrics.impressions > 0
        ORDER BY metrics.impressions DESC
    """


def age_query(date_range: str, campaign_id: str = "") -> str:
    return f"""
        SELECT
            campaign.id,
            campaign.name,
            age_range_view.resource_name,
            ad_group_criterion.age_range.type,
            metrics.impressions,
            metrics.clicks,
            metrics.cost_micros,
            metrics.conversions
        FROM age_range_view
        WHERE {date_filter(date_range)}
            {campaign_filter(campaign_id)}
            AND metrics.impressions > 0
        ORDER BY metrics.impressions DESC
    """


def gender_query(date_range: str, campaign_id: str = "") -> str:
    return f"""
        SELECT
            campaign.id,
            campaign.name,
            gender_view.resource_name,
            ad_group_criterion.gender.type,
            metrics.impressions,
            metrics.clicks,
            metrics.cost_micros,
            metrics.conversions
        FROM gender_view
        WHERE {date_filter(date_range)}
            {campaign_filter(campaign_id)}
            AND metrics.impressions > 0
        ORDER BY metrics.impressions DESC
    """


def ad_schedule_query(date_range: str, campaign_id: str = "") -> str:
    return f"""
        SELECT
            campaign.id,
            campaign.name,
            segments.hour,
            segments.day_of_week,
            metrics.impressions,
            metrics.clicks,
            metrics.cost_micros,
            metrics.conversions
        FROM campaign
        WHERE {date_filter(date_range)}
            {campaign_filter(campaign_id)}
            AND metrics.impressions > 0
        ORDER BY segments.day_of_week, segments.hour
    """


def audience_query(date_range: str, campaign_id: str = "") -> str:
    return f"""
        SELECT
            campaign.id,
            campaign.name,
            ad_group.id,
            ad_group.name,
            ad_group_criterion.criterion_id,
            ad_group_criterion.type,
            ad_group_criterion.user_interest.user_interest_category,
            ad_group_criterion.user_list.user_list,
            ad_group_criterion.custom_audience.custom_audience,
            ad_group_criterion.combined_audience.combined_audience,
            metrics.impressions,
            metrics.clicks,
            metrics.cost_micros,
            metrics.conversions,
            metrics.all_conversions
        FROM ad_group_audience_view
        WHERE {date_filter(date_range)}
            {campaign_filter(campaign_id)}
            AND metrics.impressions > 0
        ORDER BY metrics.impressions DESC
        LIMIT 200
    """


def campaigns_query(include_removed: bool = False) -> str:
    status_filter = "" if include_removed else "AND campaign.status != 'REMOVED'"
    return f"""
        SELECT
            campaign.id,
            campaign.name,
            campaign.status,
            campaign.advertising_channel_type,
            campaign.bidding_strategy_type,
            campaign_budget.amount_micros,
            campaign.start_date,
            campaign.end_date
        FROM campaign
        WHERE campaign.advertising_channel_type != 'UNSPECIFIED'
            {status_filter}
        ORDER BY campaign.name
    """


def campaign_performance_query(date_range: str, campaign_id: str = "") -> str:
    return f"""
        SELECT
            campaign.id,
            campaign.name,
            metrics.impressions,
            metrics.clicks,
            metrics.cost_micros,
            metrics.conversions,
            metrics.conversions_value
        FROM campaign
        WHERE {date_filter(date_range)}
            AND campaign.status != 'REMOVED'
            {campaign_filter(campaign_id)}
        ORDER BY metrics.impressions DESC
    """


def id_filter(field: str, value: Optional[str], name: str) -> str:
    """AND-clause restricting ``field`` to one numeric ID, or an empty string."""
    if not value:
        return ""
    value = str(value).strip()
    if not value.isdigit():
        raise ValueError(f"Invalid {name} '{value}'. Must be numeric.")
    return f"AND {field} = {value}"


def keywords_query(campaign_id: str = "", ad_group_id: str = "") -> str:
    return f"""
        SELECT
            campaign.id,
            campaign.name,
            ad_group.id,
            ad_group.name,
            ad_group_criterion.criterion_id,
            ad_group_criterion.keyword.text,
            ad_group_criterion.keyword.match_type,
            ad_group_criterion.status,
            ad_group_criterion.quality_info.quality_score,
            ad_group_criterion.cpc_bid_micros,
            ad_group_criterion.position_estimates.first_page_cpc_micros,
            ad_group_criterion.position_estimates.top_of_page_cpc_micros
        FROM keyword_view
        WHERE ad_group_criterion.type = 'KEYWORD'
            {campaign_filter(campaign_id)}
            {id_filter("ad_group.id", ad_group_id, "ad_group_id")}
        ORDER BY campaign.name, ad_group.name, ad_group_criterion.keyword.text
        LIMIT 1000
    """


def search_terms_query(date_range: str, campaign_id: str = "") -> str:
    return f"""
        SELECT
            campaign.name,
            ad_group.name,
            search_term_view.search_term,
            search_term_view.status,
            metrics.impressions,
            metrics.clicks,
            metrics.cost_micros,
            metrics.conversions
        FROM search_term_view
        WHERE {date_filter(date_range)}
            {campaign_filter(campaign_id)}
        ORDER BY metrics.impressions DESC
        LIMIT 500
    """


def ads_query(campaign_id: str = "", ad_group_id: str = "") -> str:
    return f"""
        SELECT
            campaign.id,
            campaign.name,
            ad_group.id,
            ad_group.name,
            ad_group_ad.ad.id,
            ad_group_ad.ad.type,
            ad_group_ad.status,
            ad_group_ad.ad.expanded_text_ad.headline_part1,
            ad_group_ad.ad.expanded_text_ad.headline_part2,
            ad_group_ad.ad.expanded_text_ad.headline_part3,
            ad_group_ad.ad.expanded_text_ad.description,
            ad_group_ad.ad.expanded_text_ad.description2,
            ad_group_ad.ad.responsive_search_ad.headlines,
            ad_group_ad.ad.responsive_search_ad.descriptions,
            ad_group_ad.ad.final_urls,
            ad_group_ad.ad.display_url
        FROM ad_group_ad
        WHERE ad_group_ad.status != 'REMOVED'
            {campaign_filter(campaign_id)}
            {id_filter("ad_group.id", ad_group_id, "ad_group_id")}
        ORDER BY campaign.name, ad_group.name
        LIMIT 500
    """


def keyword_criteria_query(criterion_ids: Sequence[str]) -> str:
    """Current state of the given keyword criteria, for bid and status updates."""
    return f"""
        SELECT
            ad_group_criterion.criterion_id,
            ad_group_criterion.resource_name,
            ad_group_criterion.keyword.text,
            ad_group_criterion.keyword.match_type,
            ad_group_criterion.cpc_bid_micros,
            ad_group_criterion.status,
            ad_group_criterion.negative,
            ad_group.name,
            campaign.name
        FROM ad_group_criterion
        WHERE ad_group_criterion.type = 'KEYWORD'
            AND ad_group_criterion.criterion_id IN ({', '.join(criterion_ids)})
    """
