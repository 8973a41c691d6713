"""Analytics breakdown reports: geography, device, demographics, ad schedule, audience.

Every builder is a pure function of the rows it is given. Rows go through
``aggregate`` (grouping + totals), ``derive`` (ratios), ``rank`` / ``summarize``
(ordering) and are laid out as a ``Report`` that is rendered to text last.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from reporting.aggregate import GroupAccumulator, aggregate
from reporting.document import Blank, Block, Field, Item, Report, Text
from reporting.labels import (
    DAY_ORDER,
    DEVICE_ICONS,
    ad_group_key,
    audience_key,
    campaign_key,
    hour_key,
)
from reporting.metrics import derive, fmt_currency, fmt_float, fmt_int, fmt_micros, fmt_pct
from reporting.ranking import (
    ReportSummary,
    heatmap_header,
    heatmap_row,
    rank,
    share_bar,
    summarize,
    top_members,
)
from reporting.rows import MetricRow

logger = logging.getLogger(__name__)

CAMPAIGN_DRILLDOWN = 3
AUDIENCE_DRILLDOWN = 5
PEAK_HOURS = 5
CTR_MIN_IMPRESSIONS = 100
CONV_RATE_MIN_CLICKS = 10

NO_GEO_DATA = "No geographic performance data found for the specified criteria."
NO_DEVICE_DATA = "No device performance data found for the specified criteria."
NO_DEMOGRAPHIC_DATA = (
    "No demographic data found. This might be because:\n"
    "- Demographic targeting is not enabled\n"
    "- The account doesn't have enough data\n"
    "- Privacy thresholds haven't been met"
)
NO_SCHEDULE_DATA = "No ad schedule performance data found for the specified criteria."
NO_AUDIENCE_DATA = (
    "No audience performance data found. This might be because:\n"
    "- No audiences are currently targeted\n"
    "- The selected date range has no audience data\n"
    "- Audience targeting is not enabled for the campaigns"
)


@dataclass(frozen=True)
class ReportResult:
    """Rendered text plus the summaries it was built from.

    ``summary`` is the report's primary breakdown and is None when there was no
    data; ``breakdowns`` holds every summary by name (e.g. "age" and "gender").
    """

    text: str
    summary: Optional[ReportSummary] = None
    breakdowns: Dict[str, ReportSummary] = field(default_factory=dict)

    @classmethod
    def of(cls, text: str, **breakdowns: ReportSummary) -> "ReportResult":
        primary = next(iter(breakdowns.values()), None)
        return cls(text=text, summary=primary, breakdowns=breakdowns)


def _new_report(title: str, date_range: str, campaign_id: Optional[str]) -> Report:
    return Report(
        title=title,
        context=[
            f"Date Range: {date_range}",
            f"Campaign Filter: {campaign_id}" if campaign_id else "All Campaigns",
        ],
    )


def _core_fields(group: GroupAccumulator) -> List[Field]:
    t, d = group.totals, derive(group.totals)
    return [
        Field("Impressions", fmt_int(t.impressions)),
        Field("Clicks", fmt_int(t.clicks)),
        Field("CTR", fmt_pct(d.ctr)),
        Field("Avg. CPC", fmt_currency(d.avg_cpc)),
        Field("Cost", fmt_micros(t.cost_micros)),
    ]


def _conversion_fields(group: GroupAccumulator) -> List[Field]:
    t, d = group.totals, derive(group.totals)
    return [
        Field("Conversions", fmt_float(t.conversions)),
        Field("Conv. Rate", fmt_pct(d.conv_rate)),
        Field("Cost/Conv", fmt_currency(d.cost_per_conversion)),
    ]


def _distribution(block: Block, groups: Sequence[GroupAccumulator], grand_impressions: int, suffix: str = "") -> None:
    for group in groups:
        share = derive(group.totals, grand_impressions).share
        block.add(
            Text(f"{group.label}{suffix}: {fmt_pct(share, 1)} ({fmt_int(group.totals.impressions)} impressions)"),
            Text(share_bar(share)),
        )


def _summary_block(report: Report, summary: ReportSummary, noun: str) -> None:
    t = summary.totals
    report.section("Summary:").block().add(
        Text(f"Total {noun}: {summary.group_count}", indent=False),
        Text(f"Total Impressions: {fmt_int(t.impressions)}", indent=False),
        Text(f"Total Clicks: {fmt_int(t.clicks)}", indent=False),
        Text(f"Total Cost: {fmt_micros(t.cost_micros)}", indent=False),
        Text(f"Total Conversions: {fmt_float(t.conversions)}", indent=False),
    )


def build_geo_report(rows: Sequence[MetricRow], date_range: str, campaign_id: Optional[str] = None) -> ReportResult:
    if not rows:
        return ReportResult(NO_GEO_DATA)

    locations = aggregate(rows)
    summary = summarize(locations)
    report = _new_report("📍 Geographic Performance Report", date_range, campaign_id)

    for group in summary.groups:
        first = group.detail_rows[0]
        t = group.totals
        heading = f"📍 {group.label}" + (f" ({first.country_code})" if first.country_code else "")
        block = report.section().block(heading)
        if first.location_canonical_name:
            block.add(Text(first.location_canonical_name))
        block.add(
            Text(f"Type: {first.location_type or 'Unknown'}"),
            Text(f"Location ID: {group.key}"),
            Blank(),
            Text("Performance Metrics:"),
            *_core_fields(group),
            Blank(),
            Text("Conversions:"),
            *_conversion_fields(group),
            Field("All Conversions", fmt_float(t.all_conversions)),
            Field("View-through", fmt_float(t.view_through_conversions)),
            Blank(),
            Text(f"Campaign Breakdown ({group.member_count('campaigns')} campaigns):"),
        )
        for campaign in top_members(group, CAMPAIGN_DRILLDOWN, campaign_key):
            ct = campaign.totals
            block.add(Item(
                campaign.label,
                f"Impressions: {fmt_int(ct.impressions)} | Clicks: {fmt_int(ct.clicks)} | Cost: {fmt_micros(ct.cost_micros)}",
            ))

    _summary_block(report, summary, "Locations")
    logger.debug(f"Geo report built for {summary.group_count} locations")
    return ReportResult.of(report.render(), locations=summary)


def build_device_report(rows: Sequence[MetricRow], date_range: str, campaign_id: Optional[str] = None) -> ReportResult:
    if not rows:
        return ReportResult(NO_DEVICE_DATA)

    devices = aggregate(rows)
    summary = summarize(devices)
    report = _new_report("📱 Device Performance Report", date_range, campaign_id)

    for group in summary.groups:
        t, d = group.totals, derive(group.totals)
        block = report.section().block(f"{DEVICE_ICONS.get(group.label, '📱')} {group.label}")
        block.add(
            Text("Performance Metrics:"),
            *_core_fields(group),
            Field("Avg. CPM", fmt_currency(d.avg_cpm)),
            Blank(),
            Text("Conversions:"),
            *_conversion_fields(group),
            Blank(),
            Text("Engagement:"),
            Field("Interactions", fmt_int(t.interactions)),
            Field("Video Views", fmt_int(t.video_views)),
            Blank(),
            Text("Search Metrics:"),
            Field("Avg. Search Impression Share", fmt_pct(d.avg_search_impression_share, 1)),
            Blank(),
            Text("Coverage:"),
            Field("Campaigns", str(group.member_count("campaigns"))),
            Field("Ad Groups", str(group.member_count("ad_groups"))),
            Blank(),
            Text("Top Ad Groups:"),
        )
        for ad_group in top_members(group, CAMPAIGN_DRILLDOWN, ad_group_key):
            at, ad = ad_group.totals, derive(ad_group.totals)
            block.add(Item(
                ad_group.label,
                f"Impressions: {fmt_int(at.impressions)} | CTR: {fmt_pct(ad.ctr)} | Conv: {fmt_float(at.conversions)}",
            ))

    _distribution(report.section("📊 Device Share:").block(), summary.groups, summary.totals.impressions)
    _summary_block(report, summary, "Devices")
    return ReportResult.of(report.render(), devices=summary)


def _demographic_blocks(section, summary: ReportSummary, suffix: str) -> None:
    for group in summary.groups:
        section.block(f"{group.label}{suffix}:").add(
            *_core_fields(group),
            *_conversion_fields(group),
            Field("Campaigns", str(group.member_count("campaigns"))),
        )


def build_demographics_report(
    age_rows: Sequence[MetricRow],
    gender_rows: Sequence[MetricRow],
    date_range: str,
    campaign_id: Optional[str] = None,
) -> ReportResult:
    """Age and gender breakdowns; the two row sets fill disjoint sections."""
    if not age_rows and not gender_rows:
        return ReportResult(NO_DEMOGRAPHIC_DATA)

    report = _new_report("👥 Demographic Performance Report", date_range, campaign_id)
    summaries: Dict[str, ReportSummary] = {}

    if age_rows:
        summaries["age"] = summarize(aggregate(age_rows))
        _demographic_blocks(report.section("📅 AGE BREAKDOWN"), summaries["age"], " Years")
    if gender_rows:
        summaries["gender"] = summarize(aggregate(gender_rows))
        _demographic_blocks(report.section("👤 GENDER BREAKDOWN"), summaries["gender"], "")

    overview = report.section("📊 Demographics Summary:")
    if "gender" in summaries:
        block = overview.block("Gender Distribution:")
        _distribution(block, summaries["gender"].groups, summaries["gender"].totals.impressions)
    if "age" in summaries:
        block = overview.block("Age Distribution:")
        _distribution(block, summaries["age"].groups, summaries["age"].totals.impressions, " Years")

    return ReportResult.of(report.render(), **summaries)


def _hour_span(hour: int) -> str:
    return f"{hour}:00 - {(hour + 1) % 24}:00"


def _best(groups: Sequence[GroupAccumulator], metric: str, eligible) -> List[GroupAccumulator]:
    candidates = [g for g in groups if eligible(g)]
    return sorted(candidates, key=lambda g: getattr(derive(g.totals), metric), reverse=True)


def build_ad_schedule_report(rows: Sequence[MetricRow], date_range: str, campaign_id: Optional[str] = None) -> ReportResult:
    if not rows:
        return ReportResult(NO_SCHEDULE_DATA)

    days = aggregate(rows)
    hours = {key: group for key, group in aggregate(rows, hour_key).items() if isinstance(key, int)}
    day_summary = summarize(days, order=DAY_ORDER)
    hour_summary = summarize(hours)

    report = _new_report("⏰ Ad Schedule Performance Report", date_range, campaign_id)

    by_day = report.section("📅 PERFORMANCE BY DAY OF WEEK")
    for group in day_summary.groups:
        d = derive(group.totals)
        block = by_day.block(f"{group.label}:").add(
            Field("Impressions", fmt_int(group.totals.impressions)),
            Field("Clicks", fmt_int(group.totals.clicks)),
            Field("CTR", fmt_pct(d.ctr)),
            Field("Avg. CPC", fmt_currency(d.avg_cpc)),
            Field("Conversions", fmt_float(group.totals.conversions)),
            Field("Conv. Rate", fmt_pct(d.conv_rate)),
            Blank(),
            Text("Best Hours:"),
        )
        for hour in top_members(group, CAMPAIGN_DRILLDOWN, hour_key):
            if isinstance(hour.key, int):
                hd = derive(hour.totals)
                block.add(Item(f"{hour.label}: {fmt_int(hour.totals.impressions)} impr, {fmt_pct(hd.ctr, 1)} CTR"))

    by_hour = report.section("🕐 PERFORMANCE BY HOUR OF DAY")
    peak = by_hour.block("Top 5 Peak Hours:")
    for group in hour_summary.groups[:PEAK_HOURS]:
        d = derive(group.totals)
        peak.add(
            Text(_hour_span(group.key), indent=False),
            Field("Impressions", fmt_int(group.totals.impressions)),
            Field("CTR", fmt_pct(d.ctr)),
            Field("Conv. Rate", fmt_pct(d.conv_rate)),
            Field("Avg. CPC", fmt_currency(d.avg_cpc)),
        )

    report.section("📊 HOURLY HEATMAP (Impressions)").block().add(
        Blank(),
        Text(heatmap_header(), indent=False),
        Text(heatmap_row(hours), indent=False),
    )

    ordered_hours = sorted(hours.values(), key=lambda g: g.key)
    best_ctr = _best(ordered_hours, "ctr", lambda g: g.totals.impressions > CTR_MIN_IMPRESSIONS)[:3]
    best_conv = _best(ordered_hours, "conv_rate", lambda g: g.totals.clicks > CONV_RATE_MIN_CLICKS)[:3]
    insights = report.section("📈 INSIGHTS & RECOMMENDATIONS").block("Best Performing Times:")
    insights.add(
        Text("• Highest CTR: " + (", ".join(
            f"{g.label} ({fmt_pct(derive(g.totals).ctr)})" for g in best_ctr) or "n/a"), indent=False),
        Text("• Best Conv. Rate: " + (", ".join(
            f"{g.label} ({fmt_pct(derive(g.totals).conv_rate)})" for g in best_conv) or "n/a"), indent=False),
    )

    t = day_summary.totals
    report.section("Summary:").block().add(
        Text(f"Total Impressions: {fmt_int(t.impressions)}", indent=False),
        Text(f"Total Cost: {fmt_micros(t.cost_micros)}", indent=False),
        Text(f"Total Conversions: {fmt_float(t.conversions)}", indent=False),
    )
    return ReportResult.of(report.render(), days=day_summary, hours=hour_summary)


def build_audience_report(rows: Sequence[MetricRow], date_range: str, campaign_id: Optional[str] = None) -> ReportResult:
    if not rows:
        return ReportResult(NO_AUDIENCE_DATA)

    types = aggregate(rows)
    summary = summarize(types)
    report = _new_report("🎯 Audience Performance Report", date_range, campaign_id)

    for group in summary.groups:
        audiences = aggregate(group.detail_rows, audience_key)
        section = report.section(f"📊 {group.label.upper()} ({len(audiences)} audiences)")
        section.block("Overall Performance:").add(
            *_core_fields(group),
            *_conversion_fields(group),
            Field("All Conversions", fmt_float(group.totals.all_conversions)),
        )
        section.block("Top Performing Audiences:")
        for index, audience in enumerate(rank(audiences)[:AUDIENCE_DRILLDOWN], start=1):
            d = derive(audience.totals)
            section.block(f"{index}. {audience.label} (ID: {audience.key})").add(
                Field("Impressions", fmt_int(audience.totals.impressions)),
                Field("CTR", fmt_pct(d.ctr)),
                Field("Conv. Rate", fmt_pct(d.conv_rate)),
                Field("Avg. CPC", fmt_currency(d.avg_cpc)),
                Field("Campaigns", str(audience.member_count("campaigns"))),
                Field("Ad Groups", str(audience.member_count("ad_groups"))),
            )

    _distribution(report.section("📈 AUDIENCE TYPE DISTRIBUTION").block(), summary.groups, summary.totals.impressions)

    all_audiences = list(aggregate(rows, audience_key).values())
    best_ctr = _best(all_audiences, "ctr", lambda g: g.totals.impressions > CTR_MIN_IMPRESSIONS)
    best_conv = _best(all_audiences, "conv_rate", lambda g: g.totals.clicks > CONV_RATE_MIN_CLICKS)
    highlights = report.section("💡 INSIGHTS & RECOMMENDATIONS").block("Performance Highlights:")
    if best_ctr:
        highlights.add(Text(f"• Best CTR: {best_ctr[0].label} ({fmt_pct(derive(best_ctr[0].totals).ctr)})", indent=False))
    if best_conv:
        highlights.add(Text(
            f"• Best Conv. Rate: {best_conv[0].label} ({fmt_pct(derive(best_conv[0].totals).conv_rate)})",
            indent=False,
        ))

    t = summary.totals
    report.section("Summary:").block().add(
        Text(f"Total Audience Types: {summary.group_count}", indent=False),
        Text(f"Total Unique Audiences: {len(all_audiences)}", indent=False),
        Text(f"Total Impressions: {fmt_int(t.impressions)}", indent=False),
        Text(f"Total Cost: {fmt_micros(t.cost_micros)}", indent=False),
    )
    return ReportResult.of(report.render(), audience_types=summary)
