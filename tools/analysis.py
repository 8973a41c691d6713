"""Analytics breakdown tools: geography, device, demographics, ad schedule and audiences."""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests

from mcp_instance import mcp
from oauth.errors import GoogleAdsError, remediation_hint
from oauth.google_auth import execute_query
from reporting import queries
from reporting.reports import (
    build_ad_schedule_report,
    build_audience_report,
    build_demographics_report,
    build_device_report,
    build_geo_report,
)
from reporting.rows import ReportKind, parse_rows
from tools.session import NO_ACCOUNT_MESSAGE, MccAccountError, session

logger = logging.getLogger(__name__)

Fetch = Callable[[str, str], List[Dict[str, Any]]]

AUDIENCE_FAILURE_HINT = (
    "Note: This might occur if:\n"
    "1. No audiences are currently targeted\n"
    "2. The account has no audience data\n"
    "3. You haven't set an active account yet"
)


@dataclass(frozen=True)
class ReportDefinition:
    """How one analytics tool fetches its rows and which builder renders them."""

    description: str
    queries: Tuple[Tuple[ReportKind, Callable[..., str]], ...]
    build: Callable
    failure_hint: Optional[str] = None


REPORTS: Dict[str, ReportDefinition] = {
    "geo": ReportDefinition(
        "geographic performance",
        ((ReportKind.GEOGRAPHY, queries.geo_query),),
        build_geo_report,
    ),
    "device": ReportDefinition(
        "device performance",
        ((ReportKind.DEVICE, queries.device_query),),
        build_device_report,
    ),
    "demographics": ReportDefinition(
        "demographic performance",
        ((ReportKind.AGE, queries.age_query), (ReportKind.GENDER, queries.gender_query)),
        build_demographics_report,
    ),
    "ad_schedule": ReportDefinition(
        "ad schedule performance",
        ((ReportKind.AD_SCHEDULE, queries.ad_schedule_query),),
        build_ad_schedule_report,
    ),
    "audience": ReportDefinition(
        "audience performance",
        ((ReportKind.AUDIENCE, queries.audience_query),),
        build_audience_report,
        AUDIENCE_FAILURE_HINT,
    ),
}


def run_report(
    report: str,
    customer_id: str,
    date_range: Optional[str] = None,
    campaign_id: Optional[str] = None,
    fetch: Fetch = execute_query,
    **query_options: Any,
) -> str:
    """Validate, fetch, aggregate and render one analytics report.

    Malformed arguments raise ValueError before anything is fetched. Upstream
    failures come back as "Failed to get ..." text with a remediation hint.
    """
    definition = REPORTS[report]
    date_range = queries.normalize_date_range(date_range)
    campaign_id = str(campaign_id).strip() if campaign_id else ""
    built_queries = [(kind, build(date_range, campaign_id, **query_options)) for kind, build in definition.queries]

    if not customer_id:
        return NO_ACCOUNT_MESSAGE

    logger.info(f"Fetching {definition.description} for customer {customer_id} ({date_range})")
    try:
        if len(built_queries) == 1:
            raw_sets = [fetch(customer_id, built_queries[0][1])]
        else:
            with ThreadPoolExecutor(max_workers=len(built_queries)) as executor:
                raw_sets = list(executor.map(partial(fetch, customer_id), [q for _, q in built_queries]))
    except (GoogleAdsError, requests.RequestException) as e:
        logger.error(f"Error getting {definition.description}: {e}")
        hint = definition.failure_hint or remediation_hint(e)
        return f"Failed to get {definition.description}: {e}\n\n{hint}"

    row_sets = [parse_rows(kind, raw) for (kind, _), raw in zip(built_queries, raw_sets)]
    result = definition.build(*row_sets, date_range, campaign_id or None)
    return result.text


def _run_tool(report: str, customer_id: str, date_range: str, campaign_id: str, **query_options: Any) -> str:
    try:
        cid = session.resolve(customer_id)
    except MccAccountError as e:
        logger.warning(str(e))
        return str(e)
    return run_report(report, cid, date_range, campaign_id, **query_options)


@mcp.tool
def get_geo_performance(
    date_range: str = queries.DEFAULT_DATE_RANGE,
    campaign_id: str = "",
    min_impressions: int = 0,
    customer_id: str = "",
) -> str:
    """Performance broken down by geographic location.

    Args:
        date_range: Named range such as LAST_30_DAYS, or a custom range YYYY-MM-DD:YYYY-MM-DD
        campaign_id: Optional campaign ID to restrict the report to
        min_impressions: Only include locations with more impressions than this
        customer_id: Account to report on (defaults to the active account)

    Returns:
        A text report with per-location metrics and campaign breakdowns
    """
    return _run_tool("geo", customer_id, date_range, campaign_id, min_impressions=min_impressions)


@mcp.tool
def get_device_performance(date_range: str = queries.DEFAULT_DATE_RANGE, campaign_id: str = "", customer_id: str = "") -> str:
    """Performance by device (mobile, desktop, tablet, connected TV) with device share."""
    return _run_tool("device", customer_id, date_range, campaign_id)


@mcp.tool
def get_demographics(date_range: str = queries.DEFAULT_DATE_RANGE, campaign_id: str = "", customer_id: str = "") -> str:
    """Performance by age range and gender. Both breakdowns are fetched in parallel."""
    return _run_tool("demographics", customer_id, date_range, campaign_id)


@mcp.tool
def get_ad_schedule(date_range: str = queries.DEFAULT_DATE_RANGE, campaign_id: str = "", customer_id: str = "") -> str:
    """Performance by day of week and hour of day, with an hourly impressions heatmap."""
    return _run_tool("ad_schedule", customer_id, date_range, campaign_id)


@mcp.tool
def get_audiences(date_range: str = queries.DEFAULT_DATE_RANGE, campaign_id: str = "", customer_id: str = "") -> str:
    """Performance of targeted audiences grouped by audience type."""
    return _run_tool("audience", customer_id, date_range, campaign_id)
