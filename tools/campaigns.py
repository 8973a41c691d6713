"""Campaign and ad group tools: listing, performance, and guarded mutations."""
import logging
from typing import Any, Dict, List, Optional

from mcp_instance import mcp
from oauth.errors import GoogleAdsError, NotFoundError
from oauth.google_auth import execute_gaql, execute_query, mutate, mutate_operations
from reporting import queries
from reporting.aggregate import Totals
from reporting.metrics import MICROS_PER_UNIT, derive
from reporting.rows import to_float, to_int
from tools.safety import Change, MutationGuard
from tools.session import NO_ACCOUNT_MESSAGE, session
from tools.utils import operation_resource_name, require_numeric, resource_name, to_micros

logger = logging.getLogger(__name__)

VALID_CAMPAIGN_TYPES = {'SEARCH', 'DISPLAY', 'SHOPPING', 'VIDEO', 'PERFORMANCE_MAX'}
VALID_STATUSES = {'ENABLED', 'PAUSED', 'REMOVED'}
VALID_AD_GROUP_TYPES = {'SEARCH_STANDARD', 'DISPLAY_STANDARD', 'SHOPPING_PRODUCT_ADS', 'VIDEO_TRUE_VIEW_IN_STREAM'}

# Links a new budget to its campaign inside one googleAds:mutate request.
TEMP_BUDGET_ID = -1


def _check_status(status: Optional[str]) -> Optional[str]:
    if status is None:
        return None
    status = status.upper()
    if status not in VALID_STATUSES:
        raise ValueError(f"Invalid status. Must be one of: {', '.join(sorted(VALID_STATUSES))}")
    return status


@mcp.tool
def get_campaigns(include_removed: bool = False, customer_id: str = "") -> Dict[str, Any]:
    """List campaigns with status, channel, bidding strategy and daily budget."""
    cid, message = session.check(customer_id)
    if not cid:
        return {'campaigns': [], 'message': message}

    logger.info(f"Fetching campaigns for customer {cid}")
    rows = execute_gaql(cid, queries.campaigns_query(include_removed)).get('results', [])

    campaigns = []
    for row in rows:
        c = row.get('campaign', {})
        budget_micros = to_int(row.get('campaignBudget', {}).get('amountMicros'))
        campaigns.append({
            'id': str(c.get('id', '')),
            'name': c.get('name', ''),
            'status': c.get('status', ''),
            'advertising_channel_type': c.get('advertisingChannelType', ''),
            'bidding_strategy_type': c.get('biddingStrategyType', ''),
            'daily_budget_dollars': round(budget_micros / MICROS_PER_UNIT, 2),
            'start_date': c.get('startDate', ''),
            'end_date': c.get('endDate', ''),
        })

    return {'campaigns': campaigns, 'total': len(campaigns), 'customer_id': cid}


@mcp.tool
def get_campaign_performance(
    date_range: str = queries.DEFAULT_DATE_RANGE,
    campaign_id: str = "",
    customer_id: str = "",
) -> Dict[str, Any]:
    """Campaign metrics for a date range.

    Args:
        date_range: Named range such as LAST_7_DAYS, or YYYY-MM-DD:YYYY-MM-DD
        campaign_id: Optional campaign ID to restrict the results to
        customer_id: Account to report on (defaults to the active account)
    """
    query = queries.campaign_performance_query(date_range, campaign_id)
    cid, message = session.check(customer_id)
    if not cid:
        return {'campaigns': [], 'message': message}

    logger.info(f"Fetching campaign performance for customer {cid}")
    rows = execute_gaql(cid, query).get('results', [])

    campaigns = []
    overall = Totals()
    for row in rows:
        c, m = row.get('campaign', {}), row.get('metrics', {})
        totals = Totals(
            impressions=to_int(m.get('impressions')),
            clicks=to_int(m.get('clicks')),
            cost_micros=to_int(m.get('costMicros')),
            conversions=to_float(m.get('conversions')),
        )
        overall = overall + totals
        d = derive(totals)
        campaigns.append({
            'id': str(c.get('id', '')),
            'name': c.get('name', ''),
            'impressions': totals.impressions,
            'clicks': totals.clicks,
            'ctr': round(d.ctr * 100, 2),
            'avg_cpc': round(d.avg_cpc, 2),
            'cost': round(d.cost, 2),
            'conversions': round(totals.conversions, 2),
            'conversion_value': round(to_float(m.get('conversionsValue')), 2),
            'cost_per_conversion': round(d.cost_per_conversion, 2),
        })

    return {
        'campaigns': campaigns,
        'total': len(campaigns),
        'date_range': queries.normalize_date_range(date_range),
        'totals': {
            'impressions': overall.impressions,
            'clicks': overall.clicks,
            'cost': round(overall.cost_micros / MICROS_PER_UNIT, 2),
            'conversions': round(overall.conversions, 2),
        },
        'customer_id': cid,
    }


@mcp.tool
def create_campaign(
    name: str,
    budget_amount: float,
    campaign_type: str = "SEARCH",
    status: str = "PAUSED",
    tracking_url_template: str = "",
    final_url_suffix: str = "",
    include_search_partners: bool = True,
    dry_run: bool = False,
    max_budget_change: float = 1000.0,
    customer_id: str = "",
) -> str:
    """Create a campaign with its own daily budget.

    The budget and the campaign are created in one atomic request, so a
    rejected campaign never leaves an orphan budget behind. Campaigns start
    PAUSED unless status="ENABLED" is passed explicitly.

    Args:
        name: Campaign name
        budget_amount: Daily budget in account currency (e.g. 50 = $50/day)
        campaign_type: SEARCH, DISPLAY, SHOPPING, VIDEO or PERFORMANCE_MAX
        status: ENABLED or PAUSED (default PAUSED)
        tracking_url_template: Optional tracking template
        final_url_suffix: Optional final URL suffix
        include_search_partners: Serve on search partners (SEARCH campaigns only)
        dry_run: Return the preview without creating anything
        max_budget_change: Largest budget (change) allowed in one call
        customer_id: Target account (defaults to the active account)
    """
    if not name or not name.strip():
        raise ValueError("Campaign name is required.")
    if budget_amount is None or budget_amount <= 0:
        raise ValueError("budget_amount must be positive.")
    campaign_type = (campaign_type or "").upper()
    if campaign_type not in VALID_CAMPAIGN_TYPES:
        raise ValueError(f"Invalid campaign_type. Must be one of: {', '.join(sorted(VALID_CAMPAIGN_TYPES))}")
    status = "ENABLED" if (status or "").upper() == "ENABLED" else "PAUSED"
    cid = session.resolve(customer_id)
    if not cid:
        return NO_ACCOUNT_MESSAGE

    budget_micros = to_micros(budget_amount)
    guard = MutationGuard(dry_run=dry_run, max_budget_change=max_budget_change)
    preview = guard.preview("Campaign", name, [
        Change("name", "N/A", name),
        Change("type", "N/A", campaign_type),
        Change("budget", 0, budget_micros),
        Change("status", "N/A", status),
    ])
    if dry_run:
        return preview.text

    budget_resource = f"customers/{cid}/campaignBudgets/{TEMP_BUDGET_ID}"
    campaign_create: Dict[str, Any] = {
        "name": name,
        "status": status,
        "advertisingChannelType": campaign_type,
        "campaignBudget": budget_resource,
        "manualCpc": {"enhancedCpcEnabled": False},
    }
    if campaign_type == "SEARCH":
        campaign_create["networkSettings"] = {
            "targetGoogleSearch": True,
            "targetSearchNetwork": include_search_partners,
            "targetContentNetwork": False,
            "targetPartnerSearchNetwork": False,
        }
    if tracking_url_template:
        campaign_create["trackingUrlTemplate"] = tracking_url_template
    if final_url_suffix:
        campaign_create["finalUrlSuffix"] = final_url_suffix

    operations = [
        {"campaignBudgetOperation": {"create": {
            "resourceName": budget_resource,
            "name": f"{name} - Budget",
            "amountMicros": str(budget_micros),
            "deliveryMethod": "STANDARD",
            "explicitlyShared": False,
        }}},
        {"campaignOperation": {"create": campaign_create}},
    ]

    try:
        logger.info(f"Creating campaign '{name}' with a ${budget_amount:.2f}/day budget")
        response = mutate_operations(cid, operations)
    except GoogleAdsError as e:
        logger.error(f"Error creating campaign: {e}")
        raise
    campaign_resource = operation_resource_name(response, 1, "campaignResult")
    logger.info(f"Campaign created: {campaign_resource}")

    lines = [
        "✅ Campaign created successfully!",
        "",
        f"Campaign: {name}",
        f"Resource: {campaign_resource}",
        f"Status: {status}",
        f"Budget: ${budget_amount:,.2f}/day",
        f"Type: {campaign_type}",
    ]
    if tracking_url_template:
        lines.append(f"Tracking Template: {tracking_url_template}")
    if final_url_suffix:
        lines.append(f"URL Suffix: {final_url_suffix}")
    if status == "PAUSED":
        lines += ["", "ℹ️  Campaign created in PAUSED status for safety. Use update_campaign to enable it."]
    return "\n".join(lines)


def apply_campaign_update(
    campaign_id: str,
    name: Optional[str] = None,
    budget_amount: Optional[float] = None,
    status: Optional[str] = None,
    tracking_url_template: Optional[str] = None,
    final_url_suffix: Optional[str] = None,
    dry_run: bool = False,
    max_budget_change: float = 1000.0,
    customer_id: str = "",
) -> str:
    """Diff the requested settings against the campaign and mutate only what changed.

    Budget and campaign changes go out in a single googleAds:mutate request, so
    they are applied together or not at all.
    """
    campaign_id = require_numeric(campaign_id, "campaign_id")
    status = _check_status(status)
    if budget_amount is not None and budget_amount <= 0:
        raise ValueError("budget_amount must be positive.")
    cid = session.resolve(customer_id)
    if not cid:
        return NO_ACCOUNT_MESSAGE

    rows = execute_query(cid, f"""
        SELECT
            campaign.id,
            campaign.name,
            campaign.status,
            campaign.tracking_url_template,
            campaign.final_url_suffix,
            campaign_budget.resource_name,
            campaign_budget.amount_micros
        FROM campaign
        WHERE campaign.id = {campaign_id}
    """)
    if not rows:
        raise NotFoundError(f"Campaign {campaign_id} not found")

    current = rows[0].get('campaign', {})
    budget = rows[0].get('campaignBudget', {})

    changes: List[Change] = []
    campaign_fields: Dict[str, Any] = {}
    for field_name, api_name, requested in (
        ("status", "status", status),
        ("name", "name", name),
        ("tracking_url_template", "trackingUrlTemplate", tracking_url_template),
        ("final_url_suffix", "finalUrlSuffix", final_url_suffix),
    ):
        old = current.get(api_name, "")
        if requested is not None and requested != old:
            changes.append(Change(field_name, old or "N/A", requested))
            campaign_fields[api_name] = requested

    operations: List[Dict[str, Any]] = []
    if budget_amount is not None:
        old_micros = to_int(budget.get('amountMicros'))
        new_micros = to_micros(budget_amount)
        if new_micros != old_micros:
            changes.append(Change("budget", old_micros, new_micros))
            operations.append({"campaignBudgetOperation": {
                "update": {"resourceName": budget.get('resourceName', ''), "amountMicros": str(new_micros)},
                "updateMask": "amountMicros",
            }})
    if campaign_fields:
        operations.append({"campaignOperation": {
            "update": {"resourceName": f"customers/{cid}/campaigns/{campaign_id}", **campaign_fields},
            "updateMask": ",".join(campaign_fields),
        }})

    if not changes:
        return "ℹ️  No changes to apply. Campaign already has the requested settings."

    guard = MutationGuard(dry_run=dry_run, max_budget_change=max_budget_change)
    preview = guard.preview("Campaign", current.get('name', campaign_id), changes)
    if dry_run:
        return preview.text

    try:
        mutate_operations(cid, operations)
        logger.info(f"Campaign {campaign_id} updated: {len(changes)} change(s)")
    except GoogleAdsError as e:
        logger.error(f"Error updating campaign {campaign_id}: {e}")
        raise

    return "\n".join(["✅ Campaign updated successfully!", "", preview.text])


@mcp.tool
def update_campaign(
    campaign_id: str,
    name: Optional[str] = None,
    budget_amount: Optional[float] = None,
    status: Optional[str] = None,
    tracking_url_template: Optional[str] = None,
    final_url_suffix: Optional[str] = None,
    dry_run: bool = False,
    max_budget_change: float = 1000.0,
    customer_id: str = "",
) -> str:
    """Update campaign name, daily budget, status, tracking template or final URL suffix.

    Only fields that differ from the current campaign are sent. Budget changes
    larger than max_budget_change are refused; changes over 50% carry a warning.
    """
    return apply_campaign_update(
        campaign_id, name, budget_amount, status, tracking_url_template,
        final_url_suffix, dry_run, max_budget_change, customer_id,
    )


@mcp.tool
def pause_campaign(campaign_id: str, dry_run: bool = False, customer_id: str = "") -> str:
    """Pause a campaign."""
    return apply_campaign_update(campaign_id, status="PAUSED", dry_run=dry_run, customer_id=customer_id)


@mcp.tool
def enable_campaign(campaign_id: str, dry_run: bool = False, customer_id: str = "") -> str:
    """Enable a paused campaign."""
    return apply_campaign_update(campaign_id, status="ENABLED", dry_run=dry_run, customer_id=customer_id)


@mcp.tool
def create_ad_group(
    campaign_id: str,
    name: str,
    cpc_bid: Optional[float] = None,
    status: str = "PAUSED",
    ad_group_type: str = "SEARCH_STANDARD",
    dry_run: bool = False,
    max_bid: float = 100.0,
    customer_id: str = "",
) -> str:
    """Create an ad group in a campaign. Ad groups start PAUSED unless status="ENABLED".

    Args:
        campaign_id: The campaign to create the ad group in
        name: Ad group name
        cpc_bid: Optional default CPC bid in account currency (e.g. 1.5 = $1.50)
        status: ENABLED or PAUSED (default PAUSED)
        ad_group_type: SEARCH_STANDARD, DISPLAY_STANDARD, SHOPPING_PRODUCT_ADS or VIDEO_TRUE_VIEW_IN_STREAM
        dry_run: Return the preview without creating anything
        max_bid: Highest CPC bid allowed, in account currency
        customer_id: Target account (defaults to the active account)
    """
    campaign_id = require_numeric(campaign_id, "campaign_id")
    if not name or not name.strip():
        raise ValueError("Ad group name is required.")
    if cpc_bid is not None and cpc_bid <= 0:
        raise ValueError("cpc_bid must be positive.")
    ad_group_type = (ad_group_type or "").upper()
    if ad_group_type not in VALID_AD_GROUP_TYPES:
        raise ValueError(f"Invalid ad_group_type. Must be one of: {', '.join(sorted(VALID_AD_GROUP_TYPES))}")
    status = "ENABLED" if (status or "").upper() == "ENABLED" else "PAUSED"
    cid = session.resolve(customer_id)
    if not cid:
        return NO_ACCOUNT_MESSAGE

    rows = execute_query(cid, f"SELECT campaign.id, campaign.name, campaign.status FROM campaign WHERE campaign.id = {campaign_id}")
    if not rows:
        raise NotFoundError(f"Campaign {campaign_id} not found")
    campaign_name = rows[0].get('campaign', {}).get('name', campaign_id)

    changes = [Change("name", "N/A", name), Change("status", "N/A", status)]
    ad_group: Dict[str, Any] = {
        "campaign": f"customers/{cid}/campaigns/{campaign_id}",
        "name": name,
        "status": status,
        "type": ad_group_type,
    }
    if cpc_bid is not None:
        ad_group["cpcBidMicros"] = str(to_micros(cpc_bid))
        changes.append(Change("cpc_bid", 0, to_micros(cpc_bid)))

    preview = MutationGuard(dry_run=dry_run, max_bid=max_bid).preview("Ad Group", campaign_name, changes)
    if dry_run:
        return preview.text

    try:
        created = resource_name(mutate(cid, "adGroups", [{"create": ad_group}]))
        logger.info(f"Ad group created: {created}")
    except GoogleAdsError as e:
        logger.error(f"Error creating ad group: {e}")
        raise

    lines = [
        "✅ Ad group created successfully!",
        "",
        f"Campaign: {campaign_name}",
        f"Ad Group: {name}",
        f"ID: {created.rsplit('/', 1)[-1] if created else 'unknown'}",
        f"Status: {status}",
    ]
    if cpc_bid is not None:
        lines.append(f"Default CPC Bid: ${cpc_bid:,.2f}")
    if status == "PAUSED":
        lines += ["", "ℹ️  Ad group created in PAUSED status for safety. Use update_ad_group to enable it."]
    return "\n".join(lines)


@mcp.tool
def update_ad_group(
    ad_group_id: str,
    name: Optional[str] = None,
    status: Optional[str] = None,
    cpc_bid: Optional[float] = None,
    dry_run: bool = False,
    max_bid: float = 100.0,
    customer_id: str = "",
) -> str:
    """Update an ad group's name, status or default CPC bid. Only changed fields are sent.

    Args:
        ad_group_id: The ad group to update
        name: New ad group name
        status: ENABLED, PAUSED or REMOVED
        cpc_bid: New default CPC bid in account currency
        dry_run: Return the preview without applying anything
        max_bid: Highest CPC bid allowed, in account currency
        customer_id: Target account (defaults to the active account)
    """
    ad_group_id = require_numeric(ad_group_id, "ad_group_id")
    status = _check_status(status)
    if cpc_bid is not None and cpc_bid <= 0:
        raise ValueError("cpc_bid must be positive.")
    cid = session.resolve(customer_id)
    if not cid:
        return NO_ACCOUNT_MESSAGE

    rows = execute_query(cid, f"""
        SELECT
            ad_group.id,
            ad_group.name,
            ad_group.status,
            ad_group.cpc_bid_micros,
            campaign.name
        FROM ad_group
        WHERE ad_group.id = {ad_group_id}
    """)
    if not rows:
        raise NotFoundError(f"Ad group {ad_group_id} not found")

    current = rows[0].get('adGroup', {})
    campaign_name = rows[0].get('campaign', {}).get('name', '')

    changes: List[Change] = []
    fields: Dict[str, Any] = {}
    if status is not None and status != current.get('status'):
        changes.append(Change("status", current.get('status', 'N/A'), status))
        fields["status"] = status
    if name is not None and name != current.get('name'):
        changes.append(Change("name", current.get('name', 'N/A'), name))
        fields["name"] = name
    if cpc_bid is not None:
        old_micros = to_int(current.get('cpcBidMicros'))
        new_micros = to_micros(cpc_bid)
        if new_micros != old_micros:
            changes.append(Change("cpc_bid", old_micros, new_micros))
            fields["cpcBidMicros"] = str(new_micros)

    if not changes:
        return "ℹ️  No changes to apply. All values are already set as requested."

    guard = MutationGuard(dry_run=dry_run, max_bid=max_bid)
    preview = guard.preview("Ad Group", current.get('name', ad_group_id), changes)
    if dry_run:
        return preview.text

    try:
        mutate(cid, "adGroups", [{
            "update": {"resourceName": f"customers/{cid}/adGroups/{ad_group_id}", **fields},
            "updateMask": ",".join(fields),
        }])
        logger.info(f"Ad group {ad_group_id} updated: {len(changes)} change(s)")
    except GoogleAdsError as e:
        logger.error(f"Error updating ad group {ad_group_id}: {e}")
        raise

    return "\n".join([
        "✅ Ad group updated successfully!",
        "",
        f"Campaign: {campaign_name}",
        f"Ad Group: {fields.get('name', current.get('name', ad_group_id))}",
        *(MutationGuard.format_change(c) for c in changes),
    ])
