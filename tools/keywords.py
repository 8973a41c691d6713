"""Keyword tools: keyword and search term listings, keyword adds, bid updates and pauses."""
import logging
from typing import Any, Dict, List, Optional

from mcp_instance import mcp
from oauth.errors import GoogleAdsError, NotFoundError
from oauth.google_auth import execute_gaql, execute_query, mutate
from reporting import queries
from reporting.aggregate import Totals
from reporting.metrics import MICROS_PER_UNIT, derive
from reporting.rows import to_float, to_int
from tools.safety import Change, MutationGuard
from tools.session import NO_ACCOUNT_MESSAGE, session
from tools.utils import KeywordSpec, keyword_lines, parse_keywords, require_ids, require_numeric, to_micros

logger = logging.getLogger(__name__)


def _dollars(micros: Any) -> Optional[float]:
    return round(to_int(micros) / MICROS_PER_UNIT, 2) if micros else None


@mcp.tool
def get_keywords(campaign_id: str = "", ad_group_id: str = "", customer_id: str = "") -> Dict[str, Any]:
    """List keywords with match type, status, quality score, bid and first-page/top-of-page bid estimates.

    Args:
        campaign_id: Optional campaign ID to restrict the list to
        ad_group_id: Optional ad group ID to restrict the list to
        customer_id: Account to read (defaults to the active account)
    """
    query = queries.keywords_query(campaign_id, ad_group_id)
    cid, message = session.check(customer_id)
    if not cid:
        return {'keywords': [], 'message': message}

    logger.info(f"Fetching keywords for customer {cid}")
    rows = execute_gaql(cid, query).get('results', [])
    if not rows:
        return {'keywords': [], 'total': 0, 'message': "No keywords found."}

    keywords = []
    for row in rows:
        crit = row.get('adGroupCriterion', {})
        kw = crit.get('keyword', {})
        estimates = crit.get('positionEstimates', {})
        keywords.append({
            'criterion_id': str(crit.get('criterionId', '')),
            'keyword': kw.get('text', ''),
            'match_type': kw.get('matchType', ''),
            'status': crit.get('status', ''),
            'campaign_name': row.get('campaign', {}).get('name', ''),
            'ad_group_id': str(row.get('adGroup', {}).get('id', '')),
            'ad_group_name': row.get('adGroup', {}).get('name', ''),
            'quality_score': crit.get('qualityInfo', {}).get('qualityScore'),
            'cpc_bid_dollars': _dollars(crit.get('cpcBidMicros')),
            'first_page_cpc_dollars': _dollars(estimates.get('firstPageCpcMicros')),
            'top_of_page_cpc_dollars': _dollars(estimates.get('topOfPageCpcMicros')),
        })

    return {'keywords': keywords, 'total': len(keywords), 'customer_id': cid}


@mcp.tool
def get_search_terms(
    date_range: str = queries.DEFAULT_DATE_RANGE,
    campaign_id: str = "",
    customer_id: str = "",
) -> Dict[str, Any]:
    """Search terms that triggered ads, ordered by impressions.

    Args:
        date_range: Named range such as LAST_7_DAYS, or YYYY-MM-DD:YYYY-MM-DD
        campaign_id: Optional campaign ID to restrict the report to
        customer_id: Account to read (defaults to the active account)
    """
    query = queries.search_terms_query(date_range, campaign_id)
    cid, message = session.check(customer_id)
    if not cid:
        return {'search_terms': [], 'message': message}

    logger.info(f"Fetching search terms for customer {cid}")
    rows = execute_gaql(cid, query).get('results', [])
    if not rows:
        return {'search_terms': [], 'total': 0, 'message': "No search terms found for the specified date range."}

    search_terms = []
    for row in rows:
        m = row.get('metrics', {})
        term = row.get('searchTermView', {})
        totals = Totals(
            impressions=to_int(m.get('impressions')),
            clicks=to_int(m.get('clicks')),
            cost_micros=to_int(m.get('costMicros')),
            conversions=to_float(m.get('conversions')),
        )
        d = derive(totals)
        search_terms.append({
            'search_term': term.get('searchTerm', ''),
            'status': term.get('status', ''),
            'campaign': row.get('campaign', {}).get('name', ''),
            'ad_group': row.get('adGroup', {}).get('name', ''),
            'impressions': totals.impressions,
            'clicks': totals.clicks,
            'cost': round(d.cost, 2),
            'conversions': round(totals.conversions, 2),
            'ctr': round(d.ctr * 100, 2),
            'avg_cpc': round(d.avg_cpc, 2),
        })

    return {
        'search_terms': search_terms,
        'total': len(search_terms),
        'date_range': queries.normalize_date_range(date_range),
        'customer_id': cid,
    }


@mcp.tool
def add_keywords(
    ad_group_id: str,
    keywords: List[KeywordSpec],
    dry_run: bool = False,
    max_bid: float = 100.0,
    customer_id: str = "",
) -> str:
    """Add keywords to an ad group.

    Args:
        ad_group_id: The ad group to add keywords to
        keywords: Keyword strings (added as BROAD) or dicts with 'text', optional
            'match_type' (BROAD, PHRASE, EXACT) and optional 'cpc_bid' in account currency.
            Example: ["running shoes", {"text": "buy sneakers", "match_type": "EXACT", "cpc_bid": 1.2}]
        dry_run: Return the preview without adding anything
        max_bid: Highest keyword CPC bid allowed, in account currency
        customer_id: Target account (defaults to the active account)
    """
    ad_group_id = require_numeric(ad_group_id, "ad_group_id")
    parsed = parse_keywords(keywords)
    cid = session.resolve(customer_id)
    if not cid:
        return NO_ACCOUNT_MESSAGE

    rows = execute_query(cid, f"""
        SELECT ad_group.id, ad_group.name, campaign.id, campaign.name
        FROM ad_group
        WHERE ad_group.id = {ad_group_id}
    """)
    if not rows:
        raise NotFoundError(f"Ad group {ad_group_id} not found")
    ad_group_name = rows[0].get('adGroup', {}).get('name', ad_group_id)
    campaign_name = rows[0].get('campaign', {}).get('name', '')

    changes = [Change("keywords", "N/A", f"Adding {len(parsed)} keywords")]
    operations = []
    for kw in parsed:
        create: Dict[str, Any] = {
            "adGroup": f"customers/{cid}/adGroups/{ad_group_id}",
            "status": "ENABLED",
            "keyword": {"text": kw['text'], "matchType": kw['match_type']},
        }
        if kw['cpc_bid'] is not None:
            create["cpcBidMicros"] = str(to_micros(kw['cpc_bid']))
            changes.append(Change("bid", 0, to_micros(kw['cpc_bid']), label=f'"{kw["text"]}" bid'))
        operations.append({"create": create})

    guard = MutationGuard(dry_run=dry_run, max_bid=max_bid)
    preview = guard.preview("Keywords", f"{ad_group_name} (Campaign: {campaign_name})", changes)
    if dry_run:
        return "\n".join([preview.text, "", "Keywords to add:", *keyword_lines(parsed)])

    try:
        mutate(cid, "adGroupCriteria", operations)
        logger.info(f"Added {len(operations)} keyword(s) to ad group {ad_group_id}")
    except GoogleAdsError as e:
        logger.error(f"Error adding keywords: {e}")
        raise

    return "\n".join([
        "✅ Keywords added successfully!",
        "",
        f"Ad Group: {ad_group_name}",
        f"Campaign: {campaign_name}",
        f"Keywords added: {len(operations)}",
        "",
        *keyword_lines(parsed),
    ])


def _keyword_criteria(cid: str, keyword_ids: List[str]) -> List[Dict[str, Any]]:
    rows = execute_query(cid, queries.keyword_criteria_query(keyword_ids))
    if not rows:
        raise NotFoundError("No keywords found with the provided IDs")
    return [row.get('adGroupCriterion', {}) for row in rows]


@mcp.tool
def update_keyword_bids(
    keyword_ids: List[str],
    cpc_bid: float,
    dry_run: bool = False,
    max_bid: float = 100.0,
    customer_id: str = "",
) -> str:
    """Set the CPC bid of one or more keywords. Negative keywords are skipped.

    Args:
        keyword_ids: Keyword criterion IDs (see get_keywords)
        cpc_bid: New CPC bid in account currency (e.g. 1.5 = $1.50)
        dry_run: Return the preview without applying anything
        max_bid: Highest CPC bid allowed, in account currency
        customer_id: Target account (defaults to the active account)
    """
    keyword_ids = require_ids(keyword_ids, "keyword_ids")
    if cpc_bid is None or cpc_bid <= 0:
        raise ValueError("cpc_bid must be positive.")
    cid = session.resolve(customer_id)
    if not cid:
        return NO_ACCOUNT_MESSAGE

    new_micros = to_micros(cpc_bid)
    changes: List[Change] = []
    operations = []
    for crit in _keyword_criteria(cid, keyword_ids):
        text = crit.get('keyword', {}).get('text', '')
        if crit.get('negative'):
            logger.info(f"Skipping negative keyword: {text}")
            continue
        changes.append(Change("bid", to_int(crit.get('cpcBidMicros')), new_micros, label=f'"{text}" bid'))
        operations.append({
            "update": {"resourceName": crit.get('resourceName', ''), "cpcBidMicros": str(new_micros)},
            "updateMask": "cpcBidMicros",
        })

    if not operations:
        return "ℹ️  No keywords eligible for bid updates (all were negative keywords)."

    guard = MutationGuard(dry_run=dry_run, max_bid=max_bid)
    preview = guard.preview("Keyword Bids", f"{len(operations)} keywords", changes)
    if dry_run:
        return preview.text

    try:
        mutate(cid, "adGroupCriteria", operations)
        logger.info(f"Updated bids on {len(operations)} keyword(s) to {new_micros} micros")
    except GoogleAdsError as e:
        logger.error(f"Error updating keyword bids: {e}")
        raise

    return "\n".join([
        "✅ Keyword bids updated successfully!",
        "",
        f"Updated {len(operations)} keywords to ${cpc_bid:,.2f} CPC",
        "",
        *(f"  • {MutationGuard.format_change(c)}" for c in changes),
    ])


@mcp.tool
def pause_keywords(keyword_ids: List[str], dry_run: bool = False, customer_id: str = "") -> str:
    """Pause keywords so they stop triggering ads. Already paused keywords are left alone."""
    keyword_ids = require_ids(keyword_ids, "keyword_ids")
    cid = session.resolve(customer_id)
    if not cid:
        return NO_ACCOUNT_MESSAGE

    to_pause = [crit for crit in _keyword_criteria(cid, keyword_ids) if crit.get('status') != 'PAUSED']
    if not to_pause:
        return "ℹ️  All selected keywords are already paused."

    changes = [
        Change("status", crit.get('status', 'N/A'), "PAUSED", label=f'"{crit.get("keyword", {}).get("text", "")}"')
        for crit in to_pause
    ]
    preview = MutationGuard(dry_run=dry_run).preview("Keywords", f"{len(to_pause)} keywords", changes)
    if dry_run:
        return preview.text

    try:
        mutate(cid, "adGroupCriteria", [
            {"update": {"resourceName": crit.get('resourceName', ''), "status": "PAUSED"}, "updateMask": "status"}
            for crit in to_pause
        ])
        logger.info(f"Paused {len(to_pause)} keyword(s)")
    except GoogleAdsError as e:
        logger.error(f"Error pausing keywords: {e}")
        raise

    return f"✅ Keywords paused successfully!\n\nPaused {len(to_pause)} keywords."
