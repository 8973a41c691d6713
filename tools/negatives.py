"""Negative keyword tools: campaign and ad group negatives plus shared negative keyword lists."""
import logging
from typing import Any, Dict, List, Optional, Tuple

from mcp_instance import mcp
from oauth.errors import GoogleAdsError, NotFoundError
from oauth.google_auth import execute_query, mutate, mutate_operations
from tools.safety import Change, MutationGuard
from tools.session import NO_ACCOUNT_MESSAGE, session
from tools.utils import KeywordSpec, keyword_lines, operation_resource_name, parse_keywords, require_ids, require_numeric

logger = logging.getLogger(__name__)

TEMP_SHARED_SET_ID = -1


def _negative_target(cid: str, campaign_id: str, ad_group_id: str) -> Tuple[str, str, str]:
    """(level, resource path, display name) of the campaign or ad group receiving negatives."""
    if bool(campaign_id) == bool(ad_group_id):
        raise ValueError("Provide exactly one of campaign_id or ad_group_id.")

    if campaign_id:
        campaign_id = require_numeric(campaign_id, "campaign_id")
        rows = execute_query(cid, f"SELECT campaign.id, campaign.name FROM campaign WHERE campaign.id = {campaign_id}")
        if not rows:
            raise NotFoundError(f"Campaign {campaign_id} not found")
        return "campaign", f"customers/{cid}/campaigns/{campaign_id}", rows[0].get('campaign', {}).get('name', campaign_id)

    ad_group_id = require_numeric(ad_group_id, "ad_group_id")
    rows = execute_query(cid, f"SELECT ad_group.id, ad_group.name FROM ad_group WHERE ad_group.id = {ad_group_id}")
    if not rows:
        raise NotFoundError(f"Ad group {ad_group_id} not found")
    return "ad group", f"customers/{cid}/adGroups/{ad_group_id}", rows[0].get('adGroup', {}).get('name', ad_group_id)


@mcp.tool
def add_negative_keywords(
    keywords: List[KeywordSpec],
    campaign_id: str = "",
    ad_group_id: str = "",
    dry_run: bool = False,
    customer_id: str = "",
) -> str:
    """Block search terms at campaign or ad group level. Give exactly one of campaign_id or ad_group_id.

    Args:
        keywords: Keyword strings (BROAD) or dicts with 'text' and optional 'match_type'
        campaign_id: Campaign to add the negatives to
        ad_group_id: Ad group to add the negatives to
        dry_run: Return the preview without adding anything
        customer_id: Target account (defaults to the active account)
    """
    parsed = parse_keywords(keywords)
    cid = session.resolve(customer_id)
    if not cid:
        return NO_ACCOUNT_MESSAGE

    level, target, target_name = _negative_target(cid, campaign_id, ad_group_id)
    preview = MutationGuard(dry_run=dry_run).preview(
        f"Negative Keywords ({level} level)",
        target_name,
        [Change("negative_keywords", "None", f"Adding {len(parsed)} negative keywords")],
    )
    if dry_run:
        return "\n".join([preview.text, "", "Negative keywords to add:", *keyword_lines(parsed)])

    parent_key, resource_path = ("campaign", "campaignCriteria") if level == "campaign" else ("adGroup", "adGroupCriteria")
    operations = [
        {"create": {
            parent_key: target,
            "negative": True,
            "keyword": {"text": kw['text'], "matchType": kw['match_type']},
        }}
        for kw in parsed
    ]
    try:
        mutate(cid, resource_path, operations)
        logger.info(f"Added {len(operations)} negative keyword(s) to {target}")
    except GoogleAdsError as e:
        logger.error(f"Error adding negative keywords: {e}")
        raise

    return "\n".join([
        "✅ Negative keywords added successfully!",
        "",
        f"{level.title()}: {target_name}",
        f"Negative keywords added: {len(operations)}",
        "",
        *keyword_lines(parsed),
    ])


@mcp.tool
def create_negative_keyword_list(
    name: str,
    keywords: Optional[List[KeywordSpec]] = None,
    dry_run: bool = False,
    customer_id: str = "",
) -> str:
    """Create a shared negative keyword list, optionally seeded with keywords in the same request.

    Args:
        name: Name of the new list
        keywords: Optional initial keywords (strings or dicts with 'text' and 'match_type')
        dry_run: Return the preview without creating anything
        customer_id: Target account (defaults to the active account)
    """
    name = (name or "").strip()
    if not name:
        raise ValueError("name is required.")
    parsed = parse_keywords(keywords) if keywords else []
    cid = session.resolve(customer_id)
    if not cid:
        return NO_ACCOUNT_MESSAGE

    changes = [Change("list", "N/A", "Creating new list")]
    if parsed:
        changes.append(Change("keywords", "None", f"Adding {len(parsed)} keywords"))
    preview = MutationGuard(dry_run=dry_run).preview("Negative Keyword List", name, changes)
    if dry_run:
        return "\n".join([preview.text, *(["", "Keywords to add:", *keyword_lines(parsed)] if parsed else [])])

    temp_list = f"customers/{cid}/sharedSets/{TEMP_SHARED_SET_ID}"
    operations: List[Dict[str, Any]] = [{"sharedSetOperation": {"create": {
        "resourceName": temp_list,
        "name": name,
        "type": "NEGATIVE_KEYWORDS",
    }}}]
    operations += [
        {"sharedCriterionOperation": {"create": {
            "sharedSet": temp_list,
            "keyword": {"text": kw['text'], "matchType": kw['match_type']},
        }}}
        for kw in parsed
    ]
    try:
        response = mutate_operations(cid, operations)
    except GoogleAdsError as e:
        logger.error(f"Error creating negative keyword list: {e}")
        raise

    list_resource = operation_resource_name(response, 0, "sharedSetResult")
    list_id = list_resource.split('/')[-1]
    logger.info(f"Created negative keyword list: {list_resource}")

    lines = [
        "✅ Negative keyword list created successfully!",
        "",
        f"List name: {name}",
        f"List ID: {list_id}",
    ]
    if parsed:
        lines.append(f"Keywords added: {len(parsed)}")
    lines += [
        "",
        "Next steps:",
        f"1. Use add_keywords_to_negative_list with list_id {list_id} to add keywords",
        "2. Use apply_negative_list_to_campaigns to apply the list to campaigns",
    ]
    return "\n".join(lines)


def _negative_list(cid: str, list_id: str) -> Tuple[str, str]:
    """(resource name, name) of a negative keyword shared set."""
    list_id = require_numeric(list_id, "list_id")
    rows = execute_query(cid, f"""
        SELECT shared_set.id, shared_set.name, shared_set.resource_name
        FROM shared_set
        WHERE shared_set.id = {list_id}
            AND shared_set.type = 'NEGATIVE_KEYWORDS'
    """)
    if not rows:
        raise NotFoundError(f"Negative keyword list {list_id} not found")
    shared_set = rows[0].get('sharedSet', {})
    return shared_set.get('resourceName') or f"customers/{cid}/sharedSets/{list_id}", shared_set.get('name', list_id)


@mcp.tool
def add_keywords_to_negative_list(
    list_id: str,
    keywords: List[KeywordSpec],
    dry_run: bool = False,
    customer_id: str = "",
) -> str:
    """Add keywords to an existing shared negative keyword list."""
    parsed = parse_keywords(keywords)
    cid = session.resolve(customer_id)
    if not cid:
        return NO_ACCOUNT_MESSAGE

    list_resource, list_name = _negative_list(cid, list_id)
    preview = MutationGuard(dry_run=dry_run).preview(
        "Negative Keyword List",
        list_name,
        [Change("keywords", "Existing keywords", f"Adding {len(parsed)} keywords")],
    )
    if dry_run:
        return "\n".join([preview.text, "", "Keywords to add:", *keyword_lines(parsed)])

    try:
        mutate(cid, "sharedCriteria", [
            {"create": {"sharedSet": list_resource, "keyword": {"text": kw['text'], "matchType": kw['match_type']}}}
            for kw in parsed
        ])
        logger.info(f"Added {len(parsed)} keyword(s) to {list_resource}")
    except GoogleAdsError as e:
        logger.error(f"Error adding keywords to negative list: {e}")
        raise

    return "\n".join([
        "✅ Keywords added to negative list!",
        "",
        f"List: {list_name}",
        f"Keywords added: {len(parsed)}",
        "",
        *keyword_lines(parsed),
    ])


@mcp.tool
def apply_negative_list_to_campaigns(
    list_id: str,
    campaign_ids: List[str],
    dry_run: bool = False,
    customer_id: str = "",
) -> str:
    """Attach a shared negative keyword list to one or more campaigns."""
    campaign_ids = require_ids(campaign_ids, "campaign_ids")
    cid = session.resolve(customer_id)
    if not cid:
        return NO_ACCOUNT_MESSAGE

    list_resource, list_name = _negative_list(cid, list_id)
    rows = execute_query(cid, f"""
        SELECT campaign.id, campaign.name
        FROM campaign
        WHERE campaign.id IN ({', '.join(campaign_ids)})
    """)
    names = {str(row.get('campaign', {}).get('id', '')): row.get('campaign', {}).get('name', '') for row in rows}
    missing = [c for c in campaign_ids if c not in names]
    if missing:
        raise NotFoundError(f"Campaign(s) not found: {', '.join(missing)}")

    preview = MutationGuard(dry_run=dry_run).preview(
        "Negative Keyword List",
        list_name,
        [Change("campaigns", "None", f"Applying to {len(campaign_ids)} campaigns")],
    )
    campaign_lines = [f"  • {names[c]} ({c})" for c in campaign_ids]
    if dry_run:
        return "\n".join([preview.text, "", "Campaigns:", *campaign_lines])

    try:
        mutate(cid, "campaignSharedSets", [
            {"create": {"campaign": f"customers/{cid}/campaigns/{c}", "sharedSet": list_resource}}
            for c in campaign_ids
        ])
        logger.info(f"Applied {list_resource} to {len(campaign_ids)} campaign(s)")
    except GoogleAdsError as e:
        logger.error(f"Error applying negative list: {e}")
        raise

    return "\n".join([
        "✅ Negative keyword list applied!",
        "",
        f"List: {list_name}",
        f"Applied to {len(campaign_ids)} campaigns:",
        *campaign_lines,
    ])
