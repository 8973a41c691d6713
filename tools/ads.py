"""Ad listing tool."""
import logging
from typing import Any, Dict, List

from mcp_instance import mcp
from oauth.google_auth import execute_gaql
from reporting import queries
from tools.session import session

logger = logging.getLogger(__name__)

ETA_HEADLINES = ('headlinePart1', 'headlinePart2', 'headlinePart3')
ETA_DESCRIPTIONS = ('description', 'description2')


def _ad_text(ad: Dict[str, Any]) -> Dict[str, List[str]]:
    """Headlines and descriptions of an expanded text ad or a responsive search ad."""
    rsa = ad.get('responsiveSearchAd')
    if rsa:
        return {
            'headlines': [asset.get('text', '') for asset in rsa.get('headlines', [])],
            'descriptions': [asset.get('text', '') for asset in rsa.get('descriptions', [])],
        }
    eta = ad.get('expandedTextAd', {})
    return {
        'headlines': [eta[key] for key in ETA_HEADLINES if eta.get(key)],
        'descriptions': [eta[key] for key in ETA_DESCRIPTIONS if eta.get(key)],
    }


@mcp.tool
def get_ads(campaign_id: str = "", ad_group_id: str = "", customer_id: str = "") -> Dict[str, Any]:
    """List ads that are not removed, with their headlines, descriptions and final URLs.

    Args:
        campaign_id: Optional campaign ID to restrict the list to
        ad_group_id: Optional ad group ID to restrict the list to
        customer_id: Account to read (defaults to the active account)
    """
    query = queries.ads_query(campaign_id, ad_group_id)
    cid, message = session.check(customer_id)
    if not cid:
        return {'ads': [], 'message': message}

    logger.info(f"Fetching ads for customer {cid}")
    rows = execute_gaql(cid, query).get('results', [])
    if not rows:
        return {'ads': [], 'total': 0, 'message': "No ads found."}

    ads = []
    for row in rows:
        ad_group_ad = row.get('adGroupAd', {})
        ad = ad_group_ad.get('ad', {})
        ads.append({
            'ad_id': str(ad.get('id', '')),
            'type': ad.get('type', ''),
            'status': ad_group_ad.get('status', ''),
            'campaign_name': row.get('campaign', {}).get('name', ''),
            'ad_group_name': row.get('adGroup', {}).get('name', ''),
            **_ad_text(ad),
            'final_urls': ad.get('finalUrls', []),
            'display_url': ad.get('displayUrl', ''),
        })

    return {'ads': ads, 'total': len(ads), 'customer_id': cid}
