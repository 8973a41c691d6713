import logging
import os
import sys

# Load environment variables FIRST
from dotenv import load_dotenv
load_dotenv()

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger('google_ads_analytics_server')

# Import tool modules after environment is loaded so their @mcp.tool functions register
from mcp_instance import mcp  # noqa: E402
from tools import accounts, ads, analysis, campaigns, keywords, negatives, query  # noqa: E402,F401

HTTP_HOST = os.environ.get("MCP_HTTP_HOST", "127.0.0.1")
HTTP_PORT = int(os.environ.get("MCP_HTTP_PORT", "8000"))


@mcp.resource("gaql://reference")
def gaql_reference() -> str:
    """Google Ads Query Language (GAQL) reference for run_gaql_query."""
    return """## Basic Query Structure
SELECT field1, field2, ...
FROM resource_type
WHERE condition
ORDER BY field [ASC|DESC]
LIMIT n

## Resources behind the analytics tools
- geographic_view: geographic_view.country_criterion_id, geographic_view.location_type
  (join geo_target_constant.name, geo_target_constant.canonical_name, geo_target_constant.country_code)
- ad_group + segments.device: device breakdown (MOBILE, DESKTOP, TABLET, CONNECTED_TV, OTHER)
- age_range_view / gender_view: resource names end in ~<criterion id>
- campaign + segments.day_of_week + segments.hour: ad schedule breakdown
- ad_group_audience_view: ad_group_criterion.type, ad_group_criterion.user_list.user_list,
  ad_group_criterion.user_interest.user_interest_category, ad_group_criterion.custom_audience.custom_audience

## Resources behind the keyword and ad tools
- keyword_view: ad_group_criterion.keyword.text, ad_group_criterion.keyword.match_type,
  ad_group_criterion.quality_info.quality_score, ad_group_criterion.position_estimates.*
- search_term_view: search_term_view.search_term, search_term_view.status
- ad_group_ad: ad_group_ad.ad.responsive_search_ad.headlines, ad_group_ad.ad.final_urls
- shared_set: shared_set.type = 'NEGATIVE_KEYWORDS' for negative keyword lists

## Metric Fields
- metrics.impressions, metrics.clicks, metrics.cost_micros (1,000,000 micros = 1 currency unit)
- metrics.conversions, metrics.all_conversions, metrics.view_through_conversions
- metrics.conversions_value, metrics.interactions, metrics.video_views
- metrics.search_impression_share

## Date Ranges
- WHERE segments.date DURING LAST_7_DAYS (also TODAY, YESTERDAY, LAST_14_DAYS, LAST_30_DAYS,
  LAST_BUSINESS_WEEK, LAST_WEEK_SUN_SAT, LAST_WEEK_MON_SUN, THIS_WEEK_SUN_TODAY,
  THIS_WEEK_MON_TODAY, THIS_MONTH, LAST_MONTH)
- WHERE segments.date BETWEEN '2024-01-01' AND '2024-01-31'
- Date ranges must be finite; open-ended ranges like >= '2024-01-31' are rejected.

## Example: hourly performance for one campaign
SELECT
  campaign.id,
  segments.day_of_week,
  segments.hour,
  metrics.impressions,
  metrics.clicks
FROM campaign
WHERE segments.date DURING LAST_30_DAYS
  AND campaign.id = 1234567890
ORDER BY segments.day_of_week, segments.hour

## Common errors
WRONG: campaign.campaign_budget.amount_micros
CORRECT: campaign_budget.amount_micros

- Use LIKE '%term%'; GAQL has no CONTAINS operator.
- Segment fields in SELECT split rows; metrics are summed per segment value."""


def main() -> None:
    # Check command line arguments for transport mode
    if "--http" in sys.argv:
        logger.info(f"Starting with HTTP transport on http://{HTTP_HOST}:{HTTP_PORT}/mcp")
        mcp.run(transport="streamable-http", host=HTTP_HOST, port=HTTP_PORT, path="/mcp")
    else:
        # Default to STDIO for desktop MCP clients
        logger.info("Starting with STDIO transport")
        mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
