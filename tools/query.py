"""Raw GAQL access for queries the report tools don't cover."""
import logging
from typing import Any, Dict

from mcp_instance import mcp
from oauth.google_auth import execute_gaql
from tools.session import session

logger = logging.getLogger(__name__)

MAX_ROWS = 1000


@mcp.tool
def run_gaql_query(query: str, customer_id: str = "") -> Dict[str, Any]:
    """Execute a GAQL query and return the raw result rows.

    See the gaql://reference resource for syntax. Results are capped at 1000 rows.

    Args:
        query: A GAQL SELECT statement
        customer_id: Account to query (defaults to the active account)
    """
    if not query or not isinstance(query, str) or not query.strip():
        raise ValueError("Invalid query provided. Please provide a valid GAQL query string.")

    cid, message = session.check(customer_id)
    if not cid:
        return {'results': [], 'totalRows': 0, 'message': message}

    result = execute_gaql(cid, query)
    rows = result.get('results', [])
    if len(rows) > MAX_ROWS:
        logger.warning(f"Query returned {len(rows)} rows, truncating to {MAX_ROWS}")
        return {
            'results': rows[:MAX_ROWS],
            'totalRows': len(rows),
            'warning': f"Query returned {len(rows)} rows. Showing first {MAX_ROWS}.",
        }
    return {'results': rows, 'totalRows': len(rows)}
