"""Account discovery and active-account selection."""
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict, List, Tuple

from mcp_instance import mcp
from oauth.errors import GoogleAdsError
from oauth.google_auth import execute_gaql, format_customer_id, list_accessible_customers
from tools.session import NO_ACCOUNT_MESSAGE, session

logger = logging.getLogger(__name__)


def _get_customer_info(cid: str) -> Tuple[str, bool]:
    """Return (name, is_manager) for a customer ID."""
    try:
        result = execute_gaql(cid, "SELECT customer.descriptive_name, customer.manager FROM customer")
    except GoogleAdsError as e:
        logger.warning(f"Could not read customer {cid}: {e}")
        return "Name not available", False
    rows = result.get('results', [])
    if not rows:
        return "Name not available", False
    c = rows[0].get('customer', {})
    return c.get('descriptiveName', 'Name not available'), bool(c.get('manager', False))


def _get_client_accounts(manager_id: str) -> List[Dict[str, Any]]:
    query = (
        "SELECT customer_client.id, customer_client.descriptive_name, "
        "customer_client.level, customer_client.manager "
        "FROM customer_client WHERE customer_client.level <= 1"
    )
    try:
        result = execute_gaql(manager_id, query, manager_id)
    except GoogleAdsError as e:
        logger.warning(f"Error fetching client accounts for MCC {manager_id}: {e}")
        return []

    clients = []
    for row in result.get('results', []):
        client = row.get('customerClient', {})
        cid = format_customer_id(str(client.get('id', '')))
        if cid == manager_id:
            continue
        clients.append({
            'id': cid,
            'name': client.get('descriptiveName') or f"Client Account {cid}",
            'type': "Sub-Manager" if client.get('manager') else "Client",
            'parent_id': manager_id,
            'level': int(client.get('level', 0)),
        })
    return clients


@mcp.tool
def list_accounts() -> Dict[str, Any]:
    """List accessible manager (MCC) accounts and the client accounts under them.

    Reports must run against a client account; pass one of the returned
    client IDs to set_active_account.
    """
    logger.info("Listing accessible accounts")
    top_level_ids = [format_customer_id(cid) for cid in list_accessible_customers()]
    if not top_level_ids:
        return {'manager_accounts': [], 'client_accounts': [], 'message': 'No Google Ads accounts found.'}

    direct = []
    with ThreadPoolExecutor(max_workers=10) as executor:
        futures = {executor.submit(_get_customer_info, cid): cid for cid in top_level_ids}
        for future in as_completed(futures):
            name, is_manager = future.result()
            direct.append({'id': futures[future], 'name': name, 'is_manager': is_manager})
    direct.sort(key=lambda a: top_level_ids.index(a['id']))

    managers = [a for a in direct if a['is_manager'] or session.is_mcc(a['id'])]
    clients = [
        {'id': a['id'], 'name': a['name'], 'type': "Client", 'parent_id': "", 'level': 0}
        for a in direct if a not in managers
    ]
    seen = {a['id'] for a in direct}

    with ThreadPoolExecutor(max_workers=5) as executor:
        for subs in executor.map(_get_client_accounts, [m['id'] for m in managers]):
            for sub in subs:
                if sub['id'] not in seen:
                    clients.append(sub)
                    seen.add(sub['id'])

    response = {
        'manager_accounts': [{'id': m['id'], 'name': m['name']} for m in managers],
        'client_accounts': clients,
        'total_accounts': len(managers) + len(clients),
        'active_account': session.active or None,
    }
    selectable = [c for c in clients if c['type'] == "Client"]
    if selectable and not session.active:
        response['tip'] = f"Use set_active_account with customer_id \"{selectable[0]['id']}\" to start working with this account."
    logger.info(f"Found {response['total_accounts']} accounts")
    return response


@mcp.tool
def set_active_account(customer_id: str) -> Dict[str, Any]:
    """Choose the client account every other tool uses by default.

    Args:
        customer_id: A client account ID (dashes allowed). Manager (MCC) accounts are rejected.
    """
    cid = session.set_active(customer_id)
    return {
        'active_account': cid,
        'message': f"✅ Active account set to {cid}. All operations will now use this account.",
    }


@mcp.tool
def get_account_status() -> Dict[str, Any]:
    """Show the active account and whether a manager account is configured."""
    if not session.active:
        return {'active_account': None, 'mcc_id': session.mcc_id or None, 'message': NO_ACCOUNT_MESSAGE}
    return {
        'active_account': session.active,
        'mcc_id': session.mcc_id or None,
        'message': f"Active account: {session.active}",
    }
