"""Google Ads REST client: credentials, headers, GAQL search and mutate."""
import logging
import os
import threading
import time
from typing import Any, Dict, List, Optional

import requests
from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials

from oauth.errors import ConfigurationError, raise_for_response

logger = logging.getLogger(__name__)

SCOPES = ['https://www.googleapis.com/auth/adwords']
TOKEN_URI = "https://oauth2.googleapis.com/token"
API_VERSION = os.environ.get("GOOGLE_ADS_API_VERSION", "v20")
BASE_URL = f"https://googleads.googleapis.com/{API_VERSION}"

GOOGLE_ADS_DEVELOPER_TOKEN = os.environ.get("GOOGLE_ADS_DEVELOPER_TOKEN")
GOOGLE_ADS_CLIENT_ID = os.environ.get("GOOGLE_ADS_CLIENT_ID")
GOOGLE_ADS_CLIENT_SECRET = os.environ.get("GOOGLE_ADS_CLIENT_SECRET")
GOOGLE_ADS_REFRESH_TOKEN = os.environ.get("GOOGLE_ADS_REFRESH_TOKEN")
GOOGLE_ADS_MCC_ID = os.environ.get("GOOGLE_ADS_MCC_ID", "")
GOOGLE_ADS_DEFAULT_CUSTOMER_ID = os.environ.get("GOOGLE_ADS_DEFAULT_CUSTOMER_ID", "")

RETRY_STATUSES = {429, 500, 502, 503, 504}
MAX_RETRIES = 3

_credentials: Optional[Credentials] = None
_credentials_lock = threading.Lock()


def format_customer_id(customer_id: str) -> str:
    """Format customer ID to ensure it's 10 digits without dashes."""
    customer_id = str(customer_id).replace('"', '')
    customer_id = ''.join(char for char in customer_id if char.isdigit())
    return customer_id.zfill(10)


def get_credentials(force_refresh: bool = False) -> Credentials:
    """Return cached refresh-token credentials, refreshing them when stale."""
    global _credentials

    with _credentials_lock:
        if _credentials is None:
            missing = [
                name for name, value in (
                    ("GOOGLE_ADS_CLIENT_ID", GOOGLE_ADS_CLIENT_ID),
                    ("GOOGLE_ADS_CLIENT_SECRET", GOOGLE_ADS_CLIENT_SECRET),
                    ("GOOGLE_ADS_REFRESH_TOKEN", GOOGLE_ADS_REFRESH_TOKEN),
                ) if not value
            ]
            if missing:
                raise ConfigurationError(f"Missing OAuth settings: {', '.join(missing)}")
            _credentials = Credentials(
                token=None,
                refresh_token=GOOGLE_ADS_REFRESH_TOKEN,
                client_id=GOOGLE_ADS_CLIENT_ID,
                client_secret=GOOGLE_ADS_CLIENT_SECRET,
                token_uri=TOKEN_URI,
                scopes=SCOPES,
            )

        if force_refresh or not _credentials.valid:
            try:
                logger.info("Refreshing Google Ads OAuth token")
                _credentials.refresh(Request())
            except RefreshError as e:
                logger.error(f"Error refreshing token: {str(e)}")
                raise ConfigurationError(f"Failed to refresh OAuth token: {str(e)}") from e

        return _credentials


def get_headers_with_auto_token(customer_id: str = "", manager_id: str = "", force_refresh: bool = False) -> Dict[str, str]:
    """Build request headers, refreshing the access token if needed.

    login-customer-id is the explicit manager_id, else the configured MCC,
    and is omitted when the request targets the MCC itself.
    """
    if not GOOGLE_ADS_DEVELOPER_TOKEN:
        raise ConfigurationError("Google Ads Developer Token is not set in environment variables.")

    creds = get_credentials(force_refresh=force_refresh)
    headers = {
        'Authorization': f'Bearer {creds.token}',
        'developer-token': GOOGLE_ADS_DEVELOPER_TOKEN,
        'content-type': 'application/json',
    }

    login_id = manager_id or GOOGLE_ADS_MCC_ID
    if login_id and format_customer_id(login_id) != (format_customer_id(customer_id) if customer_id else ""):
        headers['login-customer-id'] = format_customer_id(login_id)
    return headers


def _make_request(method, url: str, headers: Dict[str, str], json_body: Optional[Dict[str, Any]] = None):
    """Send a request, retrying throttling and server errors with backoff.

    A 401 triggers a single forced token refresh before giving up.
    """
    refreshed = False
    for attempt in range(MAX_RETRIES + 1):
        resp = method(url, headers=headers, json=json_body, timeout=60)

        if resp.status_code == 401 and not refreshed:
            logger.warning("Access token rejected, forcing refresh")
            refreshed = True
            creds = get_credentials(force_refresh=True)
            headers = dict(headers, Authorization=f'Bearer {creds.token}')
            continue

        if resp.status_code in RETRY_STATUSES and attempt < MAX_RETRIES:
            delay = 2 ** attempt
            logger.warning(f"Request to {url} returned {resp.status_code}, retrying in {delay}s")
            time.sleep(delay)
            continue

        return resp
    return resp


def execute_gaql(customer_id: str, query: str, manager_id: str = "") -> Dict[str, Any]:
    """Run a GAQL query through googleAds:search, following nextPageToken."""
    cid = format_customer_id(customer_id)
    headers = get_headers_with_auto_token(cid, manager_id)
    url = f"{BASE_URL}/customers/{cid}/googleAds:search"

    logger.debug(f"Executing query for customer {cid}: {query}")

    results: List[Dict[str, Any]] = []
    payload: Dict[str, Any] = {"query": query}
    field_mask = ""
    while True:
        resp = _make_request(requests.post, url, headers, json_body=payload)
        raise_for_response(resp)
        data = resp.json()
        results.extend(data.get("results", []))
        field_mask = data.get("fieldMask", field_mask)
        next_token = data.get("nextPageToken")
        if not next_token:
            break
        payload["pageToken"] = next_token

    return {"results": results, "totalRows": len(results), "fieldMask": field_mask}


def execute_query(customer_id: str, query: str) -> List[Dict[str, Any]]:
    """Rows-only variant of execute_gaql used by the report tools."""
    return execute_gaql(customer_id, query)["results"]


def mutate(customer_id: str, resource_path: str, operations: List[Dict[str, Any]], manager_id: str = "") -> Dict[str, Any]:
    """POST operations to customers/{cid}/{resource_path}:mutate."""
    cid = format_customer_id(customer_id)
    headers = get_headers_with_auto_token(cid, manager_id)
    url = f"{BASE_URL}/customers/{cid}/{resource_path}:mutate"
    logger.info(f"Mutating {len(operations)} {resource_path} operation(s) for customer {cid}")
    resp = _make_request(requests.post, url, headers, json_body={"operations": operations})
    raise_for_response(resp)
    return resp.json()


def mutate_operations(customer_id: str, operations: List[Dict[str, Any]], manager_id: str = "") -> Dict[str, Any]:
    """POST mixed-resource operations to googleAds:mutate as one atomic request.

    Each operation is keyed by its type, e.g. {"campaignBudgetOperation": {...}}.
    Either every operation is applied or none is. Resources created in the same
    request can reference each other through negative temporary IDs.
    """
    cid = format_customer_id(customer_id)
    headers = get_headers_with_auto_token(cid, manager_id)
    url = f"{BASE_URL}/customers/{cid}/googleAds:mutate"
    logger.info(f"Mutating {len(operations)} operation(s) atomically for customer {cid}")
    resp = _make_request(requests.post, url, headers, json_body={"mutateOperations": operations})
    raise_for_response(resp)
    return resp.json()


def list_accessible_customers() -> List[str]:
    """Customer IDs directly accessible to the authorized user."""
    headers = get_headers_with_auto_token()
    resp = _make_request(requests.get, f"{BASE_URL}/customers:listAccessibleCustomers", headers)
    raise_for_response(resp)
    return [name.split('/')[-1] for name in resp.json().get('resourceNames', [])]
