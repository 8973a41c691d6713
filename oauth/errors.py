"""Typed errors raised by the Google Ads REST client."""
from typing import Any, Dict, List, Optional


class GoogleAdsError(Exception):
    """Base error for failed Google Ads API calls."""

    def __init__(self, message: str, status_code: Optional[int] = None, error_codes: Optional[List[str]] = None):
        super().__init__(message)
        self.status_code = status_code
        self.error_codes = error_codes or []


class AuthorizationError(GoogleAdsError):
    """Credentials are valid but not allowed to touch the requested account."""


class NotFoundError(GoogleAdsError):
    """The customer or resource does not exist (or is invisible to the caller)."""


class ConfigurationError(GoogleAdsError):
    """Required credentials are missing from the environment."""


def _error_codes(payload: Dict[str, Any]) -> List[str]:
    """Flatten errorCode values out of a Google Ads failure payload.

    The API nests them as error.details[].errors[].errorCode, each a single-key
    mapping such as {"authorizationError": "USER_PERMISSION_DENIED"}.
    """
    codes = []
    details = payload.get("error", {}).get("details", []) or []
    for detail in details:
        for err in detail.get("errors", []) or []:
            for kind, value in (err.get("errorCode") or {}).items():
                codes.append(f"{kind}:{value}")
    return codes


def _first_message(payload: Dict[str, Any], default: str) -> str:
    details = payload.get("error", {}).get("details", []) or []
    for detail in details:
        for err in detail.get("errors", []) or []:
            if err.get("message"):
                return err["message"]
    return payload.get("error", {}).get("message") or default


def raise_for_response(response) -> None:
    """Raise the matching GoogleAdsError subclass for a failed response."""
    if response.ok:
        return

    try:
        payload = response.json()
    except ValueError:
        payload = {}

    codes = _error_codes(payload)
    message = _first_message(payload, f"{response.status_code} {response.reason} - {response.text}")

    if response.status_code in (401, 403) or any(
        c.startswith(("authorizationError", "authenticationError")) for c in codes
    ):
        raise AuthorizationError(message, response.status_code, codes)
    if response.status_code == 404 or any(c.endswith("NOT_FOUND") for c in codes):
        raise NotFoundError(message, response.status_code, codes)
    raise GoogleAdsError(message, response.status_code, codes)


def remediation_hint(error: Exception) -> str:
    """Human-readable next step for a failed upstream call."""
    codes = getattr(error, "error_codes", [])
    if "authorizationError:DEVELOPER_TOKEN_NOT_APPROVED" in codes:
        return (
            "Your developer token is only approved for test accounts. "
            "To access production accounts, apply for Basic or Standard access at: "
            "https://developers.google.com/google-ads/api/docs/access-levels"
        )
    if "authorizationError:CUSTOMER_NOT_ENABLED" in codes:
        return (
            "This Google Ads account is not enabled or has been deactivated. "
            "Please check the account status in Google Ads."
        )
    if isinstance(error, ConfigurationError):
        return "Set the Google Ads credentials in the environment (or .env) and restart the server."
    if isinstance(error, AuthorizationError):
        return (
            "Please ensure you have:\n"
            "1. Set an active client account using set_active_account (not the MCC)\n"
            "2. Access to that account from the authorized Google user"
        )
    if isinstance(error, NotFoundError):
        return "Tip: Use list_accounts first, then set_active_account to select a client account."
    return (
        "Please ensure you have:\n"
        "1. Set an active account using set_active_account\n"
        "2. The account has active campaigns with data"
    )
