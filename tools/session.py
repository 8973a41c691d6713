"""Active account state shared by the tool modules."""
import logging
import threading
from typing import Optional, Tuple

from oauth.google_auth import GOOGLE_ADS_DEFAULT_CUSTOMER_ID, GOOGLE_ADS_MCC_ID, format_customer_id

logger = logging.getLogger(__name__)

NO_ACCOUNT_MESSAGE = (
    "❌ No active account set. Please use:\n"
    "1. list_accounts - to see available accounts\n"
    "2. set_active_account - to choose an account"
)


class MccAccountError(ValueError):
    """The manager (MCC) account was given where a client account is required."""

    def __init__(self, customer_id: str):
        super().__init__(
            f"Cannot use MCC account ({customer_id}) for operations. "
            "Please use one of your client accounts instead."
        )
        self.customer_id = customer_id


class AccountSession:
    """Holds the customer ID that tools fall back to when none is passed."""

    def __init__(self, default_customer_id: str = "", mcc_id: str = ""):
        self._lock = threading.Lock()
        self.mcc_id = format_customer_id(mcc_id) if mcc_id else ""
        self._active = ""
        if default_customer_id and not self.is_mcc(default_customer_id):
            self._active = format_customer_id(default_customer_id)

    def is_mcc(self, customer_id: str) -> bool:
        return bool(self.mcc_id) and format_customer_id(customer_id) == self.mcc_id

    @property
    def active(self) -> str:
        with self._lock:
            return self._active

    def set_active(self, customer_id: str) -> str:
        """Make ``customer_id`` the active account; the MCC itself is refused."""
        if not customer_id or not str(customer_id).strip():
            raise ValueError("customer_id is required.")
        if self.is_mcc(customer_id):
            raise MccAccountError(customer_id)
        cid = format_customer_id(customer_id)
        with self._lock:
            self._active = cid
        logger.info(f"Active account set to {cid}")
        return cid

    def resolve(self, customer_id: Optional[str] = None) -> str:
        """The explicit ID when given, otherwise the active one ('' if none).

        An explicit MCC id raises MccAccountError, the same refusal as set_active.
        """
        if customer_id and str(customer_id).strip():
            if self.is_mcc(customer_id):
                raise MccAccountError(customer_id)
            return format_customer_id(customer_id)
        return self.active

    def check(self, customer_id: Optional[str] = None) -> Tuple[str, str]:
        """(customer_id, '') for a usable account, else ('', guidance text).

        Read tools return the guidance text instead of raising.
        """
        try:
            cid = self.resolve(customer_id)
        except MccAccountError as e:
            return "", str(e)
        return (cid, "") if cid else ("", NO_ACCOUNT_MESSAGE)


session = AccountSession(GOOGLE_ADS_DEFAULT_CUSTOMER_ID, GOOGLE_ADS_MCC_ID)
