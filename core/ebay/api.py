"""
Browse API plumbing shared by the search and item clients.

Every request carries the application bearer token and the marketplace
header. Sessions are pooled but never retry on their own: retry policy
belongs to the caller.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter

from core.ebay.auth import TokenProvider


BROWSE_PATH = "/buy/browse/v1"

# Browse "Too many requests" and the legacy Finding API rate-limit error id
RATE_LIMIT_ERROR_IDS = {2001, 10001}

MAX_BODY_CHARS = 500


@dataclass
class BrowseApiConfig:
    """
    Connection settings for the Browse API.

    Attributes:
        base_url: API host (production or sandbox)
        marketplace_id: Value for X-EBAY-C-MARKETPLACE-ID
        timeout: Per-request timeout in seconds
        end_user_context: Value for X-EBAY-C-ENDUSERCTX on searches
    """
    base_url: str = "https://api.ebay.com"
    marketplace_id: str = "EBAY_US"
    timeout: float = 15.0
    end_user_context: str = "contextualLocation=country=US"


def create_session(pool_size: int = 10) -> requests.Session:
    """
    Pooled session sized for the enrichment fan-out.

    max_retries=0 keeps urllib3 from retrying 429/5xx behind our back.
    """
    session = requests.Session()
    adapter = HTTPAdapter(
        pool_connections=pool_size,
        pool_maxsize=pool_size,
        max_retries=0,
    )
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers.update({"Accept": "application/json"})
    return session


def is_success(response: requests.Response) -> bool:
    return 200 <= response.status_code < 300


def response_body(response: requests.Response) -> str:
    """Error body, trimmed for logs and exception messages."""
    try:
        text = response.text or ""
    except (AttributeError, ValueError):
        return ""
    return text[:MAX_BODY_CHARS]


def error_ids(response: requests.Response) -> List[int]:
    """
    Error ids carried by an error body.

    Understands the Browse shape {"errors": [{"errorId": 2001}]} and the
    legacy Finding shape {"errorMessage": [{"error": [{"errorId": ["10001"]}]}]}.
    """
    try:
        data = response.json()
    except ValueError:
        return []
    if not isinstance(data, dict):
        return []

    raw_ids: List[Any] = []
    for error in data.get("errors") or []:
        if isinstance(error, dict):
            raw_ids.append(error.get("errorId"))

    for message in data.get("errorMessage") or []:
        if not isinstance(message, dict):
            continue
        for error in message.get("error") or []:
            if isinstance(error, dict):
                value = error.get("errorId")
                raw_ids.append(value[0] if isinstance(value, list) and value else value)

    ids = []
    for raw in raw_ids:
        try:
            ids.append(int(raw))
        except (TypeError, ValueError):
            continue
    return ids


def is_rate_limited(response: requests.Response) -> bool:
    if response.status_code == 429:
        return True
    if is_success(response):
        return False
    return bool(RATE_LIMIT_ERROR_IDS.intersection(error_ids(response)))


class BrowseApi:
    """
    Base class for Browse API clients.

    Subclasses add endpoint-specific methods on top of _get().
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        config: Optional[BrowseApiConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        self.token_provider = token_provider
        self.config = config or BrowseApiConfig()
        self.session = session or create_session()

    @property
    def browse_url(self) -> str:
        return f"{self.config.base_url.rstrip('/')}{BROWSE_PATH}"

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        """Request headers; raises AuthError when no token can be obtained."""
        headers = {
            "Authorization": f"Bearer {self.token_provider.get_token()}",
            "X-EBAY-C-MARKETPLACE-ID": self.config.marketplace_id,
        }
        if extra:
            headers.update(extra)
        return headers

    def _get(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> requests.Response:
        return self.session.get(
            f"{self.browse_url}{path}",
            params=params,
            headers=self._headers(headers),
            timeout=self.config.timeout,
        )
