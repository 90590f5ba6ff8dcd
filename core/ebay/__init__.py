"""
eBay Browse API Integration

Clients for the three upstream capabilities the category pipeline consumes:

    - TokenProvider: OAuth application token (client-credentials), cached in memory
    - SearchClient: one page of category listings (item_summary/search)
    - ItemClient: per-item detail and item-group (variations) lookups

All clients take an injectable requests.Session so tests can swap in a fake
transport, and the token provider takes an injectable clock.

Usage:
    from core.ebay import TokenProvider, SearchClient, ItemClient, create_session

    session = create_session(pool_size=5)
    tokens = TokenProvider(app_id, cert_id, session=session)
    page = SearchClient(tokens, session=session).search("293")
"""

from core.ebay.auth import Token, TokenProvider
from core.ebay.api import BrowseApi, BrowseApiConfig, create_session
from core.ebay.search import SearchClient, SearchPage
from core.ebay.items import ItemClient

__all__ = [
    # Auth
    "Token",
    "TokenProvider",
    # Transport
    "BrowseApi",
    "BrowseApiConfig",
    "create_session",
    # Endpoints
    "SearchClient",
    "SearchPage",
    "ItemClient",
]
