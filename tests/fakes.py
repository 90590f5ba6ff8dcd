#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Test doubles shared by the test suite.
Fake HTTP transport, controllable clock and a static token provider.
"""
import json
import threading
from typing import Any, Callable, Dict, List, Optional


_NO_JSON = object()


class FakeResponse:
    """Just enough of requests.Response for the eBay clients."""

    def __init__(self, status_code: int = 200, json_data: Any = _NO_JSON, text: Optional[str] = None):
        self.status_code = status_code
        self._json = json_data
        if text is None:
            text = "" if json_data is _NO_JSON else json.dumps(json_data)
        self.text = text

    def json(self):
        if self._json is _NO_JSON:
            raise ValueError("No JSON object could be decoded")
        return self._json


class FakeSession:
    """
    Records every request and answers from a handler or a queue.

    handler(method, url, **kwargs) may return a FakeResponse or raise.
    Queued items are returned in order; exception instances are raised.
    """

    def __init__(self, responses: Optional[List[Any]] = None, handler: Optional[Callable[..., FakeResponse]] = None):
        self.responses = list(responses or [])
        self.handler = handler
        self.calls: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def get(self, url, params=None, headers=None, timeout=None):
        return self._request("GET", url, params=params, headers=headers, timeout=timeout)

    def post(self, url, data=None, headers=None, timeout=None):
        return self._request("POST", url, data=data, headers=headers, timeout=timeout)

    def _request(self, method, url, **kwargs):
        with self._lock:
            self.calls.append({"method": method, "url": url, **kwargs})
            if self.handler is None:
                assert self.responses, f"Unexpected {method} {url}"
                result = self.responses.pop(0)
        if self.handler is not None:
            return self.handler(method, url, **kwargs)
        if isinstance(result, BaseException):
            raise result
        return result


class FakeClock:
    """Manually advanced epoch clock."""

    def __init__(self, now: float = 1_800_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StaticTokenProvider:
    """Token provider that never talks to the network."""

    def __init__(self, token: str = "test-token"):
        self.token = token
        self.invalidations = 0

    def get_token(self) -> str:
        return self.token

    def invalidate(self) -> None:
        self.invalidations += 1


def browse_item(
    item_id: str,
    price: str = "10.00",
    title: Optional[str] = None,
    **extra: Any,
) -> Dict[str, Any]:
    """Minimal Browse API item payload."""
    raw = {
        "itemId": item_id,
        "title": title or f"Item {item_id}",
        "price": {"value": price, "currency": "USD"},
        "itemWebUrl": f"https://www.ebay.com/itm/{item_id}",
    }
    raw.update(extra)
    return raw
