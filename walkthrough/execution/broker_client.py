"""Thin wrapper around the Alpaca TradingClient used by the walkthrough."""
from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Sequence

from alpaca.common.exceptions import APIError
from alpaca.trading.client import TradingClient
from alpaca.trading.requests import CreateWatchlistRequest
from requests import exceptions as requests_exceptions

from walkthrough.utils.events import log_event

logger = logging.getLogger(__name__)


class BrokerClient:
    """Expose the three trading endpoints the walkthrough touches.

    Failures are logged with a coarse category and re-raised unchanged so the
    caller sees exactly what the SDK raised.
    """

    def __init__(self, client: TradingClient, *, mode: str) -> None:
        self._client: Any = client
        self.mode = mode

    @property
    def raw(self) -> TradingClient:
        return self._client

    def get_account(self) -> Any:
        return self._call("get_account", self._client.get_account)

    def create_watchlist(self, name: str, symbols: Sequence[str]) -> Any:
        request = CreateWatchlistRequest(name=name, symbols=list(symbols))
        return self._call("create_watchlist", self._client.create_watchlist, request)

    def get_watchlists(self) -> List[Any]:
        return self._call("get_watchlists", self._client.get_watchlists)

    def _call(self, label: str, func: Callable[..., Any], *args: Any) -> Any:
        try:
            result = func(*args)
        except APIError as exc:
            status_code = getattr(exc, "status_code", None)
            log_event(
                "broker_request_failed",
                operation=label,
                mode=self.mode,
                category=classify_status(status_code),
                status_code=status_code,
                error=str(exc),
            )
            raise
        except requests_exceptions.RequestException as exc:
            log_event("broker_request_failed", operation=label, mode=self.mode, category="network", error=str(exc))
            raise
        log_event("broker_request_completed", operation=label, mode=self.mode)
        return result


def classify_status(status_code: Optional[int]) -> str:
    if status_code is None:
        return "unknown"
    if status_code in (401, 403):
        return "auth"
    if status_code == 429:
        return "rate_limit"
    if status_code == 404:
        return "not_found"
    if status_code in (400, 409, 422):
        return "validation"
    if status_code >= 500:
        return "server"
    return "unknown"


__all__ = ["BrokerClient", "classify_status"]
