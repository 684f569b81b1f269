"""Centralized Alpaca client creation from a resolved mode and credential."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from alpaca.trading.client import TradingClient

from walkthrough.core.config import ConfigurationError, Credential, Mode
from walkthrough.core.secrets import redact
from walkthrough.execution.broker_client import BrokerClient
from walkthrough.utils.events import log_event

logger = logging.getLogger(__name__)

_API_VERSION_SUFFIX = "/v2"


@dataclass(frozen=True)
class ClientProfile:
    label: str
    mode: Mode
    base_url: Optional[str]
    paper: bool


def build_trading_client(mode: Mode, credential: Credential) -> BrokerClient:
    """Return a BrokerClient authenticated with ``credential``.

    HTTP 429/504 responses are retried by the SDK itself (tuned through
    APCA_RETRY_MAX, APCA_RETRY_WAIT and APCA_RETRY_CODES).
    """
    profile = determine_profile(mode, credential)
    if profile.paper:
        logger.info("Initializing Alpaca paper trading client", extra={"base_url": profile.base_url})
    else:
        logger.warning("Initializing LIVE Alpaca trading client.", extra={"base_url": profile.base_url})
    client = BrokerClient(_build_sdk_client(profile, credential), mode=profile.label)
    log_event(
        "broker_client_built",
        mode=profile.label,
        paper=profile.paper,
        base_url=profile.base_url,
        key_id=redact(credential.id, visible=4),
    )
    return client


def determine_profile(mode: Mode, credential: Credential) -> ClientProfile:
    if mode is Mode.DEVELOPMENT:
        paper = True
    elif mode is Mode.PRODUCTION:
        paper = False
    else:
        raise ConfigurationError(f"{mode!r} is not a valid mode.")
    return ClientProfile(label=mode.value, mode=mode, base_url=normalize_base_url(credential.endpoint), paper=paper)


def normalize_base_url(endpoint: str) -> Optional[str]:
    """Strip trailing slashes and the API version; the SDK appends ``/v2`` itself."""
    candidate = endpoint.strip().rstrip("/")
    if candidate.endswith(_API_VERSION_SUFFIX):
        candidate = candidate[: -len(_API_VERSION_SUFFIX)].rstrip("/")
    return candidate or None


def _build_sdk_client(profile: ClientProfile, credential: Credential) -> TradingClient:
    return TradingClient(
        api_key=credential.id,
        secret_key=credential.secret,
        paper=profile.paper,
        url_override=profile.base_url,
    )


__all__ = ["ClientProfile", "build_trading_client", "determine_profile", "normalize_base_url"]
