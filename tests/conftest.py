import logging
from types import MappingProxyType
from typing import Dict, Iterator, Mapping

import pytest

from walkthrough.core import secrets
from walkthrough.utils import events

DEV_ENV: Dict[str, str] = {
    "ALPACA_MODE": "dev",
    "ALPACA_DEV_API_ENDPOINT": "https://paper-api.example.com",
    "ALPACA_DEV_API_KEY_ID": "KEY1",
    "ALPACA_DEV_API_SECRET_KEY": "SECRET1",
}

PROD_ENV: Dict[str, str] = {
    "ALPACA_MODE": "prod",
    "ALPACA_PROD_API_ENDPOINT": "https://api.example.com",
    "ALPACA_PROD_API_KEY_ID": "PRODKEY",
    "ALPACA_PROD_API_SECRET_KEY": "PRODSECRET",
}


def frozen_env(base: Mapping[str, str], **overrides: str) -> Mapping[str, str]:
    payload = dict(base)
    payload.update(overrides)
    return MappingProxyType(payload)


@pytest.fixture
def dev_env() -> Mapping[str, str]:
    return frozen_env(DEV_ENV)


@pytest.fixture
def prod_env() -> Mapping[str, str]:
    return frozen_env(PROD_ENV)


@pytest.fixture(autouse=True)
def restore_logging_state() -> Iterator[None]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    secrets.reset_dotenv_state()
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
    events.clear_log_context()
    secrets.reset_dotenv_state()
