"""Mode and credential resolution over an injected environment mapping."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple

MODE_ENV_VAR = "ALPACA_MODE"


class ConfigurationError(RuntimeError):
    """Raised when required configuration is missing or invalid."""


class InvalidModeError(ConfigurationError):
    """Raised when ALPACA_MODE is unset or holds an unsupported value."""

    def __init__(self, variable: str, value: Optional[str]) -> None:
        allowed = ", ".join(member.value for member in Mode)
        if value is None:
            message = f"{variable} is not set. Choose one of: {allowed}."
        else:
            message = f"Unsupported {variable} '{value}'. Choose one of: {allowed}."
        super().__init__(message)
        self.variable = variable
        self.value = value


class MissingCredentialError(ConfigurationError):
    """Raised when any variable of the credential triple is unset or empty."""

    def __init__(
        self,
        mode: "Mode",
        *,
        missing: Tuple[str, ...],
        empty: Tuple[str, ...],
        variables: Mapping[str, str],
    ) -> None:
        parts = [f"{name} ({variables[name]} unset)" for name in missing]
        parts.extend(f"{name} ({variables[name]} empty)" for name in empty)
        super().__init__(f"Required {mode.value} credential values are missing: {', '.join(parts)}")
        self.mode = mode
        self.missing = missing
        self.empty = empty
        self.variables = dict(variables)


class Mode(str, Enum):
    DEVELOPMENT = "dev"
    PRODUCTION = "prod"


@dataclass(frozen=True)
class CredentialKeyMapping:
    endpoint: str
    id: str
    secret: str

    def as_dict(self) -> Dict[str, str]:
        return {"endpoint": self.endpoint, "id": self.id, "secret": self.secret}


@dataclass(frozen=True)
class Credential:
    endpoint: str
    id: str
    secret: str = field(repr=False)


DEV_CREDENTIAL_KEYS = CredentialKeyMapping(
    endpoint="ALPACA_DEV_API_ENDPOINT",
    id="ALPACA_DEV_API_KEY_ID",
    secret="ALPACA_DEV_API_SECRET_KEY",
)
PROD_CREDENTIAL_KEYS = CredentialKeyMapping(
    endpoint="ALPACA_PROD_API_ENDPOINT",
    id="ALPACA_PROD_API_KEY_ID",
    secret="ALPACA_PROD_API_SECRET_KEY",
)

_MODE_VALUES: Dict[str, Mode] = {member.value: member for member in Mode}
_CREDENTIAL_KEYS: Dict[Mode, CredentialKeyMapping] = {
    Mode.DEVELOPMENT: DEV_CREDENTIAL_KEYS,
    Mode.PRODUCTION: PROD_CREDENTIAL_KEYS,
}


def resolve_mode(env: Mapping[str, str]) -> Mode:
    """Return the Mode selected by ``ALPACA_MODE``; the match is exact and case-sensitive."""
    value = env.get(MODE_ENV_VAR)
    if value is None:
        raise InvalidModeError(MODE_ENV_VAR, None)
    mode = _MODE_VALUES.get(value)
    if mode is None:
        raise InvalidModeError(MODE_ENV_VAR, value)
    return mode


def get_credential_mapping(mode: Mode) -> CredentialKeyMapping:
    if not isinstance(mode, Mode):
        raise ConfigurationError(f"{mode!r} is not a valid mode.")
    mapping = _CREDENTIAL_KEYS.get(mode)
    if mapping is None:  # pragma: no cover - every Mode member has a mapping
        raise ConfigurationError(f"No credential mapping registered for mode {mode.value}.")
    return mapping


def resolve_credential(mode: Mode, env: Mapping[str, str]) -> Credential:
    """Build the credential triple for ``mode`` or fail without a partial result.

    Values are returned exactly as found in ``env``. Unset and empty variables
    are reported separately, by logical name.
    """
    mapping = get_credential_mapping(mode)
    variables = mapping.as_dict()
    values: Dict[str, str] = {}
    missing: list[str] = []
    empty: list[str] = []
    for name, variable in variables.items():
        raw = env.get(variable)
        if raw is None:
            missing.append(name)
        elif raw == "":
            empty.append(name)
        else:
            values[name] = raw
    if missing or empty:
        raise MissingCredentialError(mode, missing=tuple(missing), empty=tuple(empty), variables=variables)
    return Credential(endpoint=values["endpoint"], id=values["id"], secret=values["secret"])


class ModeAndCredentialResolver:
    """Resolve mode and credential against a single environment snapshot."""

    def __init__(self, env: Mapping[str, str]) -> None:
        self._env = env

    def resolve_mode(self) -> Mode:
        return resolve_mode(self._env)

    def resolve_credential(self, mode: Mode) -> Credential:
        return resolve_credential(mode, self._env)

    def resolve(self) -> Tuple[Mode, Credential]:
        mode = self.resolve_mode()
        return mode, self.resolve_credential(mode)


__all__ = [
    "ConfigurationError",
    "Credential",
    "CredentialKeyMapping",
    "DEV_CREDENTIAL_KEYS",
    "InvalidModeError",
    "MODE_ENV_VAR",
    "MissingCredentialError",
    "Mode",
    "ModeAndCredentialResolver",
    "PROD_CREDENTIAL_KEYS",
    "get_credential_mapping",
    "resolve_credential",
    "resolve_mode",
]
