from .config import (
    ConfigurationError,
    Credential,
    CredentialKeyMapping,
    InvalidModeError,
    MissingCredentialError,
    Mode,
    ModeAndCredentialResolver,
    get_credential_mapping,
    resolve_credential,
    resolve_mode,
)

__all__ = [
    "ConfigurationError",
    "Credential",
    "CredentialKeyMapping",
    "InvalidModeError",
    "MissingCredentialError",
    "Mode",
    "ModeAndCredentialResolver",
    "get_credential_mapping",
    "resolve_credential",
    "resolve_mode",
]
