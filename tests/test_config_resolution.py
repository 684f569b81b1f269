from typing import Mapping

import pytest

from walkthrough.core.config import (
    ConfigurationError,
    Credential,
    InvalidModeError,
    MissingCredentialError,
    Mode,
    ModeAndCredentialResolver,
    get_credential_mapping,
    resolve_credential,
    resolve_mode,
)

from conftest import DEV_ENV, PROD_ENV, frozen_env


def test_dev_scenario_resolves_exact_values(dev_env: Mapping[str, str]) -> None:
    mode = resolve_mode(dev_env)
    assert mode is Mode.DEVELOPMENT
    credential = resolve_credential(mode, dev_env)
    assert credential == Credential(endpoint="https://paper-api.example.com", id="KEY1", secret="SECRET1")


def test_prod_mode_resolves_production(prod_env: Mapping[str, str]) -> None:
    assert resolve_mode(prod_env) is Mode.PRODUCTION
    credential = resolve_credential(Mode.PRODUCTION, prod_env)
    assert (credential.endpoint, credential.id, credential.secret) == ("https://api.example.com", "PRODKEY", "PRODSECRET")


@pytest.mark.parametrize("value", ["staging", "", "DEV", "Prod", " dev", "dev ", "development", "production"])
def test_unrecognized_mode_values_are_rejected(value: str) -> None:
    with pytest.raises(ConfigurationError, match="ALPACA_MODE") as exc:
        resolve_mode({"ALPACA_MODE": value})
    assert isinstance(exc.value, InvalidModeError)
    assert exc.value.variable == "ALPACA_MODE"
    assert exc.value.value == value


def test_unset_mode_is_rejected() -> None:
    with pytest.raises(InvalidModeError, match="ALPACA_MODE is not set") as exc:
        resolve_mode({})
    assert exc.value.value is None


def test_staging_scenario_mentions_variable() -> None:
    with pytest.raises(ConfigurationError) as exc:
        resolve_mode({"ALPACA_MODE": "staging"})
    assert "ALPACA_MODE" in str(exc.value)
    assert "staging" in str(exc.value)


def test_missing_prod_key_id_names_variable() -> None:
    env = {key: value for key, value in PROD_ENV.items() if key != "ALPACA_PROD_API_KEY_ID"}
    mode = resolve_mode(env)
    with pytest.raises(MissingCredentialError) as exc:
        resolve_credential(mode, env)
    error = exc.value
    assert "ALPACA_PROD_API_KEY_ID" in str(error)
    assert error.mode is Mode.PRODUCTION
    assert error.missing == ("id",)
    assert error.empty == ()


@pytest.mark.parametrize("variable", ["ALPACA_DEV_API_ENDPOINT", "ALPACA_DEV_API_KEY_ID", "ALPACA_DEV_API_SECRET_KEY"])
def test_any_missing_dev_variable_fails_whole_resolution(variable: str) -> None:
    env = {key: value for key, value in DEV_ENV.items() if key != variable}
    with pytest.raises(MissingCredentialError, match=variable):
        resolve_credential(Mode.DEVELOPMENT, env)


def test_empty_values_are_reported_separately_from_missing() -> None:
    env = frozen_env(DEV_ENV, ALPACA_DEV_API_SECRET_KEY="")
    env = {key: value for key, value in env.items() if key != "ALPACA_DEV_API_ENDPOINT"}
    with pytest.raises(MissingCredentialError) as exc:
        resolve_credential(Mode.DEVELOPMENT, env)
    assert exc.value.missing == ("endpoint",)
    assert exc.value.empty == ("secret",)
    message = str(exc.value)
    assert "ALPACA_DEV_API_ENDPOINT unset" in message
    assert "ALPACA_DEV_API_SECRET_KEY empty" in message


def test_error_message_never_contains_values() -> None:
    env = {"ALPACA_DEV_API_KEY_ID": "VISIBLE-ID", "ALPACA_DEV_API_SECRET_KEY": "TOPSECRET"}
    with pytest.raises(MissingCredentialError) as exc:
        resolve_credential(Mode.DEVELOPMENT, env)
    assert "TOPSECRET" not in str(exc.value)
    assert "VISIBLE-ID" not in str(exc.value)


def test_values_are_not_transformed() -> None:
    env = frozen_env(DEV_ENV, ALPACA_DEV_API_KEY_ID="  MixedCase Key  ", ALPACA_DEV_API_SECRET_KEY="s3cr3T ")
    credential = resolve_credential(Mode.DEVELOPMENT, env)
    assert credential.id == "  MixedCase Key  "
    assert credential.secret == "s3cr3T "


def test_dev_mode_ignores_prod_variables() -> None:
    env = frozen_env(PROD_ENV, ALPACA_MODE="dev")
    with pytest.raises(MissingCredentialError) as exc:
        resolve_credential(resolve_mode(env), env)
    assert exc.value.missing == ("endpoint", "id", "secret")


@pytest.mark.parametrize("bogus", ["dev", 0, None])
def test_credential_mapping_rejects_non_mode_values(bogus: object) -> None:
    with pytest.raises(ConfigurationError):
        get_credential_mapping(bogus)  # type: ignore[arg-type]


def test_resolution_is_idempotent(dev_env: Mapping[str, str]) -> None:
    resolver = ModeAndCredentialResolver(dev_env)
    first = resolver.resolve()
    second = resolver.resolve()
    assert first == second
    assert resolve_credential(resolve_mode(dev_env), dev_env) == first[1]


def test_credential_repr_hides_secret(dev_env: Mapping[str, str]) -> None:
    credential = resolve_credential(Mode.DEVELOPMENT, dev_env)
    assert "SECRET1" not in repr(credential)
    assert "KEY1" in repr(credential)


def test_credential_is_frozen(dev_env: Mapping[str, str]) -> None:
    credential = resolve_credential(Mode.DEVELOPMENT, dev_env)
    with pytest.raises(AttributeError):
        credential.secret = "other"  # type: ignore[misc]
