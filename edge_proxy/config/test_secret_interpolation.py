import pytest

from edge_proxy.config.secret_interpolation import (
    extract_secret_names,
    has_placeholders,
    interpolate,
    process_auth_entries,
    process_server_config,
    secrets_available,
)
from edge_proxy.errors import MissingSecretError
from edge_proxy.models import AuthEntry, ServerConfig


def test_value_without_placeholders_is_unchanged(secrets):
    for strict in (True, False):
        assert interpolate("plain value", secrets, strict=strict) == "plain value"


def test_resolvable_value_same_in_both_modes(secrets):
    value = "Bearer ${UPSTREAM_KEY}"
    assert interpolate(value, secrets, strict=True) == "Bearer upstream-123"
    assert interpolate(value, secrets, strict=False) == "Bearer upstream-123"


def test_multiple_placeholders_in_one_value(secrets):
    result = interpolate("${ADMIN_SECRET}:${UPSTREAM_KEY}", secrets)
    assert result == "secret:upstream-123"


def test_names_are_case_sensitive():
    with pytest.raises(MissingSecretError) as exc:
        interpolate("${token}", {"TOKEN": "x"}, strict=True)
    assert exc.value.secret_name == "token"


def test_strict_mode_raises_on_missing_secret():
    with pytest.raises(MissingSecretError) as exc:
        interpolate("key-${MISSING}", {}, strict=True)
    assert exc.value.secret_name == "MISSING"
    assert "MISSING" in str(exc.value)


def test_non_strict_mode_keeps_placeholder():
    assert interpolate("${MISSING}", {}, strict=False) == "${MISSING}"


def test_non_strict_resolves_known_and_keeps_unknown(secrets):
    result = interpolate("${ADMIN_SECRET}-${MISSING}", secrets, strict=False)
    assert result == "secret-${MISSING}"


def test_secret_values_are_not_expanded_again():
    secrets = {"OUTER": "${INNER}", "INNER": "leaked"}
    assert interpolate("${OUTER}", secrets, strict=True) == "${INNER}"


def test_self_referencing_secret_does_not_loop():
    secrets = {"LOOP": "${LOOP}"}
    assert interpolate("${LOOP}", secrets, strict=True) == "${LOOP}"


def test_hyphen_and_digits_in_names():
    assert interpolate("${my-key_2}", {"my-key_2": "v"}) == "v"


def test_invalid_placeholder_syntax_is_left_alone():
    assert interpolate("${with space} ${} $NAME", {"NAME": "x"}, strict=True) == (
        "${with space} ${} $NAME"
    )


def test_placeholder_helpers(secrets):
    value = "${API_TOKEN} and ${MISSING} and ${API_TOKEN}"
    assert has_placeholders(value)
    assert not has_placeholders("nothing here")
    assert extract_secret_names(value) == ["API_TOKEN", "MISSING", "API_TOKEN"]
    assert secrets_available(["API_TOKEN"], secrets)
    assert not secrets_available(["API_TOKEN", "MISSING"], secrets)


def test_process_auth_entries_is_strict(secrets):
    entries = [AuthEntry(header="X-Admin", value="${ADMIN_SECRET}")]
    assert process_auth_entries(entries, secrets) == [
        AuthEntry(header="X-Admin", value="secret")
    ]
    with pytest.raises(MissingSecretError):
        process_auth_entries([AuthEntry(header="X-Admin", value="${NOPE}")], secrets)


def test_process_server_config_modes(secrets):
    config = ServerConfig.model_validate(
        {
            "url": "https://api.example.com/${UPSTREAM_KEY}",
            "auth": "${API_TOKEN}",
            "authConfigs": [{"header": "X-Admin", "value": "${ADMIN_SECRET}"}],
            "headers": {"X-Upstream": "${UPSTREAM_KEY}", "X-Token": "${MISSING}"},
        }
    )
    processed = process_server_config(config, secrets)

    assert processed.legacy_auth_value == "Bearer t1"
    assert processed.auth_entries == [AuthEntry(header="X-Admin", value="secret")]
    assert processed.headers == {"X-Upstream": "upstream-123", "X-Token": "${MISSING}"}
    # URL is not interpolated and the original is untouched
    assert processed.url == "https://api.example.com/${UPSTREAM_KEY}"
    assert config.legacy_auth_value == "${API_TOKEN}"


def test_process_server_config_missing_auth_secret_fails():
    config = ServerConfig.model_validate(
        {"url": "https://api.example.com", "auth": "${MISSING}"}
    )
    with pytest.raises(MissingSecretError):
        process_server_config(config, {})


def test_process_server_config_missing_header_secret_is_tolerated():
    config = ServerConfig.model_validate(
        {"url": "https://api.example.com", "headers": {"X-Token": "${MISSING}"}}
    )
    assert process_server_config(config, {}).headers == {"X-Token": "${MISSING}"}
