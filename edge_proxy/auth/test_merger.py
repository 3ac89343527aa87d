from edge_proxy.auth.merger import merge_auth_entries
from edge_proxy.models import AuthEntry, ServerConfig


def _config(**fields):
    data = {"url": "https://api.example.com"}
    data.update(fields)
    return ServerConfig.model_validate(data)


def test_no_auth_gives_empty_list():
    assert merge_auth_entries(_config()) == []


def test_legacy_only_defaults_to_authorization():
    assert merge_auth_entries(_config(auth="Bearer t1")) == [
        AuthEntry(header="Authorization", value="Bearer t1")
    ]


def test_legacy_with_custom_header():
    assert merge_auth_entries(_config(auth="k", authHeader="X-Key")) == [
        AuthEntry(header="X-Key", value="k")
    ]


def test_legacy_appended_after_modern_entries():
    merged = merge_auth_entries(
        _config(
            auth="k",
            authHeader="X-Key",
            authConfigs=[
                {"header": "X-Admin", "value": "a"},
                {"header": "X-Other", "value": "b"},
            ],
        )
    )
    assert [e.header for e in merged] == ["X-Admin", "X-Other", "X-Key"]


def test_legacy_dropped_on_conflict():
    merged = merge_auth_entries(
        _config(auth="k", authHeader="X-Key", authConfigs=[{"header": "X-Key", "value": "other"}])
    )
    assert merged == [AuthEntry(header="X-Key", value="other")]


def test_conflict_is_case_insensitive():
    merged = merge_auth_entries(
        _config(auth="legacy", authConfigs=[{"header": "authorization", "value": "modern"}])
    )
    assert merged == [AuthEntry(header="authorization", value="modern")]


def test_authheader_without_value_is_ignored():
    assert merge_auth_entries(_config(authHeader="X-Key")) == []


def test_merge_does_not_mutate_config():
    config = _config(auth="k", authConfigs=[{"header": "X-Admin", "value": "a"}])
    merge_auth_entries(config)
    assert config.auth_entries == [AuthEntry(header="X-Admin", value="a")]
