from __future__ import annotations

from pyslices._redact import is_sensitive_key, redact_for_log


def test_redact_for_log_redacts_sensitive_keys() -> None:
    payload = {
        "id": 3,
        "name": "ci bot",
        "key": "sk_live_123",
        "password_hash": "$2b$12$abc",
        "headers": {"Authorization": "Bearer abc", "accept": "application/json"},
        "refresh-token": "r",
    }

    redacted = redact_for_log(payload)
    assert redacted["id"] == 3
    assert redacted["name"] == "ci bot"
    assert redacted["key"] == "<redacted>"
    assert redacted["password_hash"] == "<redacted>"
    assert redacted["headers"]["Authorization"] == "<redacted>"
    assert redacted["headers"]["accept"] == "application/json"
    assert redacted["refresh-token"] == "<redacted>"


def test_is_sensitive_key_ignores_case_and_separators() -> None:
    assert is_sensitive_key("API_KEY")
    assert is_sensitive_key("accessToken")
    assert is_sensitive_key("Set-Cookie")
    assert not is_sensitive_key("key_name")
    assert not is_sensitive_key("task_id")


def test_redact_for_log_truncates_long_strings() -> None:
    long_value = "x" * 600
    redacted = redact_for_log({"value": long_value}, max_string=10)
    assert redacted["value"].startswith("x" * 10)
    assert "<truncated>" in redacted["value"]


def test_redact_for_log_caps_long_lists() -> None:
    rows = [{"id": i, "token": "t"} for i in range(5)]

    redacted = redact_for_log({"rows": rows}, max_items=2)

    assert redacted["rows"][:2] == [{"id": 0, "token": "<redacted>"}, {"id": 1, "token": "<redacted>"}]
    assert redacted["rows"][2] == "<+3 more>"
