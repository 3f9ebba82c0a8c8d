# wayfarer/tests/utils/test_redact.py
from wayfarer.utils.redact import REDACTED, redact_for_log, redact_tool_args


def test_sensitive_keys_are_masked():
    out = redact_for_log({"api_key": "abc", "password": "correct horse battery", "user": "ada"})
    assert out["api_key"] == REDACTED
    assert out["password"] == f"{REDACTED}(21)"
    assert out["user"] == "ada"


def test_secret_looking_values_are_masked_anywhere():
    out = redact_for_log({"note": ["Bearer abc.def", "4111 1111 1111 1111", "hello"]})
    assert out["note"][0].startswith(REDACTED)
    assert out["note"][1].startswith(REDACTED)
    assert out["note"][2] == "hello"


def test_type_into_password_field_is_masked():
    args = {"selector": "#password", "text": "hunter22", "clear": True}
    out = redact_tool_args("type", args)
    assert out["text"] == REDACTED
    assert out["selector"] == "#password"
    assert args["text"] == "hunter22"


def test_type_into_ordinary_field_is_kept():
    out = redact_tool_args("type", {"selector": "#q", "text": "cheap flights"})
    assert out["text"] == "cheap flights"


def test_fill_form_masks_sensitive_fields_only():
    out = redact_tool_args(
        "fill_form",
        {"fields": {"#email": "ada@example.com", "input[name=otp]": "123456", "#cardnumber": "4242"}},
    )
    assert out["fields"]["#email"] == "ada@example.com"
    assert out["fields"]["input[name=otp]"] == REDACTED
    assert out["fields"]["#cardnumber"] == REDACTED
