"""
EduBoost Gateway — Field Validation Unit Tests
===============================================

What:  Tests for require_text(), the single input gate of every endpoint.
Why:   The client maps these codes to user messages; they must not drift.

Test Strategy:
    ✅ Non-object bodies rejected (list, string, number, None)
    ✅ Missing / non-string / blank fields → INVALID_INPUT
    ✅ Oversized trimmed values → INPUT_TOO_LARGE with {field, maxLength}
    ✅ Success returns the trimmed value
"""

import pytest

from eduboost.exceptions import ApiError
from eduboost.services.validation import require_text


class TestRequireTextRejects:

    @pytest.mark.parametrize("body", [["content"], [{"content": "x"}], "content", 42, None, True])
    def test_non_object_body(self, body):
        """Arrays and scalars are not records, even when truthy."""
        with pytest.raises(ApiError) as exc_info:
            require_text(body, "content", 100)
        assert exc_info.value.status == 400
        assert exc_info.value.code == "INVALID_INPUT"

    def test_missing_field(self):
        with pytest.raises(ApiError) as exc_info:
            require_text({"other": "value"}, "content", 100)
        assert exc_info.value.code == "INVALID_INPUT"
        assert "content" in exc_info.value.message

    @pytest.mark.parametrize("value", [123, 1.5, ["a"], {"a": 1}, None, False])
    def test_non_string_field(self, value):
        with pytest.raises(ApiError) as exc_info:
            require_text({"content": value}, "content", 100)
        assert exc_info.value.code == "INVALID_INPUT"

    @pytest.mark.parametrize("value", ["", "   ", "\n\t  \n"])
    def test_blank_field(self, value):
        with pytest.raises(ApiError) as exc_info:
            require_text({"content": value}, "content", 100)
        assert exc_info.value.code == "INVALID_INPUT"
        assert "empty" in exc_info.value.message

    def test_too_long(self):
        with pytest.raises(ApiError) as exc_info:
            require_text({"text": "x" * 11}, "text", 10)
        error = exc_info.value
        assert error.status == 400
        assert error.code == "INPUT_TOO_LARGE"
        assert error.details == {"field": "text", "maxLength": 10}


class TestRequireTextAccepts:

    def test_returns_trimmed_value(self):
        assert require_text({"content": "  hello world \n"}, "content", 100) == "hello world"

    def test_length_is_measured_after_trimming(self):
        """Surrounding whitespace does not count toward the limit."""
        assert require_text({"content": "   " + "x" * 10 + "   "}, "content", 10) == "x" * 10

    def test_extra_fields_are_ignored(self):
        assert require_text({"password": "pw", "remember": True}, "password", 256) == "pw"
