"""Tests for client schema compilation and input validation."""

import pytest

from vendor_gateway.abstractions import ai_abstraction, memory_abstraction, payment_abstraction
from vendor_gateway.errors import InputValidationError
from vendor_gateway.schemas import build_input_model, validate_input


def _validate(schema, payload):  # type: ignore[no-untyped-def]
    return validate_input(build_input_model("test", schema), schema, payload)


INIT_SCHEMA = payment_abstraction().operations["initializeTransaction"]
CHAT_SCHEMA = ai_abstraction().operations["chat"]
SEARCH_SCHEMA = memory_abstraction().operations["search"]
BULK_SCHEMA = memory_abstraction().operations["bulkDelete"]


class TestValidateInput:
    def test_defaults_are_applied(self) -> None:
        result = _validate(INIT_SCHEMA, {"amount": 5000, "email": "ada@example.com"})

        assert result["currency"] == "NGN"
        assert result["amount"] == 5000
        assert result["email"] == "ada@example.com"

    def test_missing_required_field(self) -> None:
        with pytest.raises(InputValidationError) as exc:
            _validate(INIT_SCHEMA, {"amount": 5000})

        assert exc.value.message == "Required field missing: email"
        assert exc.value.status == 400

    def test_explicit_null_on_required_field(self) -> None:
        with pytest.raises(InputValidationError) as exc:
            _validate(INIT_SCHEMA, {"amount": 5000, "email": None})

        assert exc.value.message == "Required field missing: email"

    def test_explicit_null_on_optional_field_is_dropped(self) -> None:
        result = _validate(INIT_SCHEMA, {"amount": 1, "email": "a@b.c", "reference": None})
        assert "reference" not in result

    def test_wrong_type(self) -> None:
        with pytest.raises(InputValidationError) as exc:
            _validate(INIT_SCHEMA, {"amount": "5000", "email": "a@b.c"})

        assert exc.value.message == "Invalid type for field amount: expected number"

    def test_missing_payload_reports_required_field(self) -> None:
        with pytest.raises(InputValidationError) as exc:
            _validate(payment_abstraction().operations["verifyTransaction"], None)

        assert exc.value.message == "Required field missing: reference"

    def test_nested_array_item_enum(self) -> None:
        with pytest.raises(InputValidationError) as exc:
            _validate(CHAT_SCHEMA, {"messages": [{"role": "robot", "content": "hi"}]})

        assert exc.value.message.startswith("Invalid value for field messages[0].role")

    def test_nested_array_item_missing_field(self) -> None:
        with pytest.raises(InputValidationError) as exc:
            _validate(CHAT_SCHEMA, {"messages": [{"role": "user"}]})

        assert exc.value.message == "Required field missing: messages[0].content"

    def test_valid_chat_keeps_messages_and_defaults(self) -> None:
        result = _validate(CHAT_SCHEMA, {"messages": [{"role": "user", "content": "hi"}]})

        assert result["messages"] == [{"role": "user", "content": "hi"}]
        assert result["model"] == "qwen2:1.5b"
        assert result["temperature"] == 0.7

    def test_numeric_bounds(self) -> None:
        with pytest.raises(InputValidationError) as exc:
            _validate(SEARCH_SCHEMA, {"query": "notes", "threshold": 2})

        assert exc.value.message.startswith("Invalid value for field threshold")

    def test_integer_rejects_fraction(self) -> None:
        with pytest.raises(InputValidationError) as exc:
            _validate(SEARCH_SCHEMA, {"query": "notes", "limit": 2.5})

        assert exc.value.message == "Invalid type for field limit: expected integer"

    def test_array_length_bounds(self) -> None:
        with pytest.raises(InputValidationError):
            _validate(BULK_SCHEMA, {"ids": []})

        assert _validate(BULK_SCHEMA, {"ids": ["m1"]}) == {"ids": ["m1"]}

    def test_all_errors_are_listed_in_meta(self) -> None:
        with pytest.raises(InputValidationError) as exc:
            _validate(INIT_SCHEMA, {})

        assert set(exc.value.meta["errors"]) == {
            "Required field missing: amount",
            "Required field missing: email",
        }
