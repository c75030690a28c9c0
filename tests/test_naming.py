"""Tests for canonical tool ids and the alias policy."""

from vendor_gateway.naming import alias_ids, canonical_tool_id, canonical_tool_name, split_tool_id


class TestCanonicalForm:
    def test_underscores_become_hyphens(self) -> None:
        assert canonical_tool_name("create_customer") == "create-customer"

    def test_name_is_trimmed(self) -> None:
        assert canonical_tool_name("  list_banks ") == "list-banks"

    def test_none_is_empty(self) -> None:
        assert canonical_tool_name(None) == ""

    def test_canonical_id(self) -> None:
        assert canonical_tool_id("stripe", "create_customer") == "stripe:create-customer"

    def test_canonicalization_is_idempotent(self) -> None:
        once = canonical_tool_name("Create_Customer")
        assert canonical_tool_name(once) == once


class TestSplitToolId:
    def test_splits_on_first_colon(self) -> None:
        assert split_tool_id("ai-router:model:list") == ("ai-router", "model:list")

    def test_parts_are_trimmed(self) -> None:
        assert split_tool_id(" stripe : create_customer ") == ("stripe", "create_customer")

    def test_rejects_missing_parts(self) -> None:
        assert split_tool_id("stripe") is None
        assert split_tool_id(":create") is None
        assert split_tool_id("stripe:") is None
        assert split_tool_id(42) is None


class TestAliasPolicy:
    def test_aliases_cover_declared_snake_and_lowercase(self) -> None:
        aliases = alias_ids("stripe", "Create_Customer")

        assert "stripe:Create_Customer" in aliases
        assert "stripe:create_customer" in aliases
        assert "stripe:create-customer" in aliases
        assert "stripe:Create-Customer" not in aliases

    def test_canonical_id_is_never_an_alias(self) -> None:
        assert "stripe:create-customer" not in alias_ids("stripe", "create_customer")

    def test_aliases_are_unique(self) -> None:
        aliases = alias_ids("paystack", "verify_transaction")
        assert len(aliases) == len(set(aliases))
