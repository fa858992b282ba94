"""
Tests for ledger and tag form validation.
"""

import pytest

from ledgerlight.models.ledger import Ledger, Record, Tag
from ledgerlight.validation import EntityFormValidator, FormValidationError


class TestFormatValidation:
    """Tests for stage 1 (format) checks."""

    def test_valid_ledger_form(self):
        result = EntityFormValidator().validate_ledger_form("Travel", "#34C759", "airplane")
        assert result.is_valid is True
        assert result.issues == []

    def test_blank_name(self):
        result = EntityFormValidator().validate_ledger_form("   ", "#34C759", "airplane")
        assert result.is_valid is False
        assert result.issues[0].issue_type == "missing"

    def test_tag_name_too_long(self):
        result = EntityFormValidator().validate_tag_form("x" * 31, "#34C759", "tag.fill")
        assert result.is_valid is False
        assert result.issues[0].issue_type == "too_long"

    def test_ledger_name_limit_is_fifty(self):
        assert EntityFormValidator().validate_ledger_form("x" * 50, "#34C759", "book.fill").is_valid

    def test_bad_colour_and_missing_icon(self):
        result = EntityFormValidator().validate_tag_form("Food", "34C759", "")
        assert result.error_count == 2
        assert {issue.field for issue in result.issues} == {"color_hex", "icon"}

    def test_unsupported_entity(self):
        with pytest.raises(TypeError):
            EntityFormValidator().validate(Record, "x", "#000000", "x")


class TestConsistencyValidation:
    """Tests for stage 2 (duplicate name) checks."""

    def test_duplicate_name_is_a_warning(self, store):
        store.insert(Tag(name="Food"))
        result = EntityFormValidator(store).validate_tag_form(" food ", "#34C759", "tag.fill")

        assert result.is_valid is True
        assert result.warnings == ["Another tag is already named 'food'"]

    def test_editing_does_not_clash_with_itself(self, store):
        ledger = Ledger(name="Daily")
        store.insert(ledger)
        result = EntityFormValidator(store).validate_ledger_form(
            "Daily", "#007AFF", "book.fill", exclude_id=ledger.id,
        )
        assert result.issues == []

    def test_ledger_and_tag_names_are_separate(self, store):
        store.insert(Ledger(name="Travel"))
        result = EntityFormValidator(store).validate_tag_form("Travel", "#007AFF", "airplane")
        assert result.issues == []


class TestFormValidationError:
    """Tests for the error raised by flows."""

    def test_message_lists_errors(self):
        result = EntityFormValidator().validate_tag_form("", "bad", "tag.fill")
        error = FormValidationError(result)
        assert "Name is required" in str(error)
        assert error.result is result
