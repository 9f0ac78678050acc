"""Tests for Europarcel API error translation to E-codes."""

import pytest

from src.errors.api_translation import extract_field_errors, translate_api_error


class TestTranslateApiError:

    @pytest.mark.parametrize(
        "status,expected",
        [
            (0, "E-3006"),
            (400, "E-3003"),
            (401, "E-5001"),
            (403, "E-5002"),
            (404, "E-3004"),
            (422, "E-3003"),
            (429, "E-3002"),
            (500, "E-3005"),
            (503, "E-3001"),
            (599, "E-3001"),
        ],
    )
    def test_status_mapping(self, status, expected):
        code, _, _ = translate_api_error(status, None, "Something happened")
        assert code == expected

    def test_error_kind_wins_over_status(self):
        code, _, _ = translate_api_error(400, "INSUFFICIENT_FUNDS", "Cannot place order")
        assert code == "E-3007"

    def test_error_kind_is_case_insensitive(self):
        code, _, _ = translate_api_error(None, "network_error", None)
        assert code == "E-3006"

    def test_message_pattern_before_status(self):
        code, _, _ = translate_api_error(400, None, "Insufficient wallet balance")
        assert code == "E-3007"

    def test_api_message_included(self):
        code, message, remediation = translate_api_error(
            422, "VALIDATION_ERROR", "The given data was invalid."
        )
        assert code == "E-3003"
        assert "The given data was invalid." in message
        assert remediation

    def test_unmapped_falls_back_to_unknown(self):
        code, message, _ = translate_api_error(418, None, None)
        assert code == "E-3005"
        assert "HTTP 418" in message


class TestExtractFieldErrors:

    def test_top_level_errors(self):
        body = {
            "message": "The given data was invalid.",
            "errors": {"content.total_weight": ["must be positive"]},
        }
        assert extract_field_errors(body) == {"content.total_weight": ["must be positive"]}

    def test_nested_under_details(self):
        body = {"details": {"errors": {"extra.bank_iban": "invalid"}}}
        assert extract_field_errors(body) == {"extra.bank_iban": ["invalid"]}

    @pytest.mark.parametrize("body", [None, [], {}, {"errors": "bad"}])
    def test_absent_or_malformed(self, body):
        assert extract_field_errors(body) == {}
