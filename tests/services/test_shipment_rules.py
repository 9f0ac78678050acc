"""Tests for the shipment request rules engine."""

import copy

import pytest

from src.services.shipment_rules import (
    DEFAULT_TRACKING_LANGUAGE,
    OPERATION_RULES,
    ORDER_RULES,
    PRICING_RULES,
    StructuralError,
    normalize,
    normalize_language,
    normalize_tracking,
    prepare,
    validate,
)


def _envelope_request(**overrides) -> dict:
    request = {
        "carrier_id": 1,
        "service_id": 1,
        "billing_to": {"billing_address_id": 10},
        "address_from": {"address_from_id": 5},
        "address_to": {"address_to_id": 7},
        "content": {
            "envelopes_count": 1,
            "pallets_count": 0,
            "parcels_count": 0,
            "total_weight": 0.5,
        },
        "extra": {"parcel_content": "Documents"},
    }
    request.update(overrides)
    return request


def _parcel(seq: int, weight: float = 1.0) -> dict:
    return {
        "size": {"weight": weight, "width": 20, "height": 10, "length": 30},
        "sequence_no": seq,
    }


def _parcel_request(weights=(2.5, 3.5), total=6.0, sequences=None) -> dict:
    sequences = sequences or list(range(1, len(weights) + 1))
    return _envelope_request(content={
        "envelopes_count": 0,
        "pallets_count": 0,
        "parcels_count": len(weights),
        "total_weight": total,
        "parcels": [_parcel(s, w) for s, w in zip(sequences, weights)],
    })


def _codes(violations) -> set[str]:
    return {v.machine_code for v in violations}


def _check(raw: dict, rules=PRICING_RULES):
    return validate(normalize(raw), rules)


class TestNormalize:
    """Default filling without inventing business values."""

    def test_fills_missing_parcels_with_empty_list(self):
        request = normalize(_envelope_request())
        assert request.content.parcels == []

    def test_keeps_given_parcels(self):
        request = normalize(_parcel_request())
        assert [p.sequence_no for p in request.content.parcels] == [1, 2]

    def test_does_not_invent_total_weight(self):
        raw = _envelope_request()
        del raw["content"]["total_weight"]
        request = normalize(raw)
        assert request.content.total_weight is None

    def test_idempotent(self):
        once = normalize(_envelope_request())
        assert normalize(once) == once
        assert normalize(once.to_payload()) == once

    def test_does_not_mutate_input(self):
        raw = _envelope_request()
        snapshot = copy.deepcopy(raw)
        normalize(raw)
        assert raw == snapshot

    def test_non_mapping_is_structural_error(self):
        with pytest.raises(StructuralError):
            normalize(["not", "a", "request"])

    def test_wrong_type_reports_field_path(self):
        raw = _parcel_request()
        raw["content"]["parcels"][0]["size"]["weight"] = "heavy"
        with pytest.raises(StructuralError) as exc_info:
            normalize(raw)
        assert exc_info.value.field_path == "content.parcels[0].size.weight"

    def test_unknown_field_is_structural_error(self):
        with pytest.raises(StructuralError) as exc_info:
            normalize(_envelope_request(surprise=True))
        assert exc_info.value.field_path == "surprise"

    def test_payload_omits_absent_fields(self):
        payload = normalize(_envelope_request()).to_payload()
        assert payload["content"]["parcels"] == []
        assert "insurance_amount" not in payload["extra"]


class TestNormalizeTracking:

    def test_language_defaults_to_romanian(self):
        assert normalize_tracking({"order_ids": [1]}).language == DEFAULT_TRACKING_LANGUAGE == "ro"

    def test_blank_language_defaults(self):
        assert normalize_language("  ") == "ro"

    def test_given_language_kept(self):
        assert normalize_tracking({"awb_list": ["X1"], "carrier_id": 1, "language": "en"}).language == "en"

    def test_language_lower_cased(self):
        assert normalize_tracking({"order_ids": [1], "language": " EN "}).language == "en"


class TestEndToEnd:

    def test_envelope_with_address_refs_is_valid(self):
        raw = _envelope_request()
        request, violations = prepare(raw, PRICING_RULES)
        assert violations == []
        assert request.to_payload() == {**raw, "content": {**raw["content"], "parcels": []}}

    def test_same_request_valid_for_order(self):
        _, violations = prepare(_envelope_request(), ORDER_RULES)
        assert violations == []

    def test_operation_rules_keyed_by_name(self):
        assert OPERATION_RULES["pricing"] is PRICING_RULES
        assert OPERATION_RULES["order"] is ORDER_RULES


class TestIdentification:

    def test_missing_carrier_and_service(self):
        raw = _envelope_request()
        del raw["carrier_id"]
        raw["service_id"] = 0
        assert {"MISSING_CARRIER_ID", "MISSING_SERVICE_ID"} <= _codes(_check(raw))

    def test_missing_billing(self):
        raw = _envelope_request()
        del raw["billing_to"]
        violations = _check(raw)
        assert "MISSING_BILLING_ADDRESS" in _codes(violations)
        assert violations[0].field_path == "billing_to.billing_address_id"

    def test_order_rejects_unknown_carrier(self):
        violations = _check(_envelope_request(carrier_id=99), ORDER_RULES)
        assert _codes(violations) == {"UNSUPPORTED_CARRIER"}

    def test_pricing_accepts_any_positive_carrier(self):
        assert _check(_envelope_request(carrier_id=99)) == []

    def test_order_rejects_service_5(self):
        violations = _check(_envelope_request(service_id=5), ORDER_RULES)
        assert "UNSUPPORTED_SERVICE" in _codes(violations)

    def test_unknown_service_skips_fixed_location_check(self):
        violations = _check(_envelope_request(service_id=9))
        assert _codes(violations) == {"UNSUPPORTED_SERVICE"}


class TestContent:

    @pytest.mark.parametrize(
        "counts",
        [
            {"envelopes_count": 0, "pallets_count": 0, "parcels_count": 0},
            {"envelopes_count": 1, "pallets_count": 1, "parcels_count": 0},
            {"envelopes_count": 1, "pallets_count": 1, "parcels_count": 1},
        ],
    )
    def test_exclusivity(self, counts):
        raw = _envelope_request(content={**counts, "total_weight": 1.0})
        violations = _check(raw)
        assert "CONTENT_NOT_EXCLUSIVE" in _codes(violations)
        assert all(v.error_code in ("E-2002", "E-2003") for v in violations)

    def test_missing_content(self):
        raw = _envelope_request()
        del raw["content"]
        assert _codes(_check(raw)) == {"MISSING_CONTENT"}

    def test_at_most_one_envelope(self):
        raw = _envelope_request()
        raw["content"]["envelopes_count"] = 2
        assert _codes(_check(raw)) == {"TOO_MANY_ENVELOPES"}

    def test_pallets_allowed_for_pricing(self):
        raw = _envelope_request(service_id=5, content={
            "envelopes_count": 0, "pallets_count": 1, "parcels_count": 0, "total_weight": 120,
        })
        assert _check(raw, PRICING_RULES) == []

    def test_pallets_rejected_for_order(self):
        raw = _envelope_request(content={
            "envelopes_count": 0, "pallets_count": 1, "parcels_count": 0, "total_weight": 120,
        })
        assert _codes(_check(raw, ORDER_RULES)) == {"CONTENT_KIND_NOT_ALLOWED"}

    def test_total_weight_required(self):
        raw = _envelope_request()
        raw["content"]["total_weight"] = 0
        assert _codes(_check(raw)) == {"INVALID_TOTAL_WEIGHT"}


class TestParcels:

    def test_valid_parcels(self):
        assert _check(_parcel_request()) == []

    def test_sequence_gap_rejected(self):
        violations = _check(_parcel_request(weights=(1.0, 1.0), total=2.0, sequences=[1, 3]))
        assert _codes(violations) == {"PARCEL_SEQUENCE_GAP"}
        assert violations[0].field_path == "content.parcels[1].sequence_no"

    def test_sequence_must_start_at_one(self):
        violations = _check(_parcel_request(weights=(1.0, 1.0), total=2.0, sequences=[2, 3]))
        assert len(violations) == 2

    def test_weight_sum_within_tolerance_accepted(self):
        assert _check(_parcel_request(weights=(2.5, 3.5), total=6.005)) == []

    def test_weight_sum_mismatch_rejected(self):
        violations = _check(_parcel_request(weights=(2.5, 3.5), total=6.2))
        assert _codes(violations) == {"WEIGHT_SUM_MISMATCH"}

    def test_count_mismatch(self):
        raw = _parcel_request()
        raw["content"]["parcels_count"] = 3
        raw["content"]["total_weight"] = 6.0
        assert "PARCEL_COUNT_MISMATCH" in _codes(_check(raw))

    def test_missing_parcel_array(self):
        raw = _parcel_request()
        del raw["content"]["parcels"]
        assert _codes(_check(raw)) == {"MISSING_PARCELS"}

    def test_parcels_without_count_rejected(self):
        raw = _envelope_request()
        raw["content"]["parcels"] = [_parcel(1, 0.5)]
        assert _codes(_check(raw)) == {"UNEXPECTED_PARCELS"}

    def test_parcel_bounds(self):
        raw = _parcel_request(weights=(40.0,), total=40.0)
        raw["content"]["parcels"][0]["size"]["width"] = 150
        assert _codes(_check(raw)) == {
            "PARCEL_WEIGHT_OUT_OF_RANGE",
            "PARCEL_DIMENSION_OUT_OF_RANGE",
        }

    def test_order_caps_parcel_count(self):
        weights = tuple(1.0 for _ in range(11))
        raw = _parcel_request(weights=weights, total=11.0)
        assert _check(raw, PRICING_RULES) == []
        assert _codes(_check(raw, ORDER_RULES)) == {"TOO_MANY_PARCELS"}


class TestExtraServices:

    def test_parcel_content_required(self):
        raw = _envelope_request(extra={"parcel_content": "  "})
        assert _codes(_check(raw)) == {"MISSING_PARCEL_CONTENT"}

    def test_missing_extra(self):
        raw = _envelope_request()
        del raw["extra"]
        assert _codes(_check(raw)) == {"MISSING_PARCEL_CONTENT"}

    def test_parcel_content_length(self):
        raw = _envelope_request(extra={"parcel_content": "x" * 101})
        assert _codes(_check(raw)) == {"PARCEL_CONTENT_TOO_LONG"}

    def test_insurance_requires_currency(self):
        raw = _envelope_request(extra={"parcel_content": "Docs", "insurance_amount": 50})
        violations = _check(raw)
        assert _codes(violations) == {"MISSING_INSURANCE_CURRENCY"}
        assert violations[0].error_code == "E-2005"

    def test_insurance_with_currency_accepted(self):
        raw = _envelope_request(extra={
            "parcel_content": "Docs",
            "insurance_amount": 50,
            "insurance_amount_currency": "RON",
        })
        assert _check(raw) == []

    def test_insurance_currency_format(self):
        raw = _envelope_request(extra={
            "parcel_content": "Docs",
            "insurance_amount": 50,
            "insurance_amount_currency": "ron",
        })
        assert _codes(_check(raw)) == {"INVALID_CURRENCY"}

    def test_order_caps_insurance(self):
        raw = _envelope_request(extra={
            "parcel_content": "Docs",
            "insurance_amount": 20000,
            "insurance_amount_currency": "RON",
        })
        assert _check(raw, PRICING_RULES) == []
        assert _codes(_check(raw, ORDER_RULES)) == {"INSURANCE_TOO_HIGH"}

    def test_repayment_requires_iban(self):
        raw = _envelope_request(extra={
            "parcel_content": "Docs",
            "bank_repayment_amount": 100,
            "bank_repayment_currency": "RON",
        })
        violations = _check(raw)
        assert _codes(violations) == {"MISSING_BANK_IBAN"}
        assert violations[0].error_code == "E-2006"

    def test_repayment_with_currency_and_iban_accepted(self):
        raw = _envelope_request(extra={
            "parcel_content": "Docs",
            "bank_repayment_amount": 100,
            "bank_repayment_currency": "RON",
            "bank_iban": "RO49AAAA1B31007593840000",
        })
        assert _check(raw) == []

    def test_repayment_missing_both(self):
        raw = _envelope_request(extra={"parcel_content": "Docs", "bank_repayment_amount": 100})
        assert _codes(_check(raw)) == {"MISSING_REPAYMENT_CURRENCY", "MISSING_BANK_IBAN"}

    def test_order_caps_repayment(self):
        raw = _envelope_request(extra={
            "parcel_content": "Docs",
            "bank_repayment_amount": 8000,
            "bank_repayment_currency": "RON",
            "bank_iban": "RO49AAAA1B31007593840000",
        })
        assert _codes(_check(raw, ORDER_RULES)) == {"REPAYMENT_TOO_HIGH"}

    def test_bank_holder_length(self):
        raw = _envelope_request(extra={"parcel_content": "Docs", "bank_holder": "Ion"})
        assert _codes(_check(raw)) == {"INVALID_BANK_HOLDER"}

    def test_iban_length(self):
        raw = _envelope_request(extra={"parcel_content": "Docs", "bank_iban": "RO49"})
        assert _codes(_check(raw)) == {"INVALID_IBAN"}


class TestAddresses:

    FULL_ADDRESS = {
        "contact": "Ana Pop",
        "phone": "0722000000",
        "email": "ana@example.com",
        "country_code": "RO",
        "locality_id": 13815,
        "street_name": "Strada Lunga",
        "street_number": "12",
    }

    def test_full_address_accepted(self):
        raw = _envelope_request(address_to=dict(self.FULL_ADDRESS))
        assert _check(raw) == []

    def test_locality_by_name_needs_county(self):
        address = {k: v for k, v in self.FULL_ADDRESS.items() if k != "locality_id"}
        address["locality_name"] = "Cluj-Napoca"
        violations = _check(_envelope_request(address_to=address))
        assert _codes(violations) == {"INCOMPLETE_ADDRESS"}

        address["county_name"] = "Cluj"
        assert _check(_envelope_request(address_to=address)) == []

    def test_postal_code_resolves_locality(self):
        address = {k: v for k, v in self.FULL_ADDRESS.items() if k != "locality_id"}
        address["postal_code"] = "400001"
        assert _check(_envelope_request(address_to=address)) == []

    def test_missing_contact_fields_listed(self):
        violations = _check(_envelope_request(address_from={"country_code": "RO"}))
        assert len(violations) == 1
        message = violations[0].message
        for name in ("contact", "phone", "email", "street_name", "street_number"):
            assert name in message
        assert violations[0].field_path == "address_from"

    def test_missing_address(self):
        raw = _envelope_request()
        del raw["address_to"]
        assert _codes(_check(raw)) == {"MISSING_ADDRESS"}


class TestFixedLocations:

    def test_service_2_requires_delivery_locker(self):
        violations = _check(_envelope_request(service_id=2))
        assert _codes(violations) == {"MISSING_FIXED_LOCATION"}
        assert violations[0].field_path == "address_to.fixed_location_id"

    def test_service_2_with_delivery_locker_accepted(self):
        raw = _envelope_request(service_id=2, address_to={"address_to_id": 7, "fixed_location_id": 321})
        assert _check(raw) == []

    def test_service_3_requires_pickup_locker(self):
        violations = _check(_envelope_request(service_id=3))
        assert violations[0].field_path == "address_from.fixed_location_id"

    def test_service_4_requires_both(self):
        violations = _check(_envelope_request(service_id=4))
        assert len(violations) == 2

    def test_locker_address_needs_no_street(self):
        address = {
            "contact": "Ana Pop",
            "phone": "0722000000",
            "email": "ana@example.com",
            "country_code": "RO",
            "locality_id": 13815,
            "fixed_location_id": 321,
        }
        assert _check(_envelope_request(service_id=2, address_to=address)) == []

    @pytest.mark.parametrize("service_id", [1, 5])
    def test_locker_rejected_where_not_used(self, service_id):
        raw = _envelope_request(
            service_id=service_id,
            address_to={"address_to_id": 7, "fixed_location_id": 321},
        )
        assert _codes(_check(raw)) == {"FIXED_LOCATION_NOT_ALLOWED"}

    def test_non_positive_locker_id(self):
        raw = _envelope_request(service_id=2, address_to={"address_to_id": 7, "fixed_location_id": 0})
        assert _codes(_check(raw)) == {"INVALID_FIXED_LOCATION"}


class TestCollectsAllViolations:

    def test_reports_every_problem_in_one_pass(self):
        raw = {
            "carrier_id": 0,
            "service_id": 2,
            "content": {"envelopes_count": 0, "pallets_count": 0, "parcels_count": 0},
            "extra": {"insurance_amount": 10},
        }
        codes = _codes(_check(raw))
        assert {
            "MISSING_CARRIER_ID",
            "MISSING_BILLING_ADDRESS",
            "CONTENT_NOT_EXCLUSIVE",
            "INVALID_TOTAL_WEIGHT",
            "MISSING_PARCEL_CONTENT",
            "MISSING_INSURANCE_CURRENCY",
            "MISSING_ADDRESS",
            "MISSING_FIXED_LOCATION",
        } <= codes

    def test_violation_to_dict(self):
        violation = _check(_envelope_request(service_id=2))[0]
        assert violation.to_dict() == {
            "field": "address_to.fixed_location_id",
            "code": "MISSING_FIXED_LOCATION",
            "message": violation.message,
            "error_code": "E-2008",
        }


class TestNonFiniteNumbers:
    """NaN and infinity never reach the numeric rules."""

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), "NaN", "-Infinity"])
    def test_total_weight(self, value):
        raw = _parcel_request()
        raw["content"]["total_weight"] = value
        with pytest.raises(StructuralError) as exc_info:
            normalize(raw)
        assert exc_info.value.field_path == "content.total_weight"

    def test_parcel_weight(self):
        raw = _parcel_request()
        raw["content"]["parcels"][0]["size"]["weight"] = float("nan")
        with pytest.raises(StructuralError):
            normalize(raw)

    @pytest.mark.parametrize("name", ["insurance_amount", "bank_repayment_amount"])
    @pytest.mark.parametrize("value", [float("nan"), float("inf")])
    def test_extra_amounts(self, name, value):
        raw = _envelope_request(extra={"parcel_content": "Books", name: value})
        with pytest.raises(StructuralError) as exc_info:
            prepare(raw, ORDER_RULES)
        assert exc_info.value.field_path == f"extra.{name}"
