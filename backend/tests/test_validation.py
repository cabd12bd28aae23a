"""
Validation tests – vocabulary predicates, pagination, and interaction
request parsing.
"""

import math

import pytest

from petcheck.models.vocabulary import (
    Severity,
    SpeciesCategory,
    get_species_by_id,
    get_species_by_name,
    severity_color,
    severity_label,
)
from petcheck.utils.api import ERROR_CODES, ValidationError
from petcheck.utils.validation import (
    is_valid_age,
    is_valid_drug_class,
    is_valid_email,
    is_valid_iso_date,
    is_valid_open_fda_date,
    is_valid_recall_class,
    is_valid_route,
    is_valid_severity,
    is_valid_species,
    is_valid_weight,
    parse_interaction_request,
    parse_severity,
    parse_species,
    resolve_species,
    sanitize_string,
    validate_date_range,
    validate_pagination,
)


# ════════════════════════════════════════════
# PREDICATES
# ════════════════════════════════════════════

class TestVocabularyPredicates:
    def test_species(self):
        assert is_valid_species("canine")
        assert not is_valid_species("Dog")
        assert not is_valid_species(None)

    def test_drug_class_and_route(self):
        assert is_valid_drug_class("nsaid")
        assert not is_valid_drug_class("NSAID")
        assert is_valid_route("topical")
        assert not is_valid_route("intranasal")

    def test_severity_and_recall_class(self):
        assert is_valid_severity("contraindicated")
        assert not is_valid_severity("severe")
        assert is_valid_recall_class("II")
        assert not is_valid_recall_class("IV")

    @pytest.mark.parametrize("value", [None, 3, ["nsaid"]])
    def test_non_strings_rejected(self, value):
        assert not is_valid_drug_class(value)

    def test_email(self):
        assert is_valid_email("vet@clinic.org")
        assert not is_valid_email("vet@clinic")
        assert not is_valid_email("vet @clinic.org")


class TestDatePredicates:
    @pytest.mark.parametrize("value", ["20240101", "19000101", "21001231", "20240231"])
    def test_valid_open_fda_dates(self, value):
        assert is_valid_open_fda_date(value)

    @pytest.mark.parametrize("value", ["2024-01-01", "18991231", "21010101", "20241301", "20240100",
                                       "20240132", "2024011", None, 20240101])
    def test_invalid_open_fda_dates(self, value):
        assert not is_valid_open_fda_date(value)

    def test_iso(self):
        assert is_valid_iso_date("2024-03-15")
        assert is_valid_iso_date("2024-03-15T10:00:00Z")
        assert not is_valid_iso_date("15/03/2024")
        assert not is_valid_iso_date("")


class TestWeightAndAge:
    def test_weight(self):
        assert is_valid_weight({"value": 12.5, "unit": "kg"})
        assert not is_valid_weight({"value": 0, "unit": "kg"})
        assert not is_valid_weight({"value": 10, "unit": "stone"})
        assert not is_valid_weight({"value": True, "unit": "lb"})
        assert not is_valid_weight({"value": math.nan, "unit": "lb"})
        assert not is_valid_weight("10kg")

    def test_age(self):
        assert is_valid_age({"value": 0, "unit": "week"})
        assert not is_valid_age({"value": -1, "unit": "year"})
        assert not is_valid_age({"value": 3, "unit": "decade"})


class TestSanitize:
    def test_escapes_html(self):
        assert sanitize_string("  <b>\"Bute\" & 'Co'</b> ") == \
            "&lt;b&gt;&quot;Bute&quot; & &#039;Co&#039;&lt;/b&gt;"


class TestVocabularyHelpers:
    def test_severity_order(self):
        assert Severity.NONE.rank < Severity.UNKNOWN.rank < Severity.MINOR.rank
        assert Severity.MAJOR.rank < Severity.CONTRAINDICATED.rank

    def test_severity_presentation(self):
        assert severity_label("major") == "Major Interaction"
        assert severity_color(Severity.CONTRAINDICATED) == "#DC2626"

    def test_invalid_enum_value_raises(self):
        with pytest.raises(ValueError):
            Severity("severe")

    def test_species_lookups(self):
        assert get_species_by_id("equine").name == "Horse"
        assert get_species_by_id("dragon") is None
        assert get_species_by_name("pony").id is SpeciesCategory.EQUINE
        assert get_species_by_name("  ") is None


# ════════════════════════════════════════════
# PAGINATION & DATE RANGES
# ════════════════════════════════════════════

class TestPagination:
    def test_defaults(self):
        assert validate_pagination() == {"limit": 20, "offset": 0}

    def test_clamps_limit(self):
        assert validate_pagination(500, 10) == {"limit": 100, "offset": 10}

    @pytest.mark.parametrize("limit,offset", [(0, -1), (-5, math.nan), ("10", "5"), (True, math.inf)])
    def test_invalid_values_fall_back(self, limit, offset):
        assert validate_pagination(limit, offset) == {"limit": 20, "offset": 0}


class TestDateRange:
    def test_valid_range(self):
        validate_date_range("20200101", "20201231")
        validate_date_range(None, "20201231")
        validate_date_range(None, None)

    def test_malformed(self):
        with pytest.raises(ValidationError) as exc:
            validate_date_range("2020-01-01", None)
        assert exc.value.code == ERROR_CODES["INVALID_DATE_RANGE"]
        assert exc.value.errors[0]["field"] == "dateFrom"

    def test_reversed(self):
        with pytest.raises(ValidationError) as exc:
            validate_date_range("20210101", "20200101")
        assert exc.value.status_code == 400


# ════════════════════════════════════════════
# PARSE-OR-REJECT
# ════════════════════════════════════════════

class TestSpeciesParsing:
    @pytest.mark.parametrize("raw,expected", [
        ("canine", SpeciesCategory.CANINE),
        ("Dog", SpeciesCategory.CANINE),
        ("cats", SpeciesCategory.FELINE),
        ("Cows", SpeciesCategory.BOVINE),
        ("bunny", SpeciesCategory.LAGOMORPH),
        ("Guinea Pig", SpeciesCategory.RODENT),
    ])
    def test_resolves_synonyms(self, raw, expected):
        assert resolve_species(raw) == expected

    def test_unknown_species(self):
        assert resolve_species("dragon") is None
        with pytest.raises(ValidationError) as exc:
            parse_species("dragon")
        assert exc.value.code == ERROR_CODES["INVALID_SPECIES"]

    def test_parse_severity(self):
        assert parse_severity("major") is Severity.MAJOR
        with pytest.raises(ValidationError):
            parse_severity("catastrophic")


class TestInteractionRequestParsing:
    def test_full_request(self):
        req = parse_interaction_request({
            "drugs": [{"name": " Rimadyl ", "dose": "75mg"}, {"name": "Prednisone", "drugId": "x-1"}],
            "species": "Dog",
            "conditions": ["Kidney Disease", "  "],
            "weight": {"value": 30, "unit": "kg"},
            "age": {"value": 9, "unit": "year"},
        })
        assert [d.name for d in req.drugs] == ["Rimadyl", "Prednisone"]
        assert req.drugs[0].dose == "75mg"
        assert req.drugs[1].drug_id == "x-1"
        assert req.species is SpeciesCategory.CANINE
        assert req.conditions == ("Kidney Disease",)
        assert req.weight.unit == "kg"
        assert req.age.value == 9

    def test_minimal_request(self):
        req = parse_interaction_request({"drugs": [{"name": "Apoquel"}]})
        assert req.species is None
        assert req.conditions == ()
        assert req.weight is None

    @pytest.mark.parametrize("payload", [None, [], "drugs"])
    def test_body_must_be_object(self, payload):
        with pytest.raises(ValidationError):
            parse_interaction_request(payload)

    def test_missing_drugs(self):
        with pytest.raises(ValidationError) as exc:
            parse_interaction_request({"drugs": []})
        assert exc.value.errors[0]["field"] == "drugs"
        assert exc.value.code == ERROR_CODES["VALIDATION_ERROR"]

    def test_collects_every_error(self):
        with pytest.raises(ValidationError) as exc:
            parse_interaction_request({
                "drugs": [{"name": ""}, "Rimadyl"],
                "conditions": "kidney disease",
                "weight": {"value": -2, "unit": "kg"},
            })
        fields = {e["field"] for e in exc.value.errors}
        assert fields == {"drugs[0].name", "drugs[1]", "conditions", "weight"}

    def test_species_only_error_uses_species_code(self):
        with pytest.raises(ValidationError) as exc:
            parse_interaction_request({"drugs": [{"name": "Rimadyl"}], "species": "dragon"})
        assert exc.value.code == ERROR_CODES["INVALID_SPECIES"]
        assert exc.value.details == {"errors": exc.value.errors}
