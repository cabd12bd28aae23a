"""
Normalization tests – drug names, species synonyms, cache keys and
openFDA query building.
"""

from datetime import date, datetime

import pytest

from petcheck.utils.normalization import (
    build_open_fda_date_range,
    build_open_fda_search_query,
    create_cache_key,
    escape_open_fda_query,
    format_date_for_open_fda,
    normalize_drug_name,
    normalize_species_name,
    parse_date,
    slugify,
)


# ════════════════════════════════════════════
# DRUG NAMES
# ════════════════════════════════════════════

class TestNormalizeDrugName:
    @pytest.mark.parametrize("raw,expected", [
        ("Rimadyl", "rimadyl"),
        ("  RIMADYL  ", "rimadyl"),
        ("Rimadyl®", "rimadyl"),
        ("Apoquel 16mg", "apoquel"),
        ("Metacam 1.5 mg/ml", "metacam"),
        ("Carprofen (Rimadyl)", "carprofen"),
        ("Clavamox Tablets", "clavamox"),
        ("Heartgard   Plus", "heartgard plus"),
        ("Apoquel 16mg Tablets®", "apoquel"),
    ])
    def test_canonical_forms(self, raw, expected):
        assert normalize_drug_name(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_empty_input(self, raw):
        assert normalize_drug_name(raw) == ""

    @pytest.mark.parametrize("raw", [
        "Apoquel 16mg Tablets®",
        "Rimadyl Chewable Tablets",
        "Metacam (meloxicam) 1.5 mg/ml Oral Suspension",
        "Heartgard™ Plus",
    ])
    def test_idempotent(self, raw):
        once = normalize_drug_name(raw)
        assert normalize_drug_name(once) == once

    def test_numbers_without_units_are_kept(self):
        assert normalize_drug_name("Vitamin B12") == "vitamin b12"


# ════════════════════════════════════════════
# SPECIES
# ════════════════════════════════════════════

class TestNormalizeSpeciesName:
    @pytest.mark.parametrize("raw,expected", [
        ("Dogs", "dog"),
        ("cows", "cattle"),
        ("Guinea Pigs", "rodent"),
        ("Poultry", "bird"),
        ("canine", "canine"),
        ("Axolotl", "axolotl"),
    ])
    def test_synonyms(self, raw, expected):
        assert normalize_species_name(raw) == expected

    def test_empty(self):
        assert normalize_species_name(None) == ""
        assert normalize_species_name("") == ""


# ════════════════════════════════════════════
# CACHE KEYS
# ════════════════════════════════════════════

class TestCreateCacheKey:
    def test_key_order_does_not_matter(self):
        a = create_cache_key("events", {"species": "dog", "limit": 20})
        b = create_cache_key("events", {"limit": 20, "species": "dog"})
        assert a == b == "events:limit:20|species:dog"

    def test_list_order_does_not_matter(self):
        a = create_cache_key("x", {"drugs": ["b", "a"]})
        b = create_cache_key("x", {"drugs": ["a", "b"]})
        assert a == b == "x:drugs:a,b"

    def test_skips_empty_values(self):
        assert create_cache_key("x", {"a": None, "b": "", "c": 0}) == "x:c:0"

    def test_strings_lowercased(self):
        assert create_cache_key("x", {"q": "  Rimadyl "}) == "x:q:rimadyl"

    def test_booleans(self):
        assert create_cache_key("x", {"flag": True}) == "x:flag:true"

    @pytest.mark.parametrize("blank", ["", "   ", [], ()])
    def test_blank_values_skipped(self, blank):
        assert create_cache_key("x", {"q": blank, "n": 1}) == "x:n:1"

    def test_case_and_whitespace_insensitive(self):
        a = create_cache_key("recalls", {"q": "  Carprofen ", "status": ["Ongoing"], "limit": 20})
        b = create_cache_key("recalls", {"limit": 20, "status": ["ongoing"], "q": "CARPROFEN"})
        assert a == b


# ════════════════════════════════════════════
# DATES & SLUGS
# ════════════════════════════════════════════

class TestDates:
    def test_parse_open_fda_format(self):
        assert parse_date("20240315") == datetime(2024, 3, 15)

    def test_parse_iso(self):
        parsed = parse_date("2024-03-15T10:00:00Z")
        assert parsed.year == 2024 and parsed.hour == 10

    @pytest.mark.parametrize("raw", [None, "", "not-a-date", "20241345"])
    def test_parse_invalid(self, raw):
        assert parse_date(raw) is None

    def test_format(self):
        assert format_date_for_open_fda(date(2024, 1, 5)) == "20240105"


class TestSlugify:
    def test_basic(self):
        assert slugify("  Heartgard Plus (Ivermectin)! ") == "heartgard-plus-ivermectin"

    def test_empty(self):
        assert slugify(None) == ""

    @pytest.mark.parametrize("text", ["Heartgard Plus (Ivermectin)", "  --Revolution_Plus--  ", "Bute & Co."])
    def test_idempotent(self, text):
        once = slugify(text)
        assert slugify(once) == once


# ════════════════════════════════════════════
# OPENFDA QUERIES
# ════════════════════════════════════════════

class TestOpenFdaQuery:
    def test_escape_reserved(self):
        assert escape_open_fda_query('a+b "c"') == 'a\\+b \\"c\\"'

    def test_escape_empty(self):
        assert escape_open_fda_query(None) == ""

    @pytest.mark.parametrize("char", list('+-=&|><!(){}[]^"~*?:\\/'))
    def test_every_reserved_character_escaped(self, char):
        assert escape_open_fda_query(f"a{char}b") == f"a\\{char}b"

    @pytest.mark.parametrize("clean", ["Rimadyl", "carprofen 100 mg", "K9 Advantage II"])
    def test_clean_text_unchanged(self, clean):
        assert escape_open_fda_query(clean) == clean

    def test_search_query_scalar_and_list(self):
        query = build_open_fda_search_query({
            "animal.species": ["Dog", "Canine"],
            "drug.brand_name": "Rimadyl",
            "reaction.veddra_term_name": None,
        })
        assert query == 'animal.species:(Dog+OR+Canine)+AND+drug.brand_name:"Rimadyl"'

    def test_search_query_empty(self):
        assert build_open_fda_search_query({"a": None, "b": []}) == ""

    def test_date_range(self):
        assert build_open_fda_date_range("receivedate", "20200101", "20201231") == \
            "receivedate:[20200101+TO+20201231]"

    def test_date_range_open_start(self):
        clause = build_open_fda_date_range("receivedate", None, "20201231")
        assert clause == "receivedate:[19000101+TO+20201231]"

    def test_date_range_none(self):
        assert build_open_fda_date_range("receivedate") == ""
