"""
Interaction engine tests – fan-out, severity ranking, summaries, partial
failures and result caching.
"""

from types import SimpleNamespace

import pytest

from conftest import FailingSource, RecordingSource
from petcheck.models.interaction import (
    ConditionInteraction,
    DrugInput,
    DrugInteraction,
    DrugReference,
    InteractionCheckRequest,
    SpeciesInteraction,
)
from petcheck.models.vocabulary import ConcernType, Severity, SpeciesCategory
from petcheck.services.cache_service import InMemoryCacheStore
from petcheck.services.catalog.green_book import DrugCatalog
from petcheck.services.interactions.curated_source import CuratedInteractionSource
from petcheck.services.interactions.engine import InteractionEngine, rank_by_severity, summarize


def _request(*names, species=None, conditions=()):
    return InteractionCheckRequest(
        drugs=tuple(DrugInput(name=n) for n in names),
        species=species,
        conditions=tuple(conditions),
    )


def _pair(a, b, severity, id="dd-1"):
    return DrugInteraction(id=id, drug1=DrugReference(name=a), drug2=DrugReference(name=b), severity=severity)


def _species_concern(drug, species, severity, id="sp-1"):
    return SpeciesInteraction(id=id, drug_name=drug, species=species, severity=severity,
                              type=ConcernType.CAUTION, description="species concern")


def _condition_concern(drug, condition, severity, id="cond-1"):
    return ConditionInteraction(id=id, drug_name=drug, condition=condition, severity=severity,
                                type=ConcernType.CAUTION, description="condition concern")


@pytest.fixture(scope="module")
def curated():
    return CuratedInteractionSource(DrugCatalog())


# ════════════════════════════════════════════
# RANKING & SUMMARY
# ════════════════════════════════════════════

class TestRanking:
    def test_highest_severity_first(self):
        records = [SimpleNamespace(severity=s) for s in
                   (Severity.MINOR, Severity.CONTRAINDICATED, Severity.UNKNOWN, Severity.MODERATE)]
        ranked = [r.severity for r in rank_by_severity(records)]
        assert ranked == [Severity.CONTRAINDICATED, Severity.MODERATE, Severity.MINOR, Severity.UNKNOWN]

    def test_ties_keep_order(self):
        a, b = SimpleNamespace(severity=Severity.MAJOR, n=1), SimpleNamespace(severity=Severity.MAJOR, n=2)
        assert [r.n for r in rank_by_severity([a, b])] == [1, 2]


class TestSummary:
    def test_empty(self):
        summary = summarize([], [])
        assert summary.total_interactions == 0
        assert summary.highest_severity is Severity.NONE

    def test_counts(self):
        group = [SimpleNamespace(severity=s) for s in
                 (Severity.CONTRAINDICATED, Severity.MAJOR, Severity.MODERATE, Severity.MINOR, Severity.UNKNOWN)]
        summary = summarize(group[:2], group[2:])
        assert summary.total_interactions == 5
        assert summary.major_count == 2
        assert summary.moderate_count == 1
        assert summary.minor_count == 1
        assert summary.unknown_count == 1
        assert summary.highest_severity is Severity.CONTRAINDICATED


# ════════════════════════════════════════════
# CHECKS AGAINST CURATED RULES
# ════════════════════════════════════════════

class TestCheckInteractions:
    def test_all_categories(self, curated):
        engine = InteractionEngine(curated)
        result = engine.check_interactions(
            _request("Rimadyl", "Prednisone", species=SpeciesCategory.FELINE, conditions=["kidney disease"])
        )
        assert len(result.drug_interactions) == 1
        assert len(result.species_interactions) == 1
        assert len(result.condition_interactions) == 1
        assert result.summary.total_interactions == 3
        assert result.summary.highest_severity is Severity.MAJOR
        assert result.checked_drugs == ("Rimadyl", "Prednisone")
        assert result.disclaimer

    def test_single_drug_without_context_does_no_lookups(self):
        source = RecordingSource()
        result = InteractionEngine(source).check_interactions(_request("Apoquel"))
        assert source.calls == []
        assert result.summary.total_interactions == 0
        assert result.summary.highest_severity is Severity.NONE

    def test_every_pair_checked_once(self):
        source = RecordingSource()
        InteractionEngine(source).check_interactions(_request("Rimadyl", "Prednisone", "Gabapentin"))
        pairs = [frozenset(c[1:]) for c in source.calls if c[0] == "drug_drug"]
        assert len(pairs) == 3
        assert len(set(pairs)) == 3

    def test_duplicate_names_collapse(self):
        source = RecordingSource()
        result = InteractionEngine(source).check_interactions(_request("Rimadyl", "RIMADYL 100mg"))
        assert not [c for c in source.calls if c[0] == "drug_drug"]
        assert result.checked_drugs == ("Rimadyl", "RIMADYL 100mg")

    def test_lookups_use_normalized_names(self):
        source = RecordingSource()
        InteractionEngine(source).check_interactions(
            _request("Metacam 1.5 mg/ml", species=SpeciesCategory.FELINE)
        )
        assert source.calls == [("species", "metacam", SpeciesCategory.FELINE)]

    def test_species_synonym_accepted(self):
        source = RecordingSource()
        InteractionEngine(source).check_interactions(_request("Metacam", species="cats"))
        assert source.calls == [("species", "metacam", SpeciesCategory.FELINE)]

    def test_unrecognized_species_skips_species_lookups(self):
        source = RecordingSource()
        InteractionEngine(source).check_interactions(_request("Metacam", species="dragon"))
        assert source.calls == []

    def test_results_ranked_by_severity(self, curated):
        result = InteractionEngine(curated).check_interactions(
            _request("Metacam", conditions=["heart disease", "gi ulcer"])
        )
        severities = [r.severity for r in result.condition_interactions]
        assert severities == [Severity.CONTRAINDICATED, Severity.MODERATE]


# ════════════════════════════════════════════
# PARTIAL FAILURE
# ════════════════════════════════════════════

class TestPartialFailure:
    def test_failed_category_is_empty_and_reported(self):
        source = FailingSource(["species"])
        failures = []
        result = InteractionEngine(source).check_interactions(
            _request("Rimadyl", "Prednisone", species=SpeciesCategory.CANINE),
            on_lookup_error=lambda category, exc: failures.append(category),
        )
        assert failures == ["species"]
        assert result.species_interactions == ()
        assert [c[0] for c in source.calls] == ["drug_drug"]

    def test_all_categories_failing_still_returns_result(self):
        source = FailingSource(["drug_drug", "species", "condition"])
        result = InteractionEngine(source).check_interactions(
            _request("Rimadyl", "Prednisone", species=SpeciesCategory.CANINE, conditions=["diabetes"])
        )
        assert result.summary.total_interactions == 0

    def test_degraded_result_not_cached(self):
        cache = InMemoryCacheStore()
        InteractionEngine(FailingSource(["drug_drug"]), cache=cache).check_interactions(
            _request("Rimadyl", "Prednisone")
        )
        assert len(cache) == 0


# ════════════════════════════════════════════
# CACHING
# ════════════════════════════════════════════

class TestCaching:
    def test_second_check_served_from_cache(self, curated):
        cache = InMemoryCacheStore()
        first = InteractionEngine(curated, cache=cache).check_interactions(_request("Rimadyl", "Prednisone"))

        source = RecordingSource()
        second = InteractionEngine(source, cache=cache).check_interactions(_request("Prednisone", "Rimadyl"))
        assert source.calls == []
        assert second.summary == first.summary
        assert [r.id for r in second.drug_interactions] == [r.id for r in first.drug_interactions]

    def test_cache_key_ignores_order_and_condition_case(self):
        a = InteractionEngine.cache_key(_request("B", "A", conditions=["Diabetes"]), SpeciesCategory.CANINE)
        b = InteractionEngine.cache_key(_request("A", "B", conditions=["diabetes "]), SpeciesCategory.CANINE)
        assert a == b

    def test_cache_key_depends_on_species(self):
        req = _request("A", "B")
        assert InteractionEngine.cache_key(req, SpeciesCategory.CANINE) != \
            InteractionEngine.cache_key(req, SpeciesCategory.FELINE)

    def test_cache_hit_echoes_current_request(self, curated):
        cache = InMemoryCacheStore()
        first = InteractionEngine(curated, cache=cache).check_interactions(_request("Rimadyl", "Prednisone"))
        second = InteractionEngine(curated, cache=cache).check_interactions(_request("Prednisone", "Rimadyl"))
        assert second.checked_drugs == ("Prednisone", "Rimadyl")
        assert second.checked_at >= first.checked_at


# ════════════════════════════════════════════
# SUMMARY COUNTS ON REAL RESULTS
# ════════════════════════════════════════════

class TestResultCounts:
    @pytest.fixture
    def source(self):
        return RecordingSource(
            drug_drug={
                frozenset(("rimadyl", "prednisone")): [_pair("rimadyl", "prednisone", Severity.MAJOR)],
                frozenset(("rimadyl", "gabapentin")): [_pair("rimadyl", "gabapentin", Severity.MINOR, id="dd-2")],
            },
            species={"rimadyl": [_species_concern("rimadyl", SpeciesCategory.FELINE, Severity.CONTRAINDICATED)]},
            condition={("prednisone", "diabetes"): [
                _condition_concern("prednisone", "diabetes", Severity.MODERATE),
                _condition_concern("prednisone", "diabetes", Severity.UNKNOWN, id="cond-2"),
            ]},
        )

    def test_counts_partition_total(self, source):
        result = InteractionEngine(source).check_interactions(_request(
            "Rimadyl", "Prednisone", "Gabapentin", species=SpeciesCategory.FELINE, conditions=["diabetes"],
        ))
        summary = result.summary
        assert summary.total_interactions == 5
        assert summary.total_interactions == (
            summary.major_count + summary.moderate_count + summary.minor_count + summary.unknown_count
        )
        assert summary.total_interactions == (
            len(result.drug_interactions) + len(result.species_interactions) + len(result.condition_interactions)
        )
        assert summary.highest_severity is Severity.CONTRAINDICATED
        assert [r.severity for r in result.drug_interactions] == [Severity.MAJOR, Severity.MINOR]

    def test_failed_category_excluded_from_counts(self, source):
        failing = FailingSource(["condition"], drug_drug=source.drug_drug, species=source.species,
                                condition=source.condition)
        failures = []
        result = InteractionEngine(failing).check_interactions(
            _request("Rimadyl", "Prednisone", species=SpeciesCategory.FELINE, conditions=["diabetes"]),
            on_lookup_error=lambda category, exc: failures.append(category),
        )
        assert failures == ["condition"]
        assert result.condition_interactions == ()
        assert [r.id for r in result.drug_interactions] == ["dd-1"]
        assert [r.id for r in result.species_interactions] == ["sp-1"]
        assert result.summary.total_interactions == 2
        assert result.summary.major_count == 2
