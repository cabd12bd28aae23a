"""
Interaction aggregation engine.

Normalizes the request, fans the drug-drug, species and condition lookups
out to an interaction data source in parallel, then ranks the records and
rolls them up into one clinical summary.

A lookup failure in one category never fails the whole check: that
category comes back empty, a warning is logged, and the optional
on_lookup_error(category, exc) callback is told about it. Results are
cached only when every category succeeded.
"""

import concurrent.futures
import dataclasses
import logging
import time
from datetime import datetime, timezone
from itertools import combinations
from typing import Callable, Iterable, Optional

from petcheck.models.interaction import (
    INTERACTION_DISCLAIMER,
    InteractionCheckRequest,
    InteractionCheckResult,
    InteractionSummary,
)
from petcheck.models.vocabulary import Severity, SpeciesCategory
from petcheck.services.cache_service import CacheStore
from petcheck.services.interactions.base_source import InteractionDataSource
from petcheck.utils.normalization import create_cache_key, normalize_drug_name
from petcheck.utils.validation import resolve_species

logger = logging.getLogger("petcheck.interactions")

DRUG_DRUG = "drug_drug"
SPECIES = "species"
CONDITION = "condition"

LookupErrorCallback = Callable[[str, Exception], None]


def rank_by_severity(records: Iterable) -> list:
    """Highest severity first; ties keep their lookup order."""
    return sorted(records, key=lambda r: -r.severity.rank)


def summarize(*groups) -> InteractionSummary:
    severities = [r.severity for group in groups for r in group]
    if not severities:
        return InteractionSummary()
    return InteractionSummary(
        total_interactions=len(severities),
        major_count=sum(1 for s in severities if s in (Severity.MAJOR, Severity.CONTRAINDICATED)),
        moderate_count=sum(1 for s in severities if s == Severity.MODERATE),
        minor_count=sum(1 for s in severities if s == Severity.MINOR),
        unknown_count=sum(1 for s in severities if s in (Severity.UNKNOWN, Severity.NONE)),
        highest_severity=max(severities, key=lambda s: s.rank),
    )


def _unique(values: Iterable[str]) -> list[str]:
    seen, out = set(), []
    for v in values:
        key = v.lower()
        if v and key not in seen:
            seen.add(key)
            out.append(v)
    return out


class InteractionEngine:

    def __init__(self, source: InteractionDataSource, cache: Optional[CacheStore] = None,
                 max_workers: int = 3, cache_ttl: int = 86400):
        self.source = source
        self.cache = cache
        self.max_workers = max_workers
        self.cache_ttl = cache_ttl

    # ── cache ────────────────────────────────────────────

    @staticmethod
    def cache_key(request: InteractionCheckRequest, species: Optional[SpeciesCategory]) -> str:
        return create_cache_key("interactions", {
            "drugs": sorted(d.name for d in request.drugs),
            "species": species.value if species else None,
            "conditions": sorted(c.strip().lower() for c in request.conditions),
        })

    def _cached(self, key: str) -> Optional[InteractionCheckResult]:
        if self.cache is None:
            return None
        try:
            hit = self.cache.get(key)
        except Exception as exc:
            logger.warning("Interaction cache read failed: %s", exc)
            return None
        if hit is None or hit.stale:
            return None
        try:
            return InteractionCheckResult.from_dict(hit.data)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Discarding malformed cached interaction result: %s", exc)
            return None

    def _store(self, key: str, result: InteractionCheckResult) -> None:
        if self.cache is None:
            return
        try:
            self.cache.set(key, result.to_dict(), ttl=self.cache_ttl, stale_ttl=self.cache_ttl)
        except Exception as exc:
            logger.warning("Interaction cache write failed: %s", exc)

    # ── lookups ──────────────────────────────────────────

    def _drug_drug(self, names: list[str]) -> list:
        records = []
        for a, b in combinations(names, 2):
            records.extend(self.source.lookup_drug_drug(a, b))
        return records

    def _species(self, names: list[str], species: SpeciesCategory) -> list:
        records = []
        for name in names:
            records.extend(self.source.lookup_species(name, species))
        return records

    def _conditions(self, names: list[str], conditions: list[str],
                    species: Optional[SpeciesCategory]) -> list:
        records = []
        for name in names:
            for condition in conditions:
                records.extend(self.source.lookup_condition(name, condition, species))
        return records

    # ── entry point ──────────────────────────────────────

    def check_interactions(self, request: InteractionCheckRequest,
                           on_lookup_error: Optional[LookupErrorCallback] = None) -> InteractionCheckResult:
        started = time.monotonic()

        species = resolve_species(request.species) if request.species else None
        if request.species and species is None:
            logger.warning("Unrecognized species %r; skipping species lookups", request.species)

        key = self.cache_key(request, species)
        cached = self._cached(key)
        if cached is not None:
            logger.debug("Interaction check cache hit: %s", key)
            return dataclasses.replace(
                cached,
                checked_drugs=tuple(d.name for d in request.drugs),
                checked_at=datetime.now(timezone.utc),
            )

        names = _unique(normalize_drug_name(d.name) for d in request.drugs)
        conditions = _unique(c.strip() for c in request.conditions)
        logger.info(
            "Checking interactions: drugs=%d distinct=%d species=%s conditions=%d",
            len(request.drugs), len(names), species.value if species else None, len(conditions),
        )

        jobs = {}
        if len(names) >= 2:
            jobs[DRUG_DRUG] = (self._drug_drug, names)
        if species and names:
            jobs[SPECIES] = (self._species, names, species)
        if conditions and names:
            jobs[CONDITION] = (self._conditions, names, conditions, species)

        collected = {DRUG_DRUG: [], SPECIES: [], CONDITION: []}
        failed = []
        if jobs:
            pool = concurrent.futures.ThreadPoolExecutor(
                max_workers=min(self.max_workers, len(jobs)),
                thread_name_prefix="interaction-lookup",
            )
            try:
                futures = {category: pool.submit(*job) for category, job in jobs.items()}
                for category, future in futures.items():
                    try:
                        collected[category] = future.result()
                    except Exception as exc:
                        logger.warning("%s lookup failed, returning no records: %s", category, exc)
                        failed.append(category)
                        if on_lookup_error is not None:
                            on_lookup_error(category, exc)
            finally:
                pool.shutdown(wait=False, cancel_futures=True)

        drug_records = rank_by_severity(collected[DRUG_DRUG])
        species_records = rank_by_severity(collected[SPECIES])
        condition_records = rank_by_severity(collected[CONDITION])

        result = InteractionCheckResult(
            drug_interactions=tuple(drug_records),
            species_interactions=tuple(species_records),
            condition_interactions=tuple(condition_records),
            summary=summarize(drug_records, species_records, condition_records),
            checked_drugs=tuple(d.name for d in request.drugs),
            checked_at=datetime.now(timezone.utc),
            disclaimer=INTERACTION_DISCLAIMER,
        )

        if not failed:
            self._store(key, result)

        logger.info(
            "Interaction check completed in %.0fms: %d interactions, highest=%s%s",
            (time.monotonic() - started) * 1000,
            result.summary.total_interactions,
            result.summary.highest_severity.value,
            f" (degraded: {', '.join(failed)})" if failed else "",
        )
        return result
