"""
Animal & Veterinary adverse event search over openFDA.
Raw events are reduced to the compact shape the UI renders.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Union

from petcheck.config import Config
from petcheck.models.vocabulary import OutcomeSeriousness, get_species_by_name
from petcheck.services.openfda.client import ADVERSE_EVENTS_ENDPOINT, OpenFDAClient
from petcheck.utils.api import ERROR_CODES, ExternalServiceError, ValidationError
from petcheck.utils.normalization import (
    build_open_fda_date_range,
    build_open_fda_search_query,
    escape_open_fda_query,
    normalize_species_name,
)
from petcheck.utils.validation import validate_date_range, validate_pagination

logger = logging.getLogger("petcheck.openfda.events")

# Aggregation names accepted by /count/<field>, mapped to openFDA count fields
AGGREGATION_FIELDS = {
    "species": "animal.species.exact",
    "reaction": "reaction.veddra_term_name.exact",
    "outcome": "outcome.medical_status.exact",
    "drug": "drug.brand_name.exact",
    "route": "drug.route.exact",
    "time_series": "original_receive_date",
}

MAX_COUNT_LIMIT = 1000

_DEATH_OUTCOMES = (OutcomeSeriousness.DIED, OutcomeSeriousness.EUTHANIZED)
_NON_SERIOUS_OUTCOMES = (OutcomeSeriousness.NOT_SERIOUS, OutcomeSeriousness.UNKNOWN)


def map_outcome(status: Optional[str]) -> OutcomeSeriousness:
    if not status:
        return OutcomeSeriousness.UNKNOWN
    s = status.lower()
    if "died" in s or "death" in s:
        return OutcomeSeriousness.DIED
    if "euthan" in s:
        return OutcomeSeriousness.EUTHANIZED
    if "life" in s and "threat" in s:
        return OutcomeSeriousness.LIFE_THREATENING
    if "hospital" in s:
        return OutcomeSeriousness.HOSPITALIZED
    if "disab" in s:
        return OutcomeSeriousness.DISABILITY
    if "congen" in s or "anomal" in s:
        return OutcomeSeriousness.CONGENITAL_ANOMALY
    if "serious" in s:
        return OutcomeSeriousness.OTHER_SERIOUS
    if "recover" in s or "resolved" in s:
        return OutcomeSeriousness.NOT_SERIOUS
    return OutcomeSeriousness.UNKNOWN


def map_gender(gender: Optional[str]) -> str:
    if not gender:
        return "unknown"
    g = gender.lower()
    if "female" in g:
        return "female" if "intact" in g else "spayed_female"
    if "male" in g:
        return "male" if "intact" in g else "neutered_male"
    return "unknown"


def species_terms(species: Union[str, list, tuple, None]) -> list[str]:
    """openFDA search terms for one or more species names or ids."""
    if not species:
        return []
    names = [species] if isinstance(species, str) else list(species)
    terms = []
    for name in names:
        entry = get_species_by_name(normalize_species_name(name))
        if entry is None:
            raise ValidationError(
                "Invalid species",
                [{"field": "species", "message": "Unknown species", "value": name}],
                code=ERROR_CODES["INVALID_SPECIES"],
            )
        terms.extend(t for t in entry.open_fda_terms if t not in terms)
    return terms


def _drug_clause(drug_name: Optional[str], active_ingredient: Optional[str]) -> str:
    if drug_name:
        brand = escape_open_fda_query(drug_name.strip())
        ingredient = escape_open_fda_query((active_ingredient or drug_name).strip())
        return f'(drug.brand_name:"{brand}"+OR+drug.active_ingredients.name:"{ingredient}")'
    if active_ingredient:
        return f'drug.active_ingredients.name:"{escape_open_fda_query(active_ingredient.strip())}"'
    return ""


def build_search_query(species=None, drug_name=None, active_ingredient=None, manufacturer=None,
                       reaction=None, date_from=None, date_to=None) -> str:
    clauses = [
        build_open_fda_search_query({
            "animal.species": species_terms(species),
            "drug.manufacturer.name": manufacturer,
            "reaction.veddra_term_name": reaction,
        }),
        _drug_clause(drug_name, active_ingredient),
        build_open_fda_date_range("original_receive_date", date_from, date_to),
    ]
    return "+AND+".join(c for c in clauses if c)


def format_time_series(buckets: list[dict]) -> list[dict]:
    """Daily YYYYMMDD count buckets rolled up into sorted YYYY-MM months."""
    months: dict[str, int] = {}
    for bucket in buckets:
        term = str(bucket.get("term") or "")
        if len(term) < 6:
            continue
        month = f"{term[:4]}-{term[4:6]}"
        months[month] = months.get(month, 0) + int(bucket.get("count") or 0)
    return [{"month": m, "count": c} for m, c in sorted(months.items())]


def transform_event(raw: dict) -> dict:
    animal = raw.get("animal") or {}
    species_info = animal.get("species") or {}
    species_name = species_info.get("name") or "Unknown"
    species_entry = get_species_by_name(species_name) if species_info.get("name") else None

    drugs = []
    for d in raw.get("drug") or []:
        drugs.append({
            "brandName": d.get("brand_name"),
            "activeIngredients": [i.get("name") for i in d.get("active_ingredients") or [] if i.get("name")],
            "manufacturer": (d.get("manufacturer") or {}).get("name"),
            "route": d.get("route"),
            "usedAccordingToLabel": d.get("used_according_to_label") == "true",
        })

    reactions = [
        {
            "term": r.get("veddra_term_name") or "Unknown",
            "veddraCode": r.get("veddra_term_code"),
            "accuracy": "exact" if r.get("accuracy") == "actual" else "related",
        }
        for r in raw.get("reaction") or []
    ]

    outcomes = [map_outcome(o.get("medical_status")) for o in raw.get("outcome") or []]
    outcomes = [o.value for o in outcomes if o != OutcomeSeriousness.UNKNOWN] or [OutcomeSeriousness.UNKNOWN.value]

    return {
        "reportId": raw.get("unique_aer_id_number") or raw.get("report_id") or "unknown",
        "receiptDate": raw.get("original_receive_date") or "",
        "onsetDate": raw.get("onset_date"),
        "animal": {
            "species": species_name,
            "speciesCategory": species_entry.id.value if species_entry else None,
            "breed": (species_info.get("breed") or {}).get("breed_component"),
            "gender": map_gender(animal.get("gender")),
        },
        "drugs": drugs,
        "reactions": reactions,
        "outcomes": outcomes,
        "numberOfAnimalsAffected": raw.get("number_of_animals_affected"),
        "numberOfAnimalsTreated": raw.get("number_of_animals_treated"),
    }


class AdverseEventService:

    def __init__(self, client: OpenFDAClient):
        self.client = client

    def search(self, species=None, drug_name: Optional[str] = None, active_ingredient: Optional[str] = None,
               manufacturer: Optional[str] = None, reaction: Optional[str] = None,
               date_from: Optional[str] = None, date_to: Optional[str] = None,
               limit=None, offset=None) -> dict:
        validate_date_range(date_from, date_to)
        page = validate_pagination(limit, offset)
        search = build_search_query(species, drug_name, active_ingredient, manufacturer,
                                    reaction, date_from, date_to)

        data, cached, stale = self.client.cached_get(
            ADVERSE_EVENTS_ENDPOINT,
            ttl=Config.CACHE_TTL_ADVERSE_EVENTS,
            stale_ttl=Config.CACHE_STALE_ADVERSE_EVENTS,
            search=search or None,
            limit=int(page["limit"]),
            skip=int(page["offset"]),
        )
        events = [transform_event(raw) for raw in data.get("results") or []]
        meta = (data.get("meta") or {}).get("results") or {}

        logger.info("Adverse events search: %d results, cached=%s, stale=%s", len(events), cached, stale)
        return {
            "events": events,
            "total": meta.get("total", 0),
            "limit": meta.get("limit", int(page["limit"])),
            "skip": meta.get("skip", int(page["offset"])),
            "openFdaQuery": self.client.build_query_url(
                ADVERSE_EVENTS_ENDPOINT, search or None, None, int(page["limit"]), int(page["offset"])
            ),
            "cached": cached,
            "stale": stale,
        }

    def aggregate(self, field: str, species=None, drug_name: Optional[str] = None,
                  active_ingredient: Optional[str] = None, manufacturer: Optional[str] = None,
                  reaction: Optional[str] = None, date_from: Optional[str] = None,
                  date_to: Optional[str] = None, limit=None) -> dict:
        """Term counts for one aggregation field over the matching events."""
        if field not in AGGREGATION_FIELDS:
            raise ValidationError(
                "Invalid aggregation field",
                [{"field": "field", "message": f"Expected one of: {', '.join(AGGREGATION_FIELDS)}",
                  "value": field}],
            )
        if limit is None:
            limit = 100
        if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= MAX_COUNT_LIMIT:
            raise ValidationError(
                "Invalid limit",
                [{"field": "limit", "message": f"Must be between 1 and {MAX_COUNT_LIMIT}", "value": limit}],
            )
        validate_date_range(date_from, date_to)
        search = build_search_query(species, drug_name, active_ingredient, manufacturer,
                                    reaction, date_from, date_to)

        data, cached, stale = self.client.cached_get(
            ADVERSE_EVENTS_ENDPOINT,
            ttl=Config.CACHE_TTL_ADVERSE_EVENTS,
            stale_ttl=Config.CACHE_STALE_ADVERSE_EVENTS,
            search=search or None,
            count=AGGREGATION_FIELDS[field],
            limit=limit,
        )
        buckets = [
            {"field": field, "term": str(r.get("term", "")), "count": int(r.get("count") or 0)}
            for r in data.get("results") or []
        ]

        logger.info("Adverse events aggregation (%s): %d terms, cached=%s", field, len(buckets), cached)
        return {
            "type": field,
            "data": buckets,
            "total": sum(b["count"] for b in buckets),
            "cached": cached,
            "stale": stale,
        }

    def drug_summary(self, drug_name: str, generic_name: Optional[str] = None) -> dict:
        """
        Outcome, reaction and monthly breakdowns for one drug. The client
        already spaces openFDA requests, so the four queries run in turn;
        any that fail leave their part of the summary empty.
        """
        if not drug_name or not drug_name.strip():
            raise ValidationError(
                "Drug name is required",
                [{"field": "drugName", "message": "Drug name is required"}],
                code=ERROR_CODES["MISSING_REQUIRED_FIELD"],
            )
        filters = {"drug_name": drug_name, "active_ingredient": generic_name}
        jobs = {
            "outcome": (self.aggregate, "outcome"),
            "reaction": (self.aggregate, "reaction"),
            "time_series": (self.aggregate, "time_series"),
            "search": (self.search,),
        }
        limits = {"outcome": 10, "reaction": 20, "time_series": 60, "search": 1}

        collected = {}
        for name, (fn, *args) in jobs.items():
            try:
                collected[name] = fn(*args, limit=limits[name], **filters)
            except ExternalServiceError as exc:
                logger.warning("Drug summary %s query failed for %s: %s", name, drug_name, exc.message)

        outcomes = [
            (map_outcome(b["term"]), b["count"])
            for b in (collected.get("outcome") or {}).get("data", [])
        ]
        death_reports = sum(count for outcome, count in outcomes if outcome in _DEATH_OUTCOMES)
        serious_reports = sum(count for outcome, count in outcomes if outcome not in _NON_SERIOUS_OUTCOMES)
        reactions = [
            {"reaction": b["term"], "count": b["count"]}
            for b in (collected.get("reaction") or {}).get("data", [])[:10]
        ]

        return {
            "drugName": drug_name,
            "totalReports": (collected.get("search") or {}).get("total", 0),
            "seriousReports": serious_reports,
            "deathReports": death_reports,
            "outcomeBreakdown": [{"outcome": o.value, "count": c} for o, c in outcomes],
            "topReactions": reactions,
            "timeSeriesMonthly": format_time_series((collected.get("time_series") or {}).get("data", [])),
            "lastUpdated": datetime.now(timezone.utc).isoformat(),
        }
