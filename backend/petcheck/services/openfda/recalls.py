"""
FDA enforcement report (recall) search, restricted to drug products.
"""

import logging
import re
from typing import Optional

from petcheck.config import Config
from petcheck.models.vocabulary import RecallClass, RecallStatus
from petcheck.services.openfda.client import ENFORCEMENT_ENDPOINT, OpenFDAClient
from petcheck.utils.api import ERROR_CODES, ValidationError
from petcheck.utils.normalization import build_open_fda_date_range, escape_open_fda_query
from petcheck.utils.validation import (
    is_valid_recall_class,
    is_valid_recall_status,
    validate_date_range,
    validate_pagination,
)

logger = logging.getLogger("petcheck.openfda.recalls")

_LOT_RE = re.compile(r"(?:lot|batch|l/n|b/n)[:\s#]*([A-Z0-9\-/]+)", re.IGNORECASE)

# Words marking an enforcement record as an animal product
_VETERINARY_KEYWORDS = (
    "veterinary", "animal", "pet", "dog", "cat", "horse", "cattle", "livestock", "poultry",
    "swine", "sheep", "goat", "bird", "feline", "canine", "equine", "bovine", "porcine",
)

MAX_ACTIVE_LIMIT = 100
DRUG_RECALL_LIMIT = 100

_STATUS_TO_FDA = {
    RecallStatus.ONGOING: "Ongoing",
    RecallStatus.COMPLETED: "Completed",
    RecallStatus.TERMINATED: "Terminated",
    RecallStatus.PENDING: "Pending",
    RecallStatus.UNKNOWN: "Unknown",
}


def parse_recall_class(classification: Optional[str]) -> RecallClass:
    """'Class II' -> RecallClass.CLASS_II; anything unrecognized -> UNKNOWN."""
    if not classification:
        return RecallClass.UNKNOWN
    match = re.search(r"\b(III|II|I)\b", classification)
    if not match:
        return RecallClass.UNKNOWN
    return RecallClass(match.group(1))


def parse_recall_status(status: Optional[str]) -> RecallStatus:
    if not status:
        return RecallStatus.UNKNOWN
    s = status.lower()
    for candidate in (RecallStatus.ONGOING, RecallStatus.COMPLETED, RecallStatus.TERMINATED, RecallStatus.PENDING):
        if candidate.value in s:
            return candidate
    return RecallStatus.UNKNOWN


def parse_lot_numbers(code_info: str) -> list[str]:
    matches = _LOT_RE.findall(code_info)
    return matches or [code_info]


def _as_list(value) -> list:
    if not value:
        return []
    return [value] if isinstance(value, str) else list(value)


def build_search_query(query=None, recall_class=None, status=None, date_from=None, date_to=None) -> str:
    clauses = ['product_type:"Drugs"']

    if query and query.strip():
        q = escape_open_fda_query(query.strip())
        clauses.append(f'(product_description:"{q}"+OR+reason_for_recall:"{q}")')

    classes = _as_list(recall_class)
    bad = [c for c in classes if not is_valid_recall_class(c) or c == RecallClass.UNKNOWN.value]
    if bad:
        raise ValidationError(
            "Invalid recall class",
            [{"field": "class", "message": "Expected I, II or III", "value": c} for c in bad],
        )
    if classes:
        clauses.append("classification:(" + "+OR+".join(f'"Class {c}"' for c in classes) + ")")

    statuses = _as_list(status)
    bad = [s for s in statuses if not is_valid_recall_status(s)]
    if bad:
        raise ValidationError(
            "Invalid recall status",
            [{"field": "status", "message": "Unknown recall status", "value": s} for s in bad],
        )
    if statuses:
        clauses.append(
            "status:(" + "+OR+".join(f'"{_STATUS_TO_FDA[RecallStatus(s)]}"' for s in statuses) + ")"
        )

    date_clause = build_open_fda_date_range("recall_initiation_date", date_from, date_to)
    if date_clause:
        clauses.append(date_clause)

    return "+AND+".join(clauses)


def is_veterinary_product(raw: dict) -> bool:
    text = f"{raw.get('product_description') or ''} {raw.get('reason_for_recall') or ''}".lower()
    return any(keyword in text for keyword in _VETERINARY_KEYWORDS)


def transform_recall(raw: dict) -> dict:
    voluntary = (raw.get("voluntary_mandated") or "").lower()
    if "voluntary" in voluntary:
        voluntary_mandated = "voluntary"
    elif "mandated" in voluntary:
        voluntary_mandated = "mandated"
    else:
        voluntary_mandated = "unknown"

    return {
        "recallNumber": raw.get("recall_number") or raw.get("event_id"),
        "productName": raw.get("product_description") or "Unknown Product",
        "manufacturer": raw.get("recalling_firm"),
        "recallClass": parse_recall_class(raw.get("classification")).value,
        "status": parse_recall_status(raw.get("status")).value,
        "reason": raw.get("reason_for_recall") or "Reason not specified",
        "initiationDate": raw.get("recall_initiation_date"),
        "reportDate": raw.get("report_date"),
        "terminationDate": raw.get("termination_date"),
        "lotNumbers": parse_lot_numbers(raw["code_info"]) if raw.get("code_info") else None,
        "distribution": raw.get("distribution_pattern"),
        "quantity": raw.get("product_quantity"),
        "voluntaryMandated": voluntary_mandated,
        "source": "fda",
    }


class RecallService:

    def __init__(self, client: OpenFDAClient):
        self.client = client

    def search(self, query: Optional[str] = None, recall_class=None, status=None,
               date_from: Optional[str] = None, date_to: Optional[str] = None,
               limit=None, offset=None) -> dict:
        validate_date_range(date_from, date_to)
        page = validate_pagination(limit, offset)
        search = build_search_query(query, recall_class, status, date_from, date_to)

        data, cached, stale = self.client.cached_get(
            ENFORCEMENT_ENDPOINT,
            ttl=Config.CACHE_TTL_RECALLS,
            stale_ttl=Config.CACHE_STALE_RECALLS,
            search=search,
            limit=int(page["limit"]),
            skip=int(page["offset"]),
        )
        recalls = [transform_recall(raw) for raw in data.get("results") or []]
        meta = (data.get("meta") or {}).get("results") or {}

        logger.info("Recalls search: %d results, cached=%s, stale=%s", len(recalls), cached, stale)
        return {
            "recalls": recalls,
            "total": meta.get("total", 0),
            "limit": meta.get("limit", int(page["limit"])),
            "offset": meta.get("skip", int(page["offset"])),
            "cached": cached,
            "stale": stale,
        }

    def _veterinary_recalls(self, search: str, limit: int) -> tuple[list[dict], bool, bool]:
        data, cached, stale = self.client.cached_get(
            ENFORCEMENT_ENDPOINT,
            ttl=Config.CACHE_TTL_RECALLS,
            stale_ttl=Config.CACHE_STALE_RECALLS,
            search=search,
            limit=limit,
        )
        recalls = [transform_recall(raw) for raw in data.get("results") or [] if is_veterinary_product(raw)]
        return recalls, cached, stale

    def active(self, limit=None) -> dict:
        """Ongoing drug recalls that read as animal products."""
        if limit is None:
            limit = 50
        if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= MAX_ACTIVE_LIMIT:
            raise ValidationError(
                "Invalid limit",
                [{"field": "limit", "message": f"Must be between 1 and {MAX_ACTIVE_LIMIT}", "value": limit}],
            )
        recalls, cached, stale = self._veterinary_recalls('status:"Ongoing"+AND+product_type:"Drugs"', limit)
        logger.info("Active recalls: %d veterinary results, cached=%s", len(recalls), cached)
        return {"recalls": recalls, "total": len(recalls), "cached": cached, "stale": stale}

    def for_drugs(self, drug_names) -> list[dict]:
        """Veterinary recalls whose product description names any of the drugs."""
        distinct = {}
        for name in drug_names:
            if name and name.strip():
                distinct.setdefault(name.strip().lower(), name.strip())
        names = [distinct[key] for key in sorted(distinct)]
        if not names:
            return []
        terms = "+OR+".join(f'product_description:"{escape_open_fda_query(n)}"' for n in names)
        recalls, _, _ = self._veterinary_recalls(f'({terms})+AND+product_type:"Drugs"', DRUG_RECALL_LIMIT)
        return recalls

    def check_drug(self, drug_name: str) -> dict:
        if not drug_name or not drug_name.strip():
            raise ValidationError(
                "Drug name is required",
                [{"field": "drugName", "message": "Drug name is required"}],
                code=ERROR_CODES["MISSING_REQUIRED_FIELD"],
            )
        active = [r for r in self.for_drugs([drug_name]) if r["status"] == RecallStatus.ONGOING.value]
        return {"hasActiveRecall": bool(active), "recalls": active}
