"""
Validation utilities.

Predicates answer "does this raw value belong to the vocabulary?" and never
raise. The parse_* constructors return a validated value or raise
ValidationError, so route handlers reject bad input before any lookup.
"""

import math
import re
from collections.abc import Mapping
from datetime import datetime
from numbers import Real
from typing import Optional

from petcheck.models.interaction import Age, DrugInput, InteractionCheckRequest, Weight
from petcheck.models.vocabulary import (
    AdministrationRoute,
    DrugClass,
    MedicationFrequency,
    OutcomeSeriousness,
    RecallClass,
    RecallStatus,
    SPECIES_LIST,
    Severity,
    SpeciesCategory,
    UserRole,
    get_species_by_name,
)
from petcheck.utils.api import ERROR_CODES, ValidationError
from petcheck.utils.normalization import normalize_species_name

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_OPENFDA_DATE_RE = re.compile(r"^\d{8}$")

DEFAULT_LIMIT = 20
MAX_LIMIT = 100
WEIGHT_UNITS = ("kg", "lb")
AGE_UNITS = ("day", "week", "month", "year")


def _in_enum(value, enum_cls) -> bool:
    if not isinstance(value, str):
        return False
    return value in {member.value for member in enum_cls}


def _is_number(value) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and not math.isnan(value)


def is_valid_email(email) -> bool:
    return isinstance(email, str) and bool(_EMAIL_RE.match(email))


def is_valid_species(species) -> bool:
    return isinstance(species, str) and any(s.id.value == species for s in SPECIES_LIST)


def is_valid_drug_class(drug_class) -> bool:
    return _in_enum(drug_class, DrugClass)


def is_valid_route(route) -> bool:
    return _in_enum(route, AdministrationRoute)


def is_valid_outcome(outcome) -> bool:
    return _in_enum(outcome, OutcomeSeriousness)


def is_valid_recall_class(recall_class) -> bool:
    return _in_enum(recall_class, RecallClass)


def is_valid_recall_status(status) -> bool:
    return _in_enum(status, RecallStatus)


def is_valid_severity(severity) -> bool:
    return _in_enum(severity, Severity)


def is_valid_user_role(role) -> bool:
    return _in_enum(role, UserRole)


def is_valid_frequency(frequency) -> bool:
    return _in_enum(frequency, MedicationFrequency)


def is_valid_open_fda_date(value) -> bool:
    """YYYYMMDD with loose bounds; day-of-month is not checked against the month."""
    if not isinstance(value, str) or not _OPENFDA_DATE_RE.match(value):
        return False
    year, month, day = int(value[:4]), int(value[4:6]), int(value[6:8])
    if year < 1900 or year > 2100:
        return False
    if month < 1 or month > 12:
        return False
    if day < 1 or day > 31:
        return False
    return True


def is_valid_iso_date(value) -> bool:
    if not isinstance(value, str) or not value.strip():
        return False
    try:
        datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return False
    return True


def is_valid_weight(weight) -> bool:
    if not isinstance(weight, Mapping):
        return False
    value = weight.get("value")
    return _is_number(value) and value > 0 and weight.get("unit") in WEIGHT_UNITS


def is_valid_age(age) -> bool:
    if not isinstance(age, Mapping):
        return False
    value = age.get("value")
    return _is_number(value) and value >= 0 and age.get("unit") in AGE_UNITS


def sanitize_string(value: str) -> str:
    """Escape HTML-significant characters and trim."""
    return (
        value.replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#039;")
        .strip()
    )


def validate_pagination(limit=None, offset=None) -> dict:
    valid_limit = DEFAULT_LIMIT
    if _is_number(limit) and limit > 0:
        valid_limit = min(limit, MAX_LIMIT)

    valid_offset = 0
    if _is_number(offset) and offset >= 0 and not math.isinf(offset):
        valid_offset = offset

    return {"limit": valid_limit, "offset": valid_offset}


# ═══════════════════════════════════════════
# PARSE-OR-REJECT CONSTRUCTORS
# ═══════════════════════════════════════════

def parse_severity(value) -> Severity:
    if not is_valid_severity(value):
        raise ValidationError(
            "Invalid interaction severity",
            [{"field": "severity", "message": "Unknown severity", "value": value}],
        )
    return Severity(value)


def resolve_species(value) -> Optional[SpeciesCategory]:
    """Map a category id or any common name/synonym to a SpeciesCategory."""
    if not isinstance(value, str):
        return None
    normalized = normalize_species_name(value)
    if not normalized:
        return None
    species = get_species_by_name(normalized)
    return species.id if species else None


def parse_species(value) -> SpeciesCategory:
    species = resolve_species(value)
    if species is None:
        raise ValidationError(
            "Invalid species",
            [{"field": "species", "message": "Unknown species", "value": value}],
            code=ERROR_CODES["INVALID_SPECIES"],
        )
    return species


def _optional_str(item: Mapping, key: str, index: int, errors: list) -> Optional[str]:
    value = item.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        errors.append({"field": f"drugs[{index}].{key}", "message": f"{key} must be a string", "value": value})
        return None
    return value.strip() or None


def parse_interaction_request(payload) -> InteractionCheckRequest:
    """Validate a POST /interactions/check body into an InteractionCheckRequest."""
    if not isinstance(payload, Mapping):
        raise ValidationError("Request body must be a JSON object")

    errors: list[dict] = []

    drugs: list[DrugInput] = []
    raw_drugs = payload.get("drugs")
    if not isinstance(raw_drugs, list) or not raw_drugs:
        errors.append({"field": "drugs", "message": "At least one drug is required", "value": raw_drugs})
    else:
        for i, item in enumerate(raw_drugs):
            if not isinstance(item, Mapping):
                errors.append({"field": f"drugs[{i}]", "message": "Drug entry must be an object", "value": item})
                continue
            name = item.get("name")
            if not isinstance(name, str) or not name.strip():
                errors.append({"field": f"drugs[{i}].name", "message": "Drug name is required", "value": name})
                continue
            drugs.append(DrugInput(
                name=name.strip(),
                drug_id=_optional_str(item, "drugId", i, errors),
                dose=_optional_str(item, "dose", i, errors),
                route=_optional_str(item, "route", i, errors),
            ))

    species = None
    raw_species = payload.get("species")
    if raw_species not in (None, ""):
        species = resolve_species(raw_species)
        if species is None:
            errors.append({"field": "species", "message": "Invalid species", "value": raw_species})

    conditions: list[str] = []
    raw_conditions = payload.get("conditions")
    if raw_conditions is not None:
        if not isinstance(raw_conditions, list):
            errors.append({"field": "conditions", "message": "Conditions must be a list", "value": raw_conditions})
        else:
            for i, condition in enumerate(raw_conditions):
                if not isinstance(condition, str):
                    errors.append({"field": f"conditions[{i}]", "message": "Condition must be a string",
                                   "value": condition})
                elif condition.strip():
                    conditions.append(condition.strip())

    weight = None
    raw_weight = payload.get("weight")
    if raw_weight is not None:
        if is_valid_weight(raw_weight):
            weight = Weight(value=raw_weight["value"], unit=raw_weight["unit"])
        else:
            errors.append({"field": "weight", "message": "Weight needs a positive value and unit kg|lb",
                           "value": raw_weight})

    age = None
    raw_age = payload.get("age")
    if raw_age is not None:
        if is_valid_age(raw_age):
            age = Age(value=raw_age["value"], unit=raw_age["unit"])
        else:
            errors.append({"field": "age", "message": "Age needs a non-negative value and unit day|week|month|year",
                           "value": raw_age})

    if errors:
        code = ERROR_CODES["VALIDATION_ERROR"]
        if all(e["field"] == "species" for e in errors):
            code = ERROR_CODES["INVALID_SPECIES"]
        raise ValidationError("Invalid interaction check request", errors, code=code)

    return InteractionCheckRequest(
        drugs=tuple(drugs),
        species=species,
        conditions=tuple(conditions),
        weight=weight,
        age=age,
    )


def validate_date_range(date_from: Optional[str], date_to: Optional[str]) -> None:
    """Reject malformed YYYYMMDD bounds or a range whose start is after its end."""
    errors = []
    for field_name, value in (("dateFrom", date_from), ("dateTo", date_to)):
        if value and not is_valid_open_fda_date(value):
            errors.append({"field": field_name, "message": "Expected YYYYMMDD", "value": value})
    if not errors and date_from and date_to and date_from > date_to:
        errors.append({"field": "dateFrom", "message": "dateFrom is after dateTo", "value": date_from})
    if errors:
        raise ValidationError("Invalid date range", errors, code=ERROR_CODES["INVALID_DATE_RANGE"])
