"""
Drug interaction records, check request and check result.

Records are read-only artifacts fetched per request. to_dict() renders the
camelCase JSON the UI consumes; from_dict() restores a record from that
shape (used when results come back out of the cache).
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from petcheck.models.vocabulary import (
    ConcernType,
    EvidenceLevel,
    InteractionType,
    Severity,
    SpeciesCategory,
)

INTERACTION_DISCLAIMER = (
    "DISCLAIMER: This interaction checker is for informational purposes only and does not "
    "replace professional veterinary advice. Drug interaction data may be incomplete, "
    "outdated, or not applicable to your specific situation. Always consult with a "
    "qualified veterinarian before making any changes to your pet's medications. "
    "This tool is not a clinical decision support system."
)

SOURCE_TYPES = ("label", "fda", "literature", "rxnorm", "curated", "inferred")


def _iso(value: datetime) -> str:
    return value.isoformat()


def _parse_ts(value) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            pass
    return datetime.now(timezone.utc)


def _species_list(values) -> Optional[tuple[SpeciesCategory, ...]]:
    if values is None:
        return None
    return tuple(SpeciesCategory(v) for v in values)


@dataclass(frozen=True)
class InteractionSource:
    type: str = "curated"
    reference: Optional[str] = None
    url: Optional[str] = None
    date_accessed: Optional[str] = None

    def __post_init__(self):
        if self.type not in SOURCE_TYPES:
            raise ValueError(f"Unknown interaction source type: {self.type!r}")

    def to_dict(self) -> dict:
        data = {"type": self.type}
        if self.reference:
            data["reference"] = self.reference
        if self.url:
            data["url"] = self.url
        if self.date_accessed:
            data["dateAccessed"] = self.date_accessed
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "InteractionSource":
        return cls(
            type=data.get("type", "curated"),
            reference=data.get("reference"),
            url=data.get("url"),
            date_accessed=data.get("dateAccessed"),
        )


@dataclass(frozen=True)
class DrugReference:
    name: str
    drug_id: Optional[str] = None
    active_ingredient: Optional[str] = None
    drug_class: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "drugId": self.drug_id,
            "activeIngredient": self.active_ingredient,
            "drugClass": self.drug_class,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DrugReference":
        return cls(
            name=data["name"],
            drug_id=data.get("drugId"),
            active_ingredient=data.get("activeIngredient"),
            drug_class=data.get("drugClass"),
        )


@dataclass(frozen=True)
class DrugInteraction:
    """A known interaction between two drugs. Identity: (drug1, drug2, type)."""
    id: str
    drug1: DrugReference
    drug2: DrugReference
    severity: Severity
    type: InteractionType = InteractionType.DRUG_DRUG
    evidence: EvidenceLevel = EvidenceLevel.UNKNOWN
    description: str = ""
    clinical_effect: Optional[str] = None
    mechanism: Optional[str] = None
    management: Optional[str] = None
    species_specific: Optional[tuple[SpeciesCategory, ...]] = None
    sources: tuple[InteractionSource, ...] = ()
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def identity(self) -> tuple[str, str, str]:
        return (self.drug1.name, self.drug2.name, self.type.value)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "drug1": self.drug1.to_dict(),
            "drug2": self.drug2.to_dict(),
            "severity": self.severity.value,
            "type": self.type.value,
            "evidence": self.evidence.value,
            "description": self.description,
            "clinicalEffect": self.clinical_effect,
            "mechanism": self.mechanism,
            "management": self.management,
            "speciesSpecific": [s.value for s in self.species_specific] if self.species_specific else None,
            "sources": [s.to_dict() for s in self.sources],
            "lastUpdated": _iso(self.last_updated),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DrugInteraction":
        return cls(
            id=data["id"],
            drug1=DrugReference.from_dict(data["drug1"]),
            drug2=DrugReference.from_dict(data["drug2"]),
            severity=Severity(data["severity"]),
            type=InteractionType(data.get("type", "drug_drug")),
            evidence=EvidenceLevel(data.get("evidence", "unknown")),
            description=data.get("description", ""),
            clinical_effect=data.get("clinicalEffect"),
            mechanism=data.get("mechanism"),
            management=data.get("management"),
            species_specific=_species_list(data.get("speciesSpecific")),
            sources=tuple(InteractionSource.from_dict(s) for s in data.get("sources", [])),
            last_updated=_parse_ts(data.get("lastUpdated")),
        )


@dataclass(frozen=True)
class SpeciesInteraction:
    """A single drug's contraindication or caution for one species."""
    id: str
    drug_name: str
    species: SpeciesCategory
    severity: Severity
    type: ConcernType
    description: str
    drug_id: Optional[str] = None
    active_ingredient: Optional[str] = None
    reason: Optional[str] = None
    management: Optional[str] = None
    sources: tuple[InteractionSource, ...] = ()
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "drugName": self.drug_name,
            "drugId": self.drug_id,
            "activeIngredient": self.active_ingredient,
            "species": self.species.value,
            "severity": self.severity.value,
            "type": self.type.value,
            "description": self.description,
            "reason": self.reason,
            "management": self.management,
            "sources": [s.to_dict() for s in self.sources],
            "lastUpdated": _iso(self.last_updated),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SpeciesInteraction":
        return cls(
            id=data["id"],
            drug_name=data["drugName"],
            species=SpeciesCategory(data["species"]),
            severity=Severity(data["severity"]),
            type=ConcernType(data["type"]),
            description=data.get("description", ""),
            drug_id=data.get("drugId"),
            active_ingredient=data.get("activeIngredient"),
            reason=data.get("reason"),
            management=data.get("management"),
            sources=tuple(InteractionSource.from_dict(s) for s in data.get("sources", [])),
            last_updated=_parse_ts(data.get("lastUpdated")),
        )


@dataclass(frozen=True)
class ConditionInteraction:
    """A single drug's concern given a free-text medical condition."""
    id: str
    drug_name: str
    condition: str
    severity: Severity
    type: ConcernType
    description: str
    drug_id: Optional[str] = None
    reason: Optional[str] = None
    management: Optional[str] = None
    species_specific: Optional[tuple[SpeciesCategory, ...]] = None
    sources: tuple[InteractionSource, ...] = ()
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "drugName": self.drug_name,
            "drugId": self.drug_id,
            "condition": self.condition,
            "severity": self.severity.value,
            "type": self.type.value,
            "description": self.description,
            "reason": self.reason,
            "management": self.management,
            "speciesSpecific": [s.value for s in self.species_specific] if self.species_specific else None,
            "sources": [s.to_dict() for s in self.sources],
            "lastUpdated": _iso(self.last_updated),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ConditionInteraction":
        return cls(
            id=data["id"],
            drug_name=data["drugName"],
            condition=data["condition"],
            severity=Severity(data["severity"]),
            type=ConcernType(data["type"]),
            description=data.get("description", ""),
            drug_id=data.get("drugId"),
            reason=data.get("reason"),
            management=data.get("management"),
            species_specific=_species_list(data.get("speciesSpecific")),
            sources=tuple(InteractionSource.from_dict(s) for s in data.get("sources", [])),
            last_updated=_parse_ts(data.get("lastUpdated")),
        )


# ═══════════════════════════════════════════
# CHECK REQUEST
# ═══════════════════════════════════════════

@dataclass(frozen=True)
class DrugInput:
    name: str
    drug_id: Optional[str] = None
    dose: Optional[str] = None
    route: Optional[str] = None


@dataclass(frozen=True)
class Weight:
    value: float
    unit: str  # kg | lb


@dataclass(frozen=True)
class Age:
    value: float
    unit: str  # day | week | month | year


@dataclass(frozen=True)
class InteractionCheckRequest:
    drugs: tuple[DrugInput, ...]
    species: Optional[SpeciesCategory] = None
    conditions: tuple[str, ...] = ()
    weight: Optional[Weight] = None
    age: Optional[Age] = None


# ═══════════════════════════════════════════
# CHECK RESULT
# ═══════════════════════════════════════════

@dataclass(frozen=True)
class InteractionSummary:
    total_interactions: int = 0
    major_count: int = 0
    moderate_count: int = 0
    minor_count: int = 0
    unknown_count: int = 0
    highest_severity: Severity = Severity.NONE

    def to_dict(self) -> dict:
        return {
            "totalInteractions": self.total_interactions,
            "majorCount": self.major_count,
            "moderateCount": self.moderate_count,
            "minorCount": self.minor_count,
            "unknownCount": self.unknown_count,
            "highestSeverity": self.highest_severity.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "InteractionSummary":
        return cls(
            total_interactions=data["totalInteractions"],
            major_count=data["majorCount"],
            moderate_count=data["moderateCount"],
            minor_count=data["minorCount"],
            unknown_count=data["unknownCount"],
            highest_severity=Severity(data["highestSeverity"]),
        )


@dataclass(frozen=True)
class InteractionCheckResult:
    drug_interactions: tuple[DrugInteraction, ...]
    species_interactions: tuple[SpeciesInteraction, ...]
    condition_interactions: tuple[ConditionInteraction, ...]
    summary: InteractionSummary
    checked_drugs: tuple[str, ...]
    checked_at: datetime
    disclaimer: str = INTERACTION_DISCLAIMER

    def to_dict(self) -> dict:
        return {
            "drugInteractions": [i.to_dict() for i in self.drug_interactions],
            "speciesInteractions": [i.to_dict() for i in self.species_interactions],
            "conditionInteractions": [i.to_dict() for i in self.condition_interactions],
            "summary": self.summary.to_dict(),
            "checkedDrugs": list(self.checked_drugs),
            "checkedAt": _iso(self.checked_at),
            "disclaimer": self.disclaimer,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "InteractionCheckResult":
        return cls(
            drug_interactions=tuple(DrugInteraction.from_dict(i) for i in data.get("drugInteractions", [])),
            species_interactions=tuple(
                SpeciesInteraction.from_dict(i) for i in data.get("speciesInteractions", [])
            ),
            condition_interactions=tuple(
                ConditionInteraction.from_dict(i) for i in data.get("conditionInteractions", [])
            ),
            summary=InteractionSummary.from_dict(data["summary"]),
            checked_drugs=tuple(data.get("checkedDrugs", [])),
            checked_at=_parse_ts(data.get("checkedAt")),
            disclaimer=data.get("disclaimer", INTERACTION_DISCLAIMER),
        )
