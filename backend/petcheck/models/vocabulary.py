"""
Closed vocabularies for veterinary drug safety data.

Every tag the system exchanges with the UI or with openFDA is a str-valued
Enum, so Severity("bogus") fails at construction instead of drifting into
an "unknown" bucket.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Severity(str, Enum):
    NONE = "none"
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"
    CONTRAINDICATED = "contraindicated"
    UNKNOWN = "unknown"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


# none < unknown < minor < moderate < major < contraindicated
_SEVERITY_RANK = {
    Severity.NONE: 0,
    Severity.UNKNOWN: 1,
    Severity.MINOR: 2,
    Severity.MODERATE: 3,
    Severity.MAJOR: 4,
    Severity.CONTRAINDICATED: 5,
}

_SEVERITY_LABELS = {
    Severity.CONTRAINDICATED: "Contraindicated",
    Severity.MAJOR: "Major Interaction",
    Severity.MODERATE: "Moderate Interaction",
    Severity.MINOR: "Minor Interaction",
    Severity.NONE: "No Known Interaction",
    Severity.UNKNOWN: "Unknown / Insufficient Data",
}

_SEVERITY_COLORS = {
    Severity.CONTRAINDICATED: "#DC2626",
    Severity.MAJOR: "#EA580C",
    Severity.MODERATE: "#CA8A04",
    Severity.MINOR: "#16A34A",
    Severity.NONE: "#6B7280",
    Severity.UNKNOWN: "#9CA3AF",
}


def severity_label(severity: Severity) -> str:
    return _SEVERITY_LABELS[Severity(severity)]


def severity_color(severity: Severity) -> str:
    return _SEVERITY_COLORS[Severity(severity)]


class EvidenceLevel(str, Enum):
    ESTABLISHED = "established"   # well documented in veterinary literature
    THEORETICAL = "theoretical"   # mechanism or human data only
    CASE_REPORT = "case_report"
    UNKNOWN = "unknown"


class InteractionType(str, Enum):
    DRUG_DRUG = "drug_drug"
    DRUG_CLASS = "drug_class"
    DRUG_SPECIES = "drug_species"
    DRUG_CONDITION = "drug_condition"
    DRUG_FOOD = "drug_food"
    DRUG_SUPPLEMENT = "drug_supplement"


class ConcernType(str, Enum):
    CONTRAINDICATED = "contraindicated"
    CAUTION = "caution"
    DOSE_ADJUSTMENT = "dose_adjustment"
    MONITORING_REQUIRED = "monitoring_required"


class SpeciesCategory(str, Enum):
    CANINE = "canine"
    FELINE = "feline"
    EQUINE = "equine"
    BOVINE = "bovine"
    PORCINE = "porcine"
    OVINE = "ovine"
    CAPRINE = "caprine"
    AVIAN = "avian"
    FISH = "fish"
    REPTILE = "reptile"
    LAGOMORPH = "lagomorph"
    RODENT = "rodent"
    EXOTIC = "exotic"
    OTHER = "other"


class DrugClass(str, Enum):
    ANTIBIOTIC = "antibiotic"
    ANTIFUNGAL = "antifungal"
    ANTIVIRAL = "antiviral"
    ANTIPARASITIC = "antiparasitic"
    NSAID = "nsaid"
    CORTICOSTEROID = "corticosteroid"
    ANTIHISTAMINE = "antihistamine"
    ANALGESIC = "analgesic"
    ANESTHETIC = "anesthetic"
    CARDIAC = "cardiac"
    DIURETIC = "diuretic"
    HORMONE = "hormone"
    IMMUNOSUPPRESSANT = "immunosuppressant"
    VACCINE = "vaccine"
    SEDATIVE = "sedative"
    ANTICONVULSANT = "anticonvulsant"
    ANTIDEPRESSANT = "antidepressant"
    ANTINEOPLASTIC = "antineoplastic"
    ANTIEMETIC = "antiemetic"
    SUPPLEMENT = "supplement"
    OTHER = "other"
    UNKNOWN = "unknown"


class AdministrationRoute(str, Enum):
    ORAL = "oral"
    INJECTABLE = "injectable"
    TOPICAL = "topical"
    OPHTHALMIC = "ophthalmic"
    OTIC = "otic"
    INHALATION = "inhalation"
    RECTAL = "rectal"
    INTRAMAMMARY = "intramammary"
    INTRAVAGINAL = "intravaginal"
    TRANSDERMAL = "transdermal"
    OTHER = "other"


class OutcomeSeriousness(str, Enum):
    DIED = "died"
    EUTHANIZED = "euthanized"
    LIFE_THREATENING = "life_threatening"
    HOSPITALIZED = "hospitalized"
    DISABILITY = "disability"
    CONGENITAL_ANOMALY = "congenital_anomaly"
    OTHER_SERIOUS = "other_serious"
    NOT_SERIOUS = "not_serious"
    UNKNOWN = "unknown"


class RecallClass(str, Enum):
    CLASS_I = "I"
    CLASS_II = "II"
    CLASS_III = "III"
    UNKNOWN = "unknown"


class RecallStatus(str, Enum):
    ONGOING = "ongoing"
    COMPLETED = "completed"
    TERMINATED = "terminated"
    PENDING = "pending"
    UNKNOWN = "unknown"


class UserRole(str, Enum):
    PET_OWNER = "pet_owner"
    VETERINARIAN = "veterinarian"
    RESEARCHER = "researcher"
    ADMIN = "admin"


class MedicationFrequency(str, Enum):
    ONCE_DAILY = "once_daily"
    TWICE_DAILY = "twice_daily"
    THREE_TIMES_DAILY = "three_times_daily"
    FOUR_TIMES_DAILY = "four_times_daily"
    EVERY_OTHER_DAY = "every_other_day"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    AS_NEEDED = "as_needed"
    CUSTOM = "custom"


# ═══════════════════════════════════════════
# SPECIES CATALOG
# ═══════════════════════════════════════════

@dataclass(frozen=True)
class Species:
    id: SpeciesCategory
    name: str
    common_names: tuple[str, ...] = field(default_factory=tuple)
    open_fda_terms: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "id": self.id.value,
            "name": self.name,
            "commonNames": list(self.common_names),
            "openFdaTerms": list(self.open_fda_terms),
        }


SPECIES_LIST: tuple[Species, ...] = (
    Species(SpeciesCategory.CANINE, "Dog", ("Dog", "Canine", "Puppy"), ("Dog", "Canine")),
    Species(SpeciesCategory.FELINE, "Cat", ("Cat", "Feline", "Kitten"), ("Cat", "Feline")),
    Species(SpeciesCategory.EQUINE, "Horse", ("Horse", "Equine", "Pony", "Foal"), ("Horse", "Equine")),
    Species(SpeciesCategory.BOVINE, "Cattle", ("Cattle", "Cow", "Bovine", "Calf", "Bull"),
            ("Cattle", "Bovine", "Cow")),
    Species(SpeciesCategory.PORCINE, "Pig", ("Pig", "Swine", "Porcine", "Hog"), ("Pig", "Swine", "Porcine")),
    Species(SpeciesCategory.OVINE, "Sheep", ("Sheep", "Ovine", "Lamb"), ("Sheep", "Ovine")),
    Species(SpeciesCategory.CAPRINE, "Goat", ("Goat", "Caprine", "Kid"), ("Goat", "Caprine")),
    Species(SpeciesCategory.AVIAN, "Bird", ("Bird", "Avian", "Poultry", "Chicken", "Turkey", "Parrot"),
            ("Bird", "Avian", "Poultry", "Chicken")),
    Species(SpeciesCategory.FISH, "Fish", ("Fish", "Aquatic"), ("Fish",)),
    Species(SpeciesCategory.REPTILE, "Reptile", ("Reptile", "Snake", "Lizard", "Turtle", "Tortoise"),
            ("Reptile",)),
    Species(SpeciesCategory.LAGOMORPH, "Rabbit", ("Rabbit", "Lagomorph", "Bunny", "Hare"),
            ("Rabbit", "Lagomorph")),
    Species(SpeciesCategory.RODENT, "Rodent", ("Rodent", "Mouse", "Rat", "Hamster", "Guinea Pig", "Gerbil"),
            ("Rodent", "Mouse", "Rat")),
    Species(SpeciesCategory.EXOTIC, "Exotic", ("Exotic", "Ferret", "Hedgehog"), ("Exotic", "Ferret")),
    Species(SpeciesCategory.OTHER, "Other", ("Other", "Unknown"), ("Other",)),
)


def get_species_by_id(species_id) -> Optional[Species]:
    for s in SPECIES_LIST:
        if s.id.value == species_id:
            return s
    return None


def get_species_by_name(name: str) -> Optional[Species]:
    """Match against display name, common names or openFDA terms (case-insensitive)."""
    if not isinstance(name, str) or not name.strip():
        return None
    wanted = name.strip().lower()
    for s in SPECIES_LIST:
        if s.id.value == wanted or s.name.lower() == wanted:
            return s
        if any(n.lower() == wanted for n in s.common_names):
            return s
        if any(t.lower() == wanted for t in s.open_fda_terms):
            return s
    return None
