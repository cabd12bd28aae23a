"""
Veterinary drug catalog modelled on the FDA Green Book (approved animal
drug products). Ships a curated sample set; records are held in memory
and indexed by normalized trade/generic name and by active ingredient.
"""

import logging
from dataclasses import dataclass, field
from difflib import SequenceMatcher
from typing import Iterable, Optional

from petcheck.models.vocabulary import AdministrationRoute, DrugClass, SpeciesCategory
from petcheck.utils.normalization import normalize_drug_name
from petcheck.utils.validation import validate_pagination

logger = logging.getLogger("petcheck.catalog")

FUZZY_MATCH_CUTOFF = 0.7


@dataclass(frozen=True)
class ActiveIngredient:
    name: str
    strength: Optional[str] = None


@dataclass(frozen=True)
class VeterinaryDrug:
    id: str
    trade_name: str
    generic_name: Optional[str]
    active_ingredients: tuple[ActiveIngredient, ...]
    drug_classes: tuple[DrugClass, ...]
    routes: tuple[AdministrationRoute, ...]
    approved_species: tuple[SpeciesCategory, ...]
    manufacturer: Optional[str] = None
    drug_type: str = "prescription"
    indications: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    contraindications: tuple[str, ...] = ()
    description: str = ""
    total_reports: int = 0
    serious_reports: int = 0
    death_reports: int = 0
    is_discontinued: bool = False
    source: str = "greenbook"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tradeName": self.trade_name,
            "genericName": self.generic_name,
            "activeIngredients": [
                {"name": i.name, "strength": i.strength} for i in self.active_ingredients
            ],
            "drugClass": [c.value for c in self.drug_classes],
            "drugType": self.drug_type,
            "routes": [r.value for r in self.routes],
            "approvedSpecies": [s.value for s in self.approved_species],
            "manufacturer": self.manufacturer,
            "indications": list(self.indications),
            "warnings": list(self.warnings),
            "contraindications": list(self.contraindications),
            "description": self.description,
            "totalReports": self.total_reports,
            "seriousReports": self.serious_reports,
            "deathReports": self.death_reports,
            "isDiscontinued": self.is_discontinued,
            "source": self.source,
        }


def _drug(id, trade_name, generic_name, ingredients, classes, routes, species, **kwargs) -> VeterinaryDrug:
    return VeterinaryDrug(
        id=id,
        trade_name=trade_name,
        generic_name=generic_name,
        active_ingredients=tuple(ActiveIngredient(n, s) for n, s in ingredients),
        drug_classes=tuple(DrugClass(c) for c in classes),
        routes=tuple(AdministrationRoute(r) for r in routes),
        approved_species=tuple(SpeciesCategory(s) for s in species),
        **kwargs,
    )


SAMPLE_DRUGS: tuple[VeterinaryDrug, ...] = (
    _drug(
        "drug-rimadyl-carprofen", "Rimadyl", "Carprofen",
        [("Carprofen", "25mg")], ["nsaid"], ["oral"], ["canine"],
        manufacturer="Zoetis",
        indications=("Osteoarthritis", "Post-operative pain"),
        warnings=("May cause GI upset", "Monitor liver function"),
        contraindications=("Known hypersensitivity to carprofen",),
        description="Rimadyl is a non-steroidal anti-inflammatory drug (NSAID) used to relieve pain and "
                    "inflammation associated with osteoarthritis and to control postoperative pain in dogs.",
        total_reports=8234, serious_reports=2156, death_reports=312,
    ),
    _drug(
        "drug-metacam-meloxicam", "Metacam", "Meloxicam",
        [("Meloxicam", "1.5mg/ml")], ["nsaid"], ["oral", "injectable"], ["canine", "feline"],
        manufacturer="Boehringer Ingelheim",
        indications=("Osteoarthritis", "Pain and inflammation"),
        warnings=("Not for use in cats for chronic conditions",),
        description="Metacam is a prescription NSAID used to control pain and inflammation in dogs and cats. "
                    "It is commonly prescribed for osteoarthritis and post-surgical pain management.",
        total_reports=5621, serious_reports=1423, death_reports=187,
    ),
    _drug(
        "drug-heartgard-ivermectin", "Heartgard Plus", "Ivermectin/Pyrantel",
        [("Ivermectin", "68mcg"), ("Pyrantel Pamoate", "57mg")], ["antiparasitic"], ["oral"], ["canine"],
        manufacturer="Boehringer Ingelheim",
        indications=("Heartworm prevention", "Roundworm and hookworm treatment"),
        warnings=("Test for heartworm before starting",),
        description="Heartgard Plus is a monthly chewable tablet that prevents heartworm disease and treats "
                    "and controls roundworms and hookworms in dogs.",
        total_reports=3245, serious_reports=567, death_reports=45,
    ),
    _drug(
        "drug-revolution-selamectin", "Revolution", "Selamectin",
        [("Selamectin", "60mg")], ["antiparasitic"], ["topical"], ["canine", "feline"],
        manufacturer="Zoetis",
        indications=("Flea, heartworm, ear mite, sarcoptic mange prevention",),
        description="Revolution is a topical parasiticide that protects dogs and cats against fleas, "
                    "heartworm, ear mites, and other parasites.",
        total_reports=4123, serious_reports=723, death_reports=89,
    ),
    _drug(
        "drug-clavamox-amoxicillin", "Clavamox", "Amoxicillin/Clavulanate",
        [("Amoxicillin", "62.5mg"), ("Clavulanic Acid", "15.625mg")], ["antibiotic"], ["oral"],
        ["canine", "feline"],
        manufacturer="Zoetis",
        indications=("Skin infections", "Soft tissue infections", "Urinary tract infections"),
        description="Clavamox is a broad-spectrum antibiotic combining amoxicillin with clavulanic acid to "
                    "treat bacterial infections in dogs and cats.",
        total_reports=2876, serious_reports=412, death_reports=23,
    ),
    _drug(
        "drug-convenia-cefovecin", "Convenia", "Cefovecin",
        [("Cefovecin", "80mg/ml")], ["antibiotic"], ["injectable"], ["canine", "feline"],
        manufacturer="Zoetis",
        indications=("Skin infections", "Urinary tract infections"),
        warnings=("Long-acting - lasts up to 14 days",),
        description="Convenia is a long-acting injectable antibiotic that provides up to 14 days of "
                    "treatment with a single injection for skin and soft tissue infections.",
        total_reports=1543, serious_reports=287, death_reports=34,
    ),
    _drug(
        "drug-apoquel-oclacitinib", "Apoquel", "Oclacitinib",
        [("Oclacitinib", "16mg")], ["immunosuppressant"], ["oral"], ["canine"],
        manufacturer="Zoetis",
        indications=("Allergic dermatitis", "Atopic dermatitis"),
        warnings=(
            "May increase susceptibility to infections",
            "Do not use in dogs less than 12 months of age",
            "Use with caution in dogs with serious infections",
            "Monitor for development of infections and neoplasia",
        ),
        contraindications=("Dogs less than 12 months of age",),
        description="Apoquel is used to control itching associated with allergic dermatitis and control of "
                    "atopic dermatitis in dogs at least 12 months of age.",
        total_reports=12543, serious_reports=3421, death_reports=234,
    ),
    _drug(
        "drug-bravecto-fluralaner", "Bravecto", "Fluralaner",
        [("Fluralaner", "112.5mg")], ["antiparasitic"], ["oral", "topical"], ["canine", "feline"],
        manufacturer="Merck Animal Health",
        indications=("Flea and tick prevention",),
        warnings=("Use with caution in dogs with seizure history",),
        description="Bravecto is a long-lasting flea and tick treatment that protects dogs and cats for up "
                    "to 12 weeks with a single dose.",
        total_reports=9876, serious_reports=2345, death_reports=178,
    ),
    _drug(
        "drug-prednisone", "Prednisone", "Prednisone",
        [("Prednisone", "5mg")], ["corticosteroid"], ["oral"], ["canine", "feline", "equine"],
        manufacturer="Various",
        indications=("Inflammation", "Allergies", "Immune-mediated diseases"),
        warnings=("Long-term use may cause Cushing-like symptoms",),
        description="Prednisone is a corticosteroid used to treat inflammation, allergies, and "
                    "immune-mediated conditions in dogs, cats, and horses.",
        total_reports=6234, serious_reports=1567, death_reports=123,
    ),
    _drug(
        "drug-gabapentin", "Gabapentin", "Gabapentin",
        [("Gabapentin", "100mg")], ["anticonvulsant", "analgesic"], ["oral"], ["canine", "feline"],
        manufacturer="Various",
        indications=("Seizures", "Chronic pain", "Anxiety"),
        warnings=("May cause sedation",),
        description="Gabapentin is used to treat seizures, chronic pain, and anxiety in dogs and cats. "
                    "It is often prescribed for neuropathic pain.",
        total_reports=3456, serious_reports=623, death_reports=45,
    ),
    _drug(
        "drug-cerenia-maropitant", "Cerenia", "Maropitant",
        [("Maropitant Citrate", "24mg")], ["antiemetic"], ["oral", "injectable"], ["canine", "feline"],
        manufacturer="Zoetis",
        indications=("Motion sickness", "Vomiting"),
        description="Cerenia is an antiemetic used to prevent and treat vomiting and motion sickness in "
                    "dogs and cats.",
        total_reports=2134, serious_reports=312, death_reports=28,
    ),
    _drug(
        "drug-adequan-psgag", "Adequan", "Polysulfated Glycosaminoglycan",
        [("PSGAG", "100mg/ml")], ["other"], ["injectable"], ["canine", "equine"],
        manufacturer="American Regent",
        indications=("Osteoarthritis", "Degenerative joint disease"),
        description="Adequan is an injectable disease-modifying osteoarthritis drug that helps protect "
                    "cartilage and joint health in dogs and horses.",
        total_reports=1876, serious_reports=234, death_reports=12,
    ),
)


class DrugCatalog:
    """In-memory index over veterinary drug records."""

    def __init__(self, drugs: Iterable[VeterinaryDrug] = SAMPLE_DRUGS):
        self._drugs: dict[str, VeterinaryDrug] = {}
        self._by_name: dict[str, VeterinaryDrug] = {}
        self._by_ingredient: dict[str, list[str]] = {}
        for drug in drugs:
            self._index(drug)
        logger.info("Drug catalog loaded with %d drugs", len(self._drugs))

    def _index(self, drug: VeterinaryDrug) -> None:
        self._drugs[drug.id] = drug
        self._by_name[normalize_drug_name(drug.trade_name)] = drug
        if drug.generic_name:
            self._by_name[normalize_drug_name(drug.generic_name)] = drug
        for ingredient in drug.active_ingredients:
            key = normalize_drug_name(ingredient.name)
            self._by_ingredient.setdefault(key, []).append(drug.id)

    def __len__(self) -> int:
        return len(self._drugs)

    def all(self) -> list[VeterinaryDrug]:
        return list(self._drugs.values())

    def get_drug_by_id(self, drug_id: str) -> Optional[VeterinaryDrug]:
        return self._drugs.get(drug_id)

    def get_drug_by_name(self, name: str) -> Optional[VeterinaryDrug]:
        normalized = normalize_drug_name(name)
        if not normalized:
            return None
        return self._by_name.get(normalized)

    def get_drugs_by_ingredient(self, ingredient: str) -> list[VeterinaryDrug]:
        ids = self._by_ingredient.get(normalize_drug_name(ingredient), [])
        return [self._drugs[i] for i in ids]

    def resolve_drug_name(self, name: str) -> tuple[str, Optional[VeterinaryDrug], float]:
        """Return (normalized, matched drug or None, confidence in [0, 1]).

        Exact lookup on the normalized trade/generic name first; otherwise the
        most similar trade or generic name wins if it scores above the cutoff.
        """
        normalized = normalize_drug_name(name)
        if not normalized:
            return normalized, None, 0.0

        exact = self._by_name.get(normalized)
        if exact is not None:
            return normalized, exact, 1.0

        best, confidence = None, 0.0
        for drug in self._drugs.values():
            candidates = [drug.trade_name] + ([drug.generic_name] if drug.generic_name else [])
            for candidate in candidates:
                ratio = SequenceMatcher(None, normalized, normalize_drug_name(candidate)).ratio()
                if ratio > confidence and ratio > FUZZY_MATCH_CUTOFF:
                    best, confidence = drug, ratio
        return normalized, best, round(confidence, 4)

    def search(self, query: Optional[str] = None, species: Optional[list[str]] = None,
               drug_class: Optional[list[str]] = None, route: Optional[list[str]] = None,
               manufacturer: Optional[str] = None, include_discontinued: bool = False,
               limit=None, offset=None) -> dict:
        page = validate_pagination(limit, offset)
        results = list(self._drugs.values())

        q = (query or "").strip().lower()
        if q:
            results = [
                d for d in results
                if q in d.trade_name.lower()
                or (d.generic_name and q in d.generic_name.lower())
                or any(q in i.name.lower() for i in d.active_ingredients)
            ]
        if species:
            results = [d for d in results if any(s.value in species for s in d.approved_species)]
        if drug_class:
            results = [d for d in results if any(c.value in drug_class for c in d.drug_classes)]
        if route:
            results = [d for d in results if any(r.value in route for r in d.routes)]
        if manufacturer:
            mfr = manufacturer.strip().lower()
            results = [d for d in results if d.manufacturer and mfr in d.manufacturer.lower()]
        if not include_discontinued:
            results = [d for d in results if not d.is_discontinued]

        # Exact trade-name matches first
        if q:
            results.sort(key=lambda d: 0 if d.trade_name.lower() == q else 1)

        start, size = int(page["offset"]), int(page["limit"])
        return {
            "drugs": results[start:start + size],
            "total": len(results),
            "limit": page["limit"],
            "offset": page["offset"],
        }
